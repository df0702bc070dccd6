"""Template errors."""

from __future__ import annotations


class TemplateError(RuntimeError):
    """Base class for template parse and render failures."""


class TemplateSyntaxError(TemplateError):
    """Raised when template text is malformed."""

    def __init__(self, message: str, *, line: int) -> None:
        super().__init__(f"line {line}: {message}")
        self.line = line


class MissingPlaceholderError(TemplateError):
    """Raised when a placeholder has no bound value."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Missing value for placeholder '{name}'")
        self.name = name


class UnsupportedTemplateFeature(TemplateError):
    """Raised for recognised syntax that cannot be rendered (loops, includes)."""


class TemplateRenderError(TemplateError):
    """Raised when nested placeholder resolution cannot terminate."""


__all__ = [
    "MissingPlaceholderError",
    "TemplateError",
    "TemplateRenderError",
    "TemplateSyntaxError",
    "UnsupportedTemplateFeature",
]
