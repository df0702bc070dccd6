"""Small placeholder template language used for template-backed generation."""

from .discovery import discover_templates
from .engine import RenderResult, TemplateEngine
from .errors import (
    MissingPlaceholderError,
    TemplateError,
    TemplateRenderError,
    TemplateSyntaxError,
    UnsupportedTemplateFeature,
)
from .parser import ParsedTemplate, TemplateParser
from .resolver import CaseTransform, PlaceholderResolver, parse_placeholder

__all__ = [
    "CaseTransform",
    "MissingPlaceholderError",
    "ParsedTemplate",
    "PlaceholderResolver",
    "RenderResult",
    "TemplateEngine",
    "TemplateError",
    "TemplateParser",
    "TemplateRenderError",
    "TemplateSyntaxError",
    "UnsupportedTemplateFeature",
    "discover_templates",
    "parse_placeholder",
]
