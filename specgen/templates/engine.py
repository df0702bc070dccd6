"""Renders parsed templates against bound placeholder values."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

from .errors import TemplateSyntaxError, UnsupportedTemplateFeature
from .parser import (
    ConditionalElement,
    Element,
    IncludeElement,
    LoopElement,
    PlaceholderElement,
    TemplateParser,
    TextElement,
)
from .resolver import PlaceholderResolver, parse_placeholder

_SIMPLE_TAG = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)


@dataclass
class RenderResult:
    """Rendered text plus the placeholder keys consulted while rendering."""

    content: str
    placeholders_used: List[str] = field(default_factory=list)


class TemplateEngine:
    """Renders templates with deterministic case transforms.

    Values bound on the engine are shared by every render call; ``context``
    passed to :meth:`render` layers extra values on top for that call only.
    An engine instance is not meant to be shared between threads while values
    are being bound.
    """

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        *,
        required: Iterable[str] = (),
        max_depth: int = 10,
    ) -> None:
        self.parser = TemplateParser()
        self._values = {str(name).lower(): str(value) for name, value in (values or {}).items()}
        self._required = {name.lower() for name in required}
        self.max_depth = max_depth

    def add_value(self, name: str, value: str) -> None:
        self._values[name.lower()] = str(value)

    def add_values(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self.add_value(name, value)

    def require(self, name: str) -> None:
        self._required.add(name.lower())

    def render(self, template_text: str, context: Optional[Mapping[str, str]] = None) -> RenderResult:
        parsed = self.parser.parse(template_text)
        _reject_unsupported(parsed.elements)
        resolver = self._build_resolver(context)
        resolver.validate()
        used: List[str] = []
        content = "".join(self._render_elements(parsed.elements, resolver, used))
        return RenderResult(content=content, placeholders_used=used)

    def render_simple(self, template_text: str) -> str:
        """Substitute placeholders directly; block syntax is rejected."""
        resolver = self._build_resolver(None)
        resolver.validate()

        for match in _SIMPLE_TAG.finditer(template_text):
            inner = match.group(1).strip()
            if not inner:
                line = template_text.count("\n", 0, match.start()) + 1
                raise TemplateSyntaxError("Empty placeholder", line=line)
            if inner[:1] in {"#", "/", ">"}:
                raise UnsupportedTemplateFeature(
                    f"Block tag '{{{{{inner}}}}}' is not supported by simple rendering"
                )
        remainder = _SIMPLE_TAG.sub("", template_text)
        if "{{" in remainder:
            line = template_text.count("\n", 0, template_text.rfind("{{")) + 1
            raise TemplateSyntaxError("Unterminated tag: missing '}}'", line=line)

        return _SIMPLE_TAG.sub(lambda match: resolver.resolve(match.group(1)), template_text)

    def _build_resolver(self, context: Optional[Mapping[str, str]]) -> PlaceholderResolver:
        resolver = PlaceholderResolver(self._values, required=self._required, max_depth=self.max_depth)
        if context:
            resolver.add_values(context)
        return resolver

    def _render_elements(
        self,
        elements: Iterable[Element],
        resolver: PlaceholderResolver,
        used: List[str],
    ) -> List[str]:
        chunks: List[str] = []
        for element in elements:
            if isinstance(element, TextElement):
                chunks.append(element.text)
            elif isinstance(element, PlaceholderElement):
                _record(used, parse_placeholder(element.name)[0])
                chunks.append(resolver.resolve(element.name))
            elif isinstance(element, ConditionalElement):
                key, _ = parse_placeholder(element.condition)
                _record(used, key)
                if resolver.has_value(key):
                    chunks.extend(self._render_elements(element.children, resolver, used))
        return chunks


def _reject_unsupported(elements: Iterable[Element]) -> None:
    """Fail on any loop or include, including ones under a conditional that would be skipped."""
    for element in elements:
        if isinstance(element, LoopElement):
            raise UnsupportedTemplateFeature(
                f"line {element.line}: loops ({{{{#each {element.variable}}}}}) are not supported"
            )
        if isinstance(element, IncludeElement):
            raise UnsupportedTemplateFeature(
                f"line {element.line}: includes ({{{{> {element.partial}}}}}) are not supported"
            )
        if isinstance(element, ConditionalElement):
            _reject_unsupported(element.children)


def _record(used: List[str], key: str) -> None:
    if key not in used:
        used.append(key)


__all__ = ["RenderResult", "TemplateEngine"]
