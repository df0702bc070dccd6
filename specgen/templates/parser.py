"""Template syntax parser.

Recognises literal text, ``{{name}}`` placeholders, ``{{#if cond}}…{{/if}}``
conditionals, ``{{#each var}}…{{/each}}`` loops and ``{{> partial}}`` includes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .errors import TemplateSyntaxError
from .resolver import parse_placeholder

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_BLOCK_KEYWORDS = ("if", "each")


@dataclass(frozen=True)
class TextElement:
    text: str


@dataclass(frozen=True)
class PlaceholderElement:
    name: str
    line: int


@dataclass(frozen=True)
class ConditionalElement:
    condition: str
    children: Tuple["Element", ...]
    line: int


@dataclass(frozen=True)
class LoopElement:
    variable: str
    children: Tuple["Element", ...]
    line: int


@dataclass(frozen=True)
class IncludeElement:
    partial: str
    line: int


Element = Union[TextElement, PlaceholderElement, ConditionalElement, LoopElement, IncludeElement]


@dataclass
class ParsedTemplate:
    """Element tree plus the lookup keys of every placeholder it mentions."""

    elements: Tuple[Element, ...]
    placeholder_names: List[str] = field(default_factory=list)


class TemplateParser:
    """Parses template text into an element tree."""

    def parse(self, content: str) -> ParsedTemplate:
        state = _ParserState(content)
        elements, _ = state.parse_elements(0, closing=None, opened_at=1)
        return ParsedTemplate(elements=tuple(elements), placeholder_names=state.names)

    def extract_placeholders(self, content: str) -> List[str]:
        return self.parse(content).placeholder_names

    @staticmethod
    def has_conditionals(content: str) -> bool:
        return "{{#if" in content and "{{/if}}" in content

    @staticmethod
    def has_loops(content: str) -> bool:
        return "{{#each" in content and "{{/each}}" in content

    @staticmethod
    def has_includes(content: str) -> bool:
        return "{{>" in content


class _ParserState:
    def __init__(self, content: str) -> None:
        self.content = content
        self.names: List[str] = []

    def line_at(self, position: int) -> int:
        return self.content.count("\n", 0, position) + 1

    def parse_elements(
        self, position: int, *, closing: Optional[str], opened_at: int
    ) -> Tuple[List[Element], int]:
        elements: List[Element] = []
        content = self.content
        while position < len(content):
            start = content.find("{{", position)
            if start == -1:
                elements.append(TextElement(content[position:]))
                position = len(content)
                break
            if start > position:
                elements.append(TextElement(content[position:start]))

            end = content.find("}}", start + 2)
            line = self.line_at(start)
            if end == -1:
                raise TemplateSyntaxError("Unterminated tag: missing '}}'", line=line)
            inner = content[start + 2 : end].strip()
            position = end + 2

            if inner.startswith("/"):
                keyword = inner[1:].strip()
                if closing is not None and keyword == closing:
                    return elements, position
                raise TemplateSyntaxError(f"Unexpected closing tag {{{{/{keyword}}}}}", line=line)
            if inner.startswith("#"):
                element, position = self._parse_block(inner[1:], position, line)
                elements.append(element)
            elif inner.startswith(">"):
                partial = inner[1:].strip()
                if not partial:
                    raise TemplateSyntaxError("Include is missing a partial name", line=line)
                elements.append(IncludeElement(partial=partial, line=line))
            else:
                self._check_name(inner, line)
                key, _ = parse_placeholder(inner)
                if key not in self.names:
                    self.names.append(key)
                elements.append(PlaceholderElement(name=inner, line=line))

        if closing is not None:
            raise TemplateSyntaxError(f"Unclosed {{{{#{closing}}}}} block", line=opened_at)
        return elements, position

    def _parse_block(self, header: str, position: int, line: int) -> Tuple[Element, int]:
        parts = header.split(None, 1)
        keyword = parts[0] if parts else ""
        if keyword not in _BLOCK_KEYWORDS:
            raise TemplateSyntaxError(f"Unknown block type: {keyword or '(empty)'}", line=line)
        argument = parts[1].strip() if len(parts) > 1 else ""
        self._check_name(argument, line)
        children, position = self.parse_elements(position, closing=keyword, opened_at=line)
        if keyword == "if":
            return ConditionalElement(condition=argument, children=tuple(children), line=line), position
        return LoopElement(variable=argument, children=tuple(children), line=line), position

    @staticmethod
    def _check_name(name: str, line: int) -> None:
        if not name:
            raise TemplateSyntaxError("Empty placeholder", line=line)
        if not _NAME_PATTERN.match(name):
            raise TemplateSyntaxError(f"Invalid placeholder name: {name!r}", line=line)


__all__ = [
    "ConditionalElement",
    "Element",
    "IncludeElement",
    "LoopElement",
    "ParsedTemplate",
    "PlaceholderElement",
    "TemplateParser",
    "TextElement",
]
