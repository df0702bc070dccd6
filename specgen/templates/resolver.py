"""Placeholder resolution and case transformation."""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

from .errors import MissingPlaceholderError, TemplateRenderError

_SEPARATORS = re.compile(r"[\W_]+")
_NESTED_PATTERN = re.compile(r"\{\{(.*?)\}\}")


class CaseTransform(str, Enum):
    """Reformatting applied to a bound value before substitution."""

    SNAKE = "snake_case"
    KEBAB = "kebab-case"
    CAMEL = "camelCase"
    UPPER = "UPPER_CASE"
    PASCAL = "PascalCase"
    LOWER = "lowercase"

    def apply(self, value: str) -> str:
        if self is CaseTransform.UPPER:
            return value.upper()
        if self is CaseTransform.LOWER:
            return value.lower()
        words = split_words(value)
        if self is CaseTransform.SNAKE:
            return "_".join(word.lower() for word in words)
        if self is CaseTransform.KEBAB:
            return "-".join(word.lower() for word in words)
        if self is CaseTransform.PASCAL:
            return "".join(word.capitalize() for word in words)
        if not words:
            return ""
        return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def split_words(value: str) -> list[str]:
    """Split on separators and case boundaries (``HTTPServer`` -> ``HTTP``, ``Server``).

    Letters of any script are kept; only the boundaries between them are cut.
    """
    words: list[str] = []
    for chunk in _SEPARATORS.split(value):
        if chunk:
            words.extend(_split_chunk(chunk))
    return words


def _split_chunk(chunk: str) -> list[str]:
    words: list[str] = []
    start = 0
    for index in range(1, len(chunk)):
        previous, current = chunk[index - 1], chunk[index]
        following = chunk[index + 1] if index + 1 < len(chunk) else ""
        if (
            (previous.islower() and current.isupper())
            or previous.isdigit() != current.isdigit()
            # Last capital of an acronym starts the next word: HTTPServer.
            or (previous.isupper() and current.isupper() and following.islower())
        ):
            words.append(chunk[start:index])
            start = index
    words.append(chunk[start:])
    return words


def parse_placeholder(name: str) -> Tuple[str, CaseTransform]:
    """Infer the lookup key and case transform from a placeholder's spelling.

    The first matching rule wins:

    1. ``*_snake`` -> snake_case
    2. ``*-kebab`` -> kebab-case
    3. ``*Camel`` -> camelCase
    4. all upper-case/underscore, longer than one char -> UPPER_CASE
    5. leading upper-case letter -> PascalCase
    6. anything else -> lowercase

    The key is the spelling with its suffix removed, lower-cased.
    """
    spelling = name.strip()
    if spelling.endswith("_snake"):
        return spelling[: -len("_snake")].lower(), CaseTransform.SNAKE
    if spelling.endswith("-kebab"):
        return spelling[: -len("-kebab")].lower(), CaseTransform.KEBAB
    if spelling.endswith("Camel"):
        return spelling[: -len("Camel")].lower(), CaseTransform.CAMEL
    if len(spelling) > 1 and all(char.isupper() or char == "_" for char in spelling):
        return spelling.lower(), CaseTransform.UPPER
    if spelling[:1].isupper():
        return spelling.lower(), CaseTransform.PASCAL
    return spelling.lower(), CaseTransform.LOWER


class PlaceholderResolver:
    """Looks up bound values and applies case transforms."""

    def __init__(
        self,
        values: Optional[Mapping[str, str]] = None,
        *,
        required: Iterable[str] = (),
        max_depth: int = 10,
    ) -> None:
        self._values: Dict[str, str] = {}
        if values:
            self.add_values(values)
        self._required: Set[str] = {name.lower() for name in required}
        self.max_depth = max_depth

    def add_value(self, name: str, value: str) -> None:
        self._values[name.lower()] = str(value)

    def add_values(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self.add_value(name, value)

    def require(self, name: str) -> None:
        self._required.add(name.lower())

    def has_value(self, key: str) -> bool:
        return key.lower() in self._values

    def provided_names(self) -> list[str]:
        return sorted(self._values)

    def validate(self) -> None:
        """Fail fast if any required placeholder is unbound."""
        for name in sorted(self._required):
            if name not in self._values:
                raise MissingPlaceholderError(name)

    def resolve(self, placeholder: str) -> str:
        key, transform = parse_placeholder(placeholder)
        return transform.apply(self._lookup(key, depth=0, visiting=set()))

    def _lookup(self, key: str, *, depth: int, visiting: Set[str]) -> str:
        if depth >= self.max_depth:
            raise TemplateRenderError(
                f"Maximum nesting depth ({self.max_depth}) exceeded for placeholder: {key}"
            )
        if key in visiting:
            raise TemplateRenderError(f"Circular reference detected for placeholder: {key}")
        try:
            value = self._values[key]
        except KeyError:
            raise MissingPlaceholderError(key) from None
        if "{{" not in value:
            return value

        visiting.add(key)

        def _substitute(match: re.Match[str]) -> str:
            inner_key, transform = parse_placeholder(match.group(1))
            return transform.apply(self._lookup(inner_key, depth=depth + 1, visiting=visiting))

        try:
            return _NESTED_PATTERN.sub(_substitute, value)
        finally:
            visiting.discard(key)


__all__ = ["CaseTransform", "PlaceholderResolver", "parse_placeholder", "split_words"]
