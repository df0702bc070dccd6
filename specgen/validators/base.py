"""Validator protocol shared by generated-file checks."""

from __future__ import annotations

from typing import Protocol, Sequence

from ..models import GeneratedFile, ValidationIssue, ValidationResult


class Validator(Protocol):
    """Protocol implemented by generated-file validators."""

    def validate(self, files: Sequence[GeneratedFile]) -> ValidationResult:
        """Return a result; ``valid`` is False when any error was found."""


__all__ = ["ValidationIssue", "ValidationResult", "Validator"]
