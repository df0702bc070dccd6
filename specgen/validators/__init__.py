"""Validation for generated files."""

from .base import ValidationIssue, ValidationResult, Validator
from .code import LINT_CHECKS, SYNTAX_CHECKS, CodeValidator

__all__ = [
    "CodeValidator",
    "LINT_CHECKS",
    "SYNTAX_CHECKS",
    "ValidationIssue",
    "ValidationResult",
    "Validator",
]
