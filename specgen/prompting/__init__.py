"""Prompt construction for provider-backed generation."""

from .builder import (
    GeneratedPrompt,
    PromptBudgetError,
    PromptBuildError,
    PromptBuilder,
    estimate_tokens,
)

__all__ = [
    "GeneratedPrompt",
    "PromptBudgetError",
    "PromptBuildError",
    "PromptBuilder",
    "estimate_tokens",
]
