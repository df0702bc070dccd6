"""Error taxonomy for the generation pipeline."""

from __future__ import annotations


class GenerationError(RuntimeError):
    """Base class for a failed pipeline stage."""

    stage = "generation"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class SpecError(GenerationError):
    """Raised when a specification cannot be turned into a plan."""

    stage = "plan"


class PromptError(GenerationError):
    """Raised when the prompt cannot be built from a plan."""

    stage = "prompt"


class GenerationFailed(GenerationError):
    """Raised by content generation, quality enforcement, conflict detection or review."""


class ValidationFailed(GenerationError):
    """Raised when the validator itself fails to run."""

    stage = "validate"


class WriteFailed(GenerationError):
    """Raised when generated files cannot be written to disk."""

    stage = "write"


class ConflictResolutionError(RuntimeError):
    """Raised when a conflict cannot be resolved without losing existing work."""


__all__ = [
    "ConflictResolutionError",
    "GenerationError",
    "GenerationFailed",
    "PromptError",
    "SpecError",
    "ValidationFailed",
    "WriteFailed",
]
