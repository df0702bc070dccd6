"""Specification-driven code generation."""

from .config import GenerationManagerConfig, load_config
from .errors import GenerationError
from .models import ConflictStrategy, GenerationResult, Specification
from .orchestrator import GenerationManager
from .spec_loader import load_specification

__version__ = "0.1.0"

__all__ = [
    "ConflictStrategy",
    "GenerationError",
    "GenerationManager",
    "GenerationManagerConfig",
    "GenerationResult",
    "Specification",
    "load_config",
    "load_specification",
]
