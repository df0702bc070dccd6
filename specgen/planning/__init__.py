"""Plan extraction from specifications."""

from .processor import CONSTRAINT_KEYWORDS, SpecProcessor, extract_constraints

__all__ = ["CONSTRAINT_KEYWORDS", "SpecProcessor", "extract_constraints"]
