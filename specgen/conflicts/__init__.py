"""Conflict detection and resolution for generated files."""

from .detector import ConflictDetector, resolve_output_path
from .resolver import MERGE_FUNCTIONS, ConflictResolver, marker_merge, union_merge

__all__ = [
    "ConflictDetector",
    "ConflictResolver",
    "MERGE_FUNCTIONS",
    "marker_merge",
    "resolve_output_path",
    "union_merge",
]
