"""Detects generated files that collide with existing files."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Iterable, List

from ..logging import get_logger
from ..models import FileConflictInfo, FileDiff, GeneratedFile


def resolve_output_path(target_path: Path, relative: str) -> Path:
    """Join ``relative`` onto ``target_path``, refusing paths that escape it."""
    root = Path(target_path).expanduser().resolve()
    if not relative or Path(relative).is_absolute():
        raise ValueError(f"Generated path must be relative to the target: {relative!r}")
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        raise ValueError(f"Generated path escapes the target directory: {relative!r}")
    return candidate


class ConflictDetector:
    """Compares generated content with files already present under a target path."""

    def __init__(self) -> None:
        self.logger = get_logger("conflicts")

    def detect(self, files: Iterable[GeneratedFile], target_path: Path) -> List[FileConflictInfo]:
        conflicts: List[FileConflictInfo] = []
        for generated in files:
            path = resolve_output_path(target_path, generated.path)
            if not path.is_file():
                continue
            old_content = path.read_text(encoding="utf-8")
            diff = self.compute_diff(old_content, generated.content)
            self.logger.debug(
                "Conflict at %s: +%d -%d ~%d",
                path,
                diff.added_lines,
                diff.removed_lines,
                diff.modified_lines,
            )
            conflicts.append(
                FileConflictInfo(
                    path=path,
                    old_content=old_content,
                    new_content=generated.content,
                    diff=diff,
                )
            )
        return conflicts

    @staticmethod
    def compute_diff(old_content: str, new_content: str) -> FileDiff:
        """Count added, removed and modified lines in document order."""
        old_lines = old_content.splitlines()
        new_lines = new_content.splitlines()
        matcher = difflib.SequenceMatcher(a=old_lines, b=new_lines, autojunk=False)
        added = removed = modified = 0
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "insert":
                added += j2 - j1
            elif tag == "delete":
                removed += i2 - i1
            elif tag == "replace":
                old_span = i2 - i1
                new_span = j2 - j1
                modified += min(old_span, new_span)
                added += max(new_span - old_span, 0)
                removed += max(old_span - new_span, 0)
        return FileDiff(added_lines=added, removed_lines=removed, modified_lines=modified)

    @staticmethod
    def render_diff(conflict: FileConflictInfo) -> str:
        diff = difflib.unified_diff(
            conflict.old_content.splitlines(keepends=True),
            conflict.new_content.splitlines(keepends=True),
            fromfile=f"{conflict.path} (existing)",
            tofile=f"{conflict.path} (generated)",
        )
        return "".join(diff)

    @staticmethod
    def summarize(conflicts: Iterable[FileConflictInfo]) -> str:
        lines = []
        for conflict in conflicts:
            diff = conflict.diff
            lines.append(
                f"{conflict.path}: {diff.total_changes} changes "
                f"(+{diff.added_lines} -{diff.removed_lines} ~{diff.modified_lines})"
            )
        return "\n".join(lines)


__all__ = ["ConflictDetector", "resolve_output_path"]
