"""Conflict resolution strategies for generated files.

Skip leaves the target untouched. Overwrite and Merge both copy the current
file to a backup next to it before writing anything, and put it back if the
write fails.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Callable, Dict

from ..errors import ConflictResolutionError
from ..logging import get_logger
from ..models import ConflictStrategy, FileConflictInfo, ResolutionResult

MergeFunction = Callable[[str, str], str]


def marker_merge(old_content: str, new_content: str) -> str:
    """Keep both versions inside git-style conflict markers."""
    if old_content == new_content:
        return new_content
    original = old_content.rstrip("\n")
    generated = new_content.rstrip("\n")
    return f"<<<<<<< ORIGINAL\n{original}\n=======\n{generated}\n>>>>>>> GENERATED\n"


def union_merge(old_content: str, new_content: str) -> str:
    """Keep the existing content and append generated lines it does not contain."""
    if not old_content:
        return new_content
    existing = set(old_content.splitlines())
    additions = [line for line in new_content.splitlines() if line not in existing]
    if not additions:
        return old_content
    base = old_content if old_content.endswith("\n") else old_content + "\n"
    return base + "\n".join(additions) + "\n"


MERGE_FUNCTIONS: Dict[str, MergeFunction] = {
    "markers": marker_merge,
    "union": union_merge,
}

_STRATEGY_DESCRIPTIONS = {
    ConflictStrategy.SKIP: "Skip conflicting files (don't write)",
    ConflictStrategy.OVERWRITE: "Overwrite existing files (with backup)",
    ConflictStrategy.MERGE: "Merge changes (with backup)",
}


class ConflictResolver:
    """Applies a :class:`ConflictStrategy` to a single detected conflict."""

    def __init__(self, merge: MergeFunction | None = None) -> None:
        self.merge = merge or marker_merge
        self.logger = get_logger("conflicts")

    def resolve(
        self,
        conflict: FileConflictInfo,
        strategy: ConflictStrategy,
        new_content: str,
    ) -> ResolutionResult:
        if strategy is ConflictStrategy.SKIP:
            return ResolutionResult(
                written=False,
                backup_path=None,
                action=f"Skipped: {conflict.path}",
            )
        if strategy is ConflictStrategy.OVERWRITE:
            return self._write_with_backup(conflict, new_content, verb="Overwritten")
        if strategy is ConflictStrategy.MERGE:
            merged = self.merge(conflict.old_content, new_content)
            if not merged and (conflict.old_content or new_content):
                raise ConflictResolutionError(
                    f"Merge produced empty content for {conflict.path}"
                )
            return self._write_with_backup(conflict, merged, verb="Merged")
        raise ConflictResolutionError(f"Unsupported conflict strategy: {strategy!r}")

    @staticmethod
    def is_auto_mergeable(conflict: FileConflictInfo) -> bool:
        """True when the generated content only adds lines to the existing file."""
        if conflict.old_content == conflict.new_content:
            return True
        new_lines = set(conflict.new_content.splitlines())
        return all(line in new_lines for line in conflict.old_content.splitlines())

    @staticmethod
    def describe_strategy(strategy: ConflictStrategy) -> str:
        return _STRATEGY_DESCRIPTIONS[strategy]

    def _write_with_backup(
        self, conflict: FileConflictInfo, content: str, *, verb: str
    ) -> ResolutionResult:
        path = Path(conflict.path)
        try:
            current = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConflictResolutionError(f"Failed to read {path} for backup: {exc}") from exc
        if current != conflict.old_content:
            raise ConflictResolutionError(
                f"{path} changed after conflict detection; refusing to write"
            )

        backup_path = self._next_backup_path(path)
        try:
            shutil.copy2(path, backup_path)
        except OSError as exc:
            raise ConflictResolutionError(f"Failed to create backup of {path}: {exc}") from exc

        try:
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            detail = "" if self._restore(path, backup_path) else f"; original kept at {backup_path}"
            raise ConflictResolutionError(f"Failed to write {path}: {exc}{detail}") from exc

        self.logger.debug("%s %s (backup: %s)", verb, path, backup_path)
        return ResolutionResult(
            written=True,
            backup_path=backup_path,
            action=f"{verb}: {path} (backup: {backup_path})",
        )

    def _restore(self, path: Path, backup_path: Path) -> bool:
        try:
            shutil.copy2(backup_path, path)
            backup_path.unlink()
        except OSError as exc:
            self.logger.error("Could not restore %s from %s: %s", path, backup_path, exc)
            return False
        self.logger.warning("Restored %s from its backup after a failed write", path)
        return True

    @staticmethod
    def _next_backup_path(path: Path) -> Path:
        candidate = path.with_name(f"{path.name}.bak")
        counter = 1
        while candidate.exists():
            candidate = path.with_name(f"{path.name}.bak.{counter}")
            counter += 1
        return candidate


__all__ = [
    "ConflictResolver",
    "MERGE_FUNCTIONS",
    "MergeFunction",
    "marker_merge",
    "union_merge",
]
