"""Writes generated files to disk with conflict handling and rollback."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from .conflicts import ConflictResolver, resolve_output_path
from .errors import WriteFailed
from .logging import get_logger
from .models import ConflictStrategy, FileConflictInfo, GeneratedFile


@dataclass
class FileWriteResult:
    """Outcome for a single generated file."""

    path: Path
    written: bool
    backup_path: Optional[Path]
    action: str


@dataclass
class WriteResult:
    """Outcome of writing one batch of generated files."""

    files: List[FileWriteResult] = field(default_factory=list)
    files_written: int = 0
    files_skipped: int = 0
    backups_created: int = 0
    conflicts_resolved: int = 0
    dry_run: bool = False

    def summary(self) -> str:
        suffix = " (dry-run)" if self.dry_run else ""
        return (
            f"Files written: {self.files_written}, Files skipped: {self.files_skipped}, "
            f"Backups created: {self.backups_created}{suffix}"
        )


class OutputWriter:
    """Writes files under a target path; a failed batch is rolled back."""

    def __init__(self, resolver: ConflictResolver | None = None) -> None:
        self.resolver = resolver or ConflictResolver()
        self.logger = get_logger("writer")

    def write(
        self,
        files: Sequence[GeneratedFile],
        target_path: Path,
        conflicts: Iterable[FileConflictInfo],
        strategy: ConflictStrategy,
    ) -> WriteResult:
        conflict_map = {Path(conflict.path): conflict for conflict in conflicts}
        result = WriteResult()
        created: List[Path] = []
        backups: List[Tuple[Path, Path]] = []

        try:
            repeated = _repeated_paths(files, target_path)
            if repeated:
                raise WriteFailed(f"Generated files repeat the same path: {', '.join(repeated)}")
            for generated in files:
                path = resolve_output_path(target_path, generated.path)
                conflict = conflict_map.get(path)
                if conflict is not None:
                    resolution = self.resolver.resolve(conflict, strategy, generated.content)
                    result.conflicts_resolved += 1
                    if resolution.backup_path is not None:
                        backups.append((path, resolution.backup_path))
                        result.backups_created += 1
                    outcome = FileWriteResult(
                        path=path,
                        written=resolution.written,
                        backup_path=resolution.backup_path,
                        action=resolution.action,
                    )
                else:
                    if path.exists():
                        raise WriteFailed(f"{path} appeared after conflict detection")
                    path.parent.mkdir(parents=True, exist_ok=True)
                    path.write_text(generated.content, encoding="utf-8")
                    created.append(path)
                    outcome = FileWriteResult(
                        path=path, written=True, backup_path=None, action=f"Written: {path}"
                    )

                if outcome.written:
                    result.files_written += 1
                else:
                    result.files_skipped += 1
                result.files.append(outcome)
                self.logger.debug(outcome.action)
        except Exception as exc:
            self.logger.error("Write failed, rolling back %d change(s): %s", len(created) + len(backups), exc)
            self._rollback(created, backups)
            if isinstance(exc, WriteFailed):
                raise
            raise WriteFailed(f"Failed to write generated files: {exc}") from exc

        self.logger.info(result.summary())
        return result

    def preview(
        self,
        files: Sequence[GeneratedFile],
        target_path: Path,
        conflicts: Iterable[FileConflictInfo],
        strategy: ConflictStrategy,
    ) -> WriteResult:
        """Describe what :meth:`write` would do without touching disk."""
        conflict_paths = {Path(conflict.path) for conflict in conflicts}
        result = WriteResult(dry_run=True)
        for generated in files:
            path = resolve_output_path(target_path, generated.path)
            if path in conflict_paths:
                action = f"Would resolve ({strategy.value}): {path}"
            else:
                action = f"Would write: {path}"
            result.files.append(FileWriteResult(path=path, written=False, backup_path=None, action=action))
            result.files_skipped += 1
        return result

    def _rollback(self, created: List[Path], backups: List[Tuple[Path, Path]]) -> None:
        for path in reversed(created):
            path.unlink(missing_ok=True)
        for original, backup in reversed(backups):
            if backup.exists():
                shutil.copy2(backup, original)
                backup.unlink()


def _repeated_paths(files: Sequence[GeneratedFile], target_path: Path) -> List[str]:
    seen: Set[Path] = set()
    repeated: List[str] = []
    for generated in files:
        path = resolve_output_path(target_path, generated.path)
        if path in seen and generated.path not in repeated:
            repeated.append(generated.path)
        seen.add(path)
    return repeated


__all__ = ["FileWriteResult", "OutputWriter", "WriteResult"]
