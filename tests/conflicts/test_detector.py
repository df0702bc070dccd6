"""Tests for conflict detection and diff counting."""

from __future__ import annotations

from pathlib import Path

import pytest

from specgen.conflicts import ConflictDetector, resolve_output_path
from specgen.models import GeneratedFile


def test_detect_reports_existing_files_only(target_dir: Path) -> None:
    (target_dir / "src").mkdir()
    (target_dir / "src" / "app.py").write_text("a\nb\n", encoding="utf-8")
    files = [
        GeneratedFile(path="src/app.py", content="a\nc\n"),
        GeneratedFile(path="src/new.py", content="x\n"),
    ]

    conflicts = ConflictDetector().detect(files, target_dir)

    assert len(conflicts) == 1
    conflict = conflicts[0]
    assert conflict.path == (target_dir / "src" / "app.py").resolve()
    assert conflict.path.is_absolute()
    assert conflict.old_content == "a\nb\n"
    assert conflict.new_content == "a\nc\n"
    assert conflict.diff.modified_lines == 1


def test_identical_content_is_still_a_conflict(target_dir: Path) -> None:
    (target_dir / "same.txt").write_text("same\n", encoding="utf-8")

    conflicts = ConflictDetector().detect([GeneratedFile(path="same.txt", content="same\n")], target_dir)

    assert len(conflicts) == 1
    assert conflicts[0].diff.total_changes == 0


@pytest.mark.parametrize(
    "old, new, added, removed, modified",
    [
        ("a\nb\n", "a\nb\nc\n", 1, 0, 0),
        ("a\nb\nc\n", "a\nc\n", 0, 1, 0),
        ("a\nb\n", "a\nB\n", 0, 0, 1),
        ("a\nb\n", "x\ny\nz\n", 1, 0, 2),
        ("", "one\n", 1, 0, 0),
    ],
)
def test_compute_diff_counts(old: str, new: str, added: int, removed: int, modified: int) -> None:
    diff = ConflictDetector.compute_diff(old, new)

    assert (diff.added_lines, diff.removed_lines, diff.modified_lines) == (added, removed, modified)
    assert diff.total_changes == added + removed + modified


@pytest.mark.parametrize("relative", ["", "/etc/passwd", "../outside.txt", "src/../../outside.txt"])
def test_resolve_output_path_rejects_unsafe_paths(target_dir: Path, relative: str) -> None:
    with pytest.raises(ValueError):
        resolve_output_path(target_dir, relative)


def test_render_diff_and_summary(target_dir: Path) -> None:
    (target_dir / "notes.md").write_text("old\n", encoding="utf-8")
    conflicts = ConflictDetector().detect([GeneratedFile(path="notes.md", content="new\n")], target_dir)

    rendered = ConflictDetector.render_diff(conflicts[0])
    summary = ConflictDetector.summarize(conflicts)

    assert "-old" in rendered and "+new" in rendered
    assert summary.endswith("1 changes (+0 -0 ~1)")
