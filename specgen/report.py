"""Text and JSON reports for a finished generation run."""

from __future__ import annotations

import json
from collections import Counter
from pathlib import PurePosixPath
from typing import Any, Dict, List

from .conflicts import ConflictDetector
from .models import GenerationResult

LANGUAGES = {
    ".py": "python",
    ".rs": "rust",
    ".ts": "typescript",
    ".js": "javascript",
    ".go": "go",
    ".java": "java",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
}


def build_report(result: GenerationResult) -> Dict[str, Any]:
    """Summarise ``result`` as JSON-friendly sections.

    The keys are ``summary``, ``files``, ``validation``, ``conflicts``,
    ``review`` (``None`` when the run was not reviewed) and ``performance``.
    """
    stats = result.stats
    validation = result.validation_result
    pending = stats.conflicts_detected - stats.conflicts_resolved
    success = validation.valid and pending == 0
    if success:
        status = "Generation completed successfully"
    elif not validation.valid:
        status = f"Generation completed with {len(validation.errors)} validation error(s)"
    else:
        status = f"Generation completed with {pending} unresolved conflict(s)"

    total_lines = sum(file.line_count for file in result.files)
    review = None
    if result.review is not None:
        review = {
            "score": round(result.review.score, 1),
            "requirements_covered": result.review.requirements_covered,
            "requirements_total": result.review.requirements_total,
            "suggestions": list(result.review.suggestions),
        }

    return {
        "summary": {
            "success": success,
            "status": status,
            "files_generated": stats.files_generated,
            "lines_generated": stats.lines_generated,
            "written": result.written,
        },
        "files": {
            "total": len(result.files),
            "total_lines": total_lines,
            "average_lines_per_file": round(total_lines / len(result.files), 1) if result.files else 0.0,
            "by_language": dict(sorted(Counter(language_of(file.path) for file in result.files).items())),
            "paths": [file.path for file in result.files],
        },
        "validation": {
            "passed": validation.valid,
            "error_count": len(validation.errors),
            "warning_count": len(validation.warnings),
            "errors": [str(issue) for issue in validation.errors],
            "warnings": [str(issue) for issue in validation.warnings],
            "errors_by_file": dict(Counter(issue.path for issue in validation.errors)),
        },
        "conflicts": {
            "detected": stats.conflicts_detected,
            "resolved": stats.conflicts_resolved,
            "pending": pending,
            "files": [
                {
                    "path": str(conflict.path),
                    "added_lines": conflict.diff.added_lines,
                    "removed_lines": conflict.diff.removed_lines,
                    "modified_lines": conflict.diff.modified_lines,
                }
                for conflict in result.conflicts
            ],
        },
        "review": review,
        "performance": {
            "time_elapsed_seconds": round(stats.time_elapsed, 3),
            "tokens_used": stats.tokens_used,
            "files_per_second": _rate(stats.files_generated, stats.time_elapsed),
            "lines_per_second": _rate(stats.lines_generated, stats.time_elapsed),
        },
    }


def render_json(result: GenerationResult) -> str:
    return json.dumps(build_report(result), indent=2)


def render_text(result: GenerationResult) -> str:
    """Plain-text report printed by ``specgen generate``."""
    report = build_report(result)
    summary = report["summary"]
    files = report["files"]
    lines: List[str] = [
        f"Generated {summary['files_generated']} file(s), {summary['lines_generated']} line(s)",
        f"Status: {summary['status']}",
    ]
    lines.extend(f"  {path}" for path in files["paths"])
    if files["by_language"]:
        languages = ", ".join(f"{name} {count}" for name, count in files["by_language"].items())
        lines.append(f"Languages: {languages}")

    lines.extend(f"error: {issue}" for issue in report["validation"]["errors"])
    lines.extend(f"warning: {issue}" for issue in report["validation"]["warnings"])

    conflicts = report["conflicts"]
    if result.conflicts:
        lines.append(f"Conflicts: {conflicts['detected']} detected, {conflicts['resolved']} resolved")
        lines.append(ConflictDetector.summarize(result.conflicts))

    review = report["review"]
    if review is not None:
        lines.append(
            f"Review score: {review['score']:.1f} "
            f"({review['requirements_covered']}/{review['requirements_total']} requirements)"
        )
        lines.extend(f"  - {suggestion}" for suggestion in review["suggestions"])

    performance = report["performance"]
    lines.append(
        f"Elapsed: {performance['time_elapsed_seconds']:.2f}s, "
        f"{performance['tokens_used']} token(s), "
        f"{performance['lines_per_second']:.1f} line(s)/s"
    )
    lines.append("Files written" if summary["written"] else "No files written")
    return "\n".join(lines)


def language_of(path: str) -> str:
    suffix = PurePosixPath(path).suffix.lower()
    return LANGUAGES.get(suffix, suffix.lstrip(".") or "other")


def _rate(count: int, seconds: float) -> float:
    return round(count / seconds, 2) if seconds > 0 else 0.0


__all__ = ["build_report", "language_of", "render_json", "render_text"]
