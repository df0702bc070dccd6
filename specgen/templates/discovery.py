"""Discover template files on disk."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

TEMPLATE_SUFFIX = ".tmpl"


def discover_templates(directory: Path) -> Dict[str, str]:
    """Return ``{output_path: template_text}`` for every file under ``directory``.

    Output paths are POSIX-style and relative to ``directory``; a trailing
    ``.tmpl`` suffix is dropped.
    """
    root = Path(directory).expanduser()
    if not root.is_dir():
        raise FileNotFoundError(f"Template directory not found: {root}")

    templates: Dict[str, str] = {}
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        relative = path.relative_to(root).as_posix()
        if relative.endswith(TEMPLATE_SUFFIX):
            relative = relative[: -len(TEMPLATE_SUFFIX)]
        templates[relative] = path.read_text(encoding="utf-8")
    return templates


__all__ = ["TEMPLATE_SUFFIX", "discover_templates"]
