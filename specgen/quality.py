"""Whitespace normalisation applied to every generated file."""

from __future__ import annotations

from typing import List, Sequence

from .models import GeneratedFile


class CodeQualityEnforcer:
    """Normalises newlines, trailing whitespace and blank-line runs."""

    def __init__(self, *, max_blank_lines: int = 2) -> None:
        self.max_blank_lines = max_blank_lines

    def enforce(self, files: Sequence[GeneratedFile]) -> List[GeneratedFile]:
        return [GeneratedFile(path=file.path, content=self.clean(file.content)) for file in files]

    def clean(self, content: str) -> str:
        normalized = content.replace("\r\n", "\n").replace("\r", "\n")
        cleaned: List[str] = []
        blank_run = 0
        for line in normalized.split("\n"):
            stripped = line.rstrip()
            if not stripped:
                blank_run += 1
                if blank_run > self.max_blank_lines:
                    continue
            else:
                blank_run = 0
            cleaned.append(stripped)

        while cleaned and cleaned[0] == "":
            cleaned.pop(0)
        while cleaned and cleaned[-1] == "":
            cleaned.pop()
        if not cleaned:
            return ""
        return "\n".join(cleaned) + "\n"


__all__ = ["CodeQualityEnforcer"]
