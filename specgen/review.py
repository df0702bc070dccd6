"""Heuristic review of generated files against the specification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence, Set

from .models import GeneratedFile, Requirement, ReviewResult, Specification

_WORD = re.compile(r"[a-z][a-z0-9_]{3,}")
_STOPWORDS = {
    "able",
    "after",
    "also",
    "because",
    "been",
    "from",
    "have",
    "into",
    "must",
    "only",
    "should",
    "some",
    "than",
    "that",
    "their",
    "them",
    "then",
    "there",
    "these",
    "they",
    "this",
    "user",
    "want",
    "when",
    "where",
    "which",
    "will",
    "with",
    "would",
}


@dataclass
class ReviewEngine:
    """Scores how many requirements the generated content appears to address.

    A requirement counts as covered when its id is mentioned, or when at
    least ``keyword_threshold`` of the keywords in its user story occur in
    the generated content. The score runs from 0 to 100.
    """

    keyword_threshold: float = 0.5

    def review(self, spec: Specification, files: Sequence[GeneratedFile]) -> ReviewResult:
        corpus = "\n".join(file.content for file in files).lower()
        corpus_words = set(_WORD.findall(corpus))
        suggestions: List[str] = []

        covered = 0
        for requirement in spec.requirements:
            if self._is_covered(requirement, corpus, corpus_words):
                covered += 1
            else:
                suggestions.append(
                    f"Requirement {requirement.id} does not appear to be addressed: {requirement.user_story}"
                )

        total = len(spec.requirements)
        coverage = covered / total if total else 1.0
        score = 100.0 * coverage

        if files and not any("test" in file.path.lower() for file in files):
            suggestions.append("No test files were generated; consider adding tests.")
            score -= 10
        empty = [file.path for file in files if not file.content.strip()]
        if empty:
            suggestions.append(f"Empty files generated: {', '.join(empty)}")
            score -= min(len(empty) * 5, 20)

        return ReviewResult(
            score=max(score, 0.0),
            requirements_covered=covered,
            requirements_total=total,
            suggestions=suggestions,
        )

    def _is_covered(self, requirement: Requirement, corpus: str, corpus_words: Set[str]) -> bool:
        if requirement.id.lower() in corpus:
            return True
        keywords = {word for word in _WORD.findall(requirement.user_story.lower()) if word not in _STOPWORDS}
        if not keywords:
            return False
        hits = sum(1 for word in keywords if word in corpus_words)
        return hits / len(keywords) >= self.keyword_threshold


__all__ = ["ReviewEngine"]
