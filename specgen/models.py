"""Core data models shared across specgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


class Priority(str, Enum):
    """MoSCoW priority attached to a requirement."""

    MUST = "must"
    SHOULD = "should"
    COULD = "could"


class ConstraintKind(str, Enum):
    """Family of non-functional rule inferred from acceptance criteria."""

    NAMING_CONVENTION = "naming_convention"
    DOCUMENTATION = "documentation"
    ERROR_HANDLING = "error_handling"
    TESTING = "testing"
    CODE_QUALITY = "code_quality"
    OTHER = "other"


class ConflictStrategy(str, Enum):
    """Policy applied to a generated file that collides with an existing one."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    MERGE = "merge"


@dataclass(frozen=True)
class AcceptanceCriterion:
    """A WHEN/THEN pair attached to a requirement."""

    id: str
    when: str
    then: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "when": self.when, "then": self.then}


@dataclass(frozen=True)
class Requirement:
    """A user story and the criteria that accept it."""

    id: str
    user_story: str
    acceptance_criteria: Tuple[AcceptanceCriterion, ...] = ()
    priority: Priority = Priority.MUST

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_story": self.user_story,
            "priority": self.priority.value,
            "acceptance_criteria": [item.to_dict() for item in self.acceptance_criteria],
        }


@dataclass(frozen=True)
class Specification:
    """Immutable description of what should be generated."""

    id: str
    name: str
    version: str
    requirements: Tuple[Requirement, ...] = ()
    design: Optional[str] = None
    tasks: Tuple[str, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "requirements": [requirement.to_dict() for requirement in self.requirements],
        }
        if self.design is not None:
            payload["design"] = self.design
        if self.tasks:
            payload["tasks"] = list(self.tasks)
        if self.metadata:
            payload["metadata"] = dict(self.metadata)
        return payload


@dataclass(frozen=True)
class Constraint:
    """A rule extracted from a criterion's expected outcome."""

    id: str
    description: str
    kind: ConstraintKind

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "description": self.description, "kind": self.kind.value}


@dataclass(frozen=True)
class GenerationStep:
    """One unit of generation work derived from a single requirement."""

    id: str
    description: str
    requirement_ids: Tuple[str, ...]
    acceptance_criteria: Tuple[AcceptanceCriterion, ...]
    priority: Priority
    optional: bool
    sequence: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "requirement_ids": list(self.requirement_ids),
            "acceptance_criteria": [item.to_dict() for item in self.acceptance_criteria],
            "priority": self.priority.value,
            "optional": self.optional,
            "sequence": self.sequence,
        }


@dataclass(frozen=True)
class GenerationPlan:
    """Ordered, linearly chained breakdown of a specification."""

    id: str
    spec_id: str
    steps: Tuple[GenerationStep, ...]
    dependencies: Tuple[Tuple[str, str], ...]
    constraints: Tuple[Constraint, ...]

    def constraint_kinds(self) -> List[ConstraintKind]:
        seen: List[ConstraintKind] = []
        for constraint in self.constraints:
            if constraint.kind not in seen:
                seen.append(constraint.kind)
        return seen

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "spec_id": self.spec_id,
            "steps": [step.to_dict() for step in self.steps],
            "dependencies": [list(pair) for pair in self.dependencies],
            "constraints": [constraint.to_dict() for constraint in self.constraints],
        }


@dataclass(frozen=True)
class GeneratedFile:
    """A file produced by a content generator, relative to the target path."""

    path: str
    content: str

    @property
    def line_count(self) -> int:
        return len(self.content.splitlines())


@dataclass(frozen=True)
class FileDiff:
    """Line-level change counts between existing and generated content."""

    added_lines: int = 0
    removed_lines: int = 0
    modified_lines: int = 0

    @property
    def total_changes(self) -> int:
        return self.added_lines + self.removed_lines + self.modified_lines


@dataclass(frozen=True)
class FileConflictInfo:
    """A generated file whose target already exists on disk."""

    path: Path
    old_content: str
    new_content: str
    diff: FileDiff


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of applying a conflict strategy to one conflict."""

    written: bool
    backup_path: Optional[Path]
    action: str


@dataclass
class ValidationIssue:
    """A single problem found while validating generated files."""

    path: str
    message: str
    line: Optional[int] = None

    def __str__(self) -> str:
        location = f"{self.path}:{self.line}" if self.line is not None else self.path
        return f"{location}: {self.message}"


@dataclass
class ValidationResult:
    """Aggregated validation outcome; ``valid`` gates the write stage."""

    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    @classmethod
    def passed(cls) -> "ValidationResult":
        return cls(valid=True)


@dataclass
class ReviewResult:
    """Summary of how well generated files reflect the specification."""

    score: float
    requirements_covered: int
    requirements_total: int
    suggestions: List[str] = field(default_factory=list)


@dataclass
class GenerationStats:
    """Counters collected for every completed pipeline run."""

    tokens_used: int = 0
    time_elapsed: float = 0.0
    files_generated: int = 0
    lines_generated: int = 0
    conflicts_detected: int = 0
    conflicts_resolved: int = 0


@dataclass
class GenerationResult:
    """Terminal artifact of one pipeline run."""

    files: List[GeneratedFile]
    validation_result: ValidationResult
    conflicts: List[FileConflictInfo]
    stats: GenerationStats
    review: Optional[ReviewResult] = None
    written: bool = False


__all__ = [
    "AcceptanceCriterion",
    "ConflictStrategy",
    "Constraint",
    "ConstraintKind",
    "FileConflictInfo",
    "FileDiff",
    "GeneratedFile",
    "GenerationPlan",
    "GenerationResult",
    "GenerationStats",
    "GenerationStep",
    "Priority",
    "Requirement",
    "ResolutionResult",
    "ReviewResult",
    "Specification",
    "ValidationIssue",
    "ValidationResult",
]
