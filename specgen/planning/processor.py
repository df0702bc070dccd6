"""Turns a specification into an ordered generation plan."""

from __future__ import annotations

import uuid
from typing import List, Sequence, Tuple

from ..errors import SpecError
from ..logging import get_logger
from ..models import (
    AcceptanceCriterion,
    Constraint,
    ConstraintKind,
    GenerationPlan,
    GenerationStep,
    Specification,
)

# Order matters: constraints for one criterion are emitted in this order.
CONSTRAINT_KEYWORDS: Tuple[Tuple[str, ConstraintKind, Tuple[str, ...]], ...] = (
    (
        "naming",
        ConstraintKind.NAMING_CONVENTION,
        ("naming convention", "snake_case", "camelcase", "pascalcase"),
    ),
    ("documentation", ConstraintKind.DOCUMENTATION, ("doc comment", "documentation")),
    ("error-handling", ConstraintKind.ERROR_HANDLING, ("error handling", "error type")),
    ("testing", ConstraintKind.TESTING, ("test", "unit test")),
    ("quality", ConstraintKind.CODE_QUALITY, ("quality", "standard")),
)


class SpecProcessor:
    """Builds one step per requirement and infers constraints from criteria."""

    def __init__(self) -> None:
        self.logger = get_logger("planning")

    def process(self, spec: Specification) -> GenerationPlan:
        self._check_well_formed(spec)

        steps = sorted(
            (
                GenerationStep(
                    id=f"step-{requirement.id}",
                    description=requirement.user_story,
                    requirement_ids=(requirement.id,),
                    acceptance_criteria=tuple(requirement.acceptance_criteria),
                    priority=requirement.priority,
                    optional=False,
                    sequence=position,
                )
                for position, requirement in enumerate(spec.requirements)
            ),
            key=lambda step: step.sequence,
        )
        dependencies = tuple(
            (steps[index].id, steps[index + 1].id) for index in range(len(steps) - 1)
        )

        constraints: List[Constraint] = []
        for requirement in spec.requirements:
            for criterion in requirement.acceptance_criteria:
                constraints.extend(extract_constraints(criterion))

        plan = GenerationPlan(
            id=f"plan-{uuid.uuid4()}",
            spec_id=spec.id,
            steps=tuple(steps),
            dependencies=dependencies,
            constraints=tuple(constraints),
        )
        self.logger.debug(
            "Plan %s: %d steps, %d constraints", plan.id, len(plan.steps), len(plan.constraints)
        )
        return plan

    @staticmethod
    def _check_well_formed(spec: Specification) -> None:
        if not spec.id:
            raise SpecError("Specification is missing an id")
        seen: set[str] = set()
        for requirement in spec.requirements:
            if requirement.id in seen:
                raise SpecError(
                    f"Specification {spec.id} declares requirement {requirement.id} more than once"
                )
            seen.add(requirement.id)


def extract_constraints(criterion: AcceptanceCriterion) -> List[Constraint]:
    """Return one constraint per keyword family matched by ``criterion.then``."""
    text = criterion.then.lower()
    constraints: List[Constraint] = []
    for family, kind, keywords in CONSTRAINT_KEYWORDS:
        if _contains_any(text, keywords):
            constraints.append(
                Constraint(
                    id=f"constraint-{family}-{criterion.id}",
                    description=criterion.then,
                    kind=kind,
                )
            )
    return constraints


def _contains_any(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


__all__ = ["CONSTRAINT_KEYWORDS", "SpecProcessor", "extract_constraints"]
