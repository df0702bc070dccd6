"""Load specifications from YAML or JSON documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Mapping

import yaml

from .models import AcceptanceCriterion, Priority, Requirement, Specification


class SpecLoadError(RuntimeError):
    """Raised when a specification document cannot be read."""


def load_specification(path: Path) -> Specification:
    """Read a specification file from disk."""
    spec_path = Path(path).expanduser()
    try:
        text = spec_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecLoadError(f"Unable to read specification {spec_path}: {exc}") from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise SpecLoadError(f"Failed to parse {spec_path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise SpecLoadError(f"{spec_path.name} must contain a mapping at the root")
    return specification_from_dict(data)


def specification_from_dict(data: Mapping[str, Any]) -> Specification:
    """Build a :class:`Specification` from decoded YAML/JSON data."""
    spec_id = _require_str(data, "id", "specification")
    name = _require_str(data, "name", "specification")
    version = str(data.get("version") or "0.1.0")

    requirements: List[Requirement] = []
    raw_requirements = data.get("requirements") or []
    if not isinstance(raw_requirements, list):
        raise SpecLoadError("'requirements' must be a list")
    for index, raw in enumerate(raw_requirements):
        if not isinstance(raw, dict):
            raise SpecLoadError(f"Requirement #{index + 1} must be a mapping")
        requirements.append(_requirement_from_dict(raw))

    design = data.get("design")
    tasks = data.get("tasks") or []
    metadata = data.get("metadata") or {}
    return Specification(
        id=spec_id,
        name=name,
        version=version,
        requirements=tuple(requirements),
        design=str(design) if design is not None else None,
        tasks=tuple(str(task) for task in tasks) if isinstance(tasks, list) else (),
        metadata=dict(metadata) if isinstance(metadata, dict) else {},
    )


def _requirement_from_dict(data: Dict[str, Any]) -> Requirement:
    requirement_id = _require_str(data, "id", "requirement")
    user_story = _require_str(data, "user_story", f"requirement {requirement_id}")
    priority_value = str(data.get("priority") or Priority.MUST.value).lower()
    try:
        priority = Priority(priority_value)
    except ValueError as exc:
        raise SpecLoadError(
            f"Requirement {requirement_id} has unknown priority '{priority_value}'"
        ) from exc

    criteria: List[AcceptanceCriterion] = []
    for raw in data.get("acceptance_criteria") or []:
        if not isinstance(raw, dict):
            raise SpecLoadError(f"Acceptance criteria for {requirement_id} must be mappings")
        criteria.append(
            AcceptanceCriterion(
                id=_require_str(raw, "id", f"criterion of {requirement_id}"),
                when=str(raw.get("when") or ""),
                then=str(raw.get("then") or ""),
            )
        )
    return Requirement(
        id=requirement_id,
        user_story=user_story,
        acceptance_criteria=tuple(criteria),
        priority=priority,
    )


def _require_str(data: Mapping[str, Any], key: str, owner: str) -> str:
    value = data.get(key)
    if isinstance(value, (str, int, float)) and str(value).strip():
        return str(value)
    raise SpecLoadError(f"Missing '{key}' for {owner}")


__all__ = ["SpecLoadError", "load_specification", "specification_from_dict"]
