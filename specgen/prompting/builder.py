"""Builds provider prompts from a generation plan."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, TemplateError

from ..logging import get_logger
from ..models import GenerationPlan, Specification

STEERING_DIR = Path(".specgen") / "steering"


class PromptBuildError(RuntimeError):
    """Raised when the prompt templates fail to load or render."""


class PromptBudgetError(RuntimeError):
    """Raised when a prompt cannot be built within the token budget."""


@dataclass
class GeneratedPrompt:
    """System and user messages ready to send to a provider."""

    id: str
    system_prompt: str
    user_prompt: str
    estimated_tokens: int
    steering_rules: List[str] = field(default_factory=list)


class PromptBuilder:
    """Renders the packaged Jinja templates for a plan."""

    def __init__(
        self,
        project_root: Path | None = None,
        *,
        templates_dir: Path | None = None,
        max_context_tokens: int = 4000,
    ) -> None:
        self.project_root = Path(project_root) if project_root else None
        self.templates_dir = templates_dir
        self.max_context_tokens = max_context_tokens
        self._env = self._create_env(templates_dir)
        self.logger = get_logger("prompting")

    def build(self, plan: GenerationPlan, spec: Specification) -> GeneratedPrompt:
        steering_rules = self.load_steering_rules()
        try:
            system_prompt = self._env.get_template("system.j2").render(steering_rules=steering_rules)
            user_prompt = self._env.get_template("user.j2").render(**self._user_context(plan, spec))
        except TemplateError as exc:
            raise PromptBuildError(f"Failed to render prompt templates: {exc}") from exc

        estimated = self._estimate_tokens(system_prompt) + self._estimate_tokens(user_prompt)
        if estimated > self.max_context_tokens:
            raise PromptBudgetError(
                f"Prompt needs ~{estimated} tokens, exceeding the budget of {self.max_context_tokens}"
            )
        self.logger.debug("Built prompt for %s (~%d tokens)", plan.id, estimated)
        return GeneratedPrompt(
            id=f"prompt-{uuid.uuid4()}",
            system_prompt=system_prompt.strip(),
            user_prompt=user_prompt.strip(),
            estimated_tokens=estimated,
            steering_rules=steering_rules,
        )

    def load_steering_rules(self) -> List[str]:
        """Read project steering files; missing directories yield no rules."""
        if self.project_root is None:
            return []
        directory = self.project_root / STEERING_DIR
        if not directory.is_dir():
            return []
        rules: List[str] = []
        for path in sorted(directory.glob("*.md")):
            text = path.read_text(encoding="utf-8").strip()
            if text:
                rules.append(text)
        return rules

    @staticmethod
    def _user_context(plan: GenerationPlan, spec: Specification) -> Dict[str, object]:
        steps = [
            {
                "id": step.id,
                "description": step.description,
                "priority": step.priority.value,
                "criteria": [criterion.to_dict() for criterion in step.acceptance_criteria],
            }
            for step in plan.steps
        ]
        constraints = [
            {"kind": constraint.kind.value, "description": constraint.description}
            for constraint in plan.constraints
        ]
        return {
            "spec": {"id": spec.id, "name": spec.name, "version": spec.version},
            "plan_id": plan.id,
            "steps": steps,
            "constraints": constraints,
            "design": spec.design,
        }

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)

    @staticmethod
    def _estimate_tokens(text: str) -> int:
        """Rudimentary token estimate based on character length."""
        cleaned = text.strip()
        if not cleaned:
            return 0
        return max(1, len(cleaned) // 4)


def estimate_tokens(text: str) -> int:
    return PromptBuilder._estimate_tokens(text)


__all__ = [
    "GeneratedPrompt",
    "PromptBudgetError",
    "PromptBuildError",
    "PromptBuilder",
    "estimate_tokens",
]
