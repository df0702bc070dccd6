"""Pipeline orchestration: specification in, files on disk out."""

from __future__ import annotations

import logging
import re
import threading
import time
import weakref
from pathlib import Path
from typing import Callable, List, Optional, Type, TypeVar

from .config import GenerationManagerConfig
from .conflicts import MERGE_FUNCTIONS, ConflictDetector, ConflictResolver
from .errors import (
    GenerationError,
    GenerationFailed,
    PromptError,
    SpecError,
    ValidationFailed,
    WriteFailed,
)
from .generation import ContentGenerator, Provider, ProviderContentGenerator, TemplateContentGenerator
from .logging import get_logger
from .models import (
    GeneratedFile,
    GenerationPlan,
    GenerationResult,
    GenerationStats,
    Specification,
    ValidationResult,
)
from .planning import SpecProcessor
from .prompting import PromptBuilder, estimate_tokens
from .quality import CodeQualityEnforcer
from .review import ReviewEngine
from .templates import TemplateEngine, discover_templates
from .validators import CodeValidator, Validator
from .writer import OutputWriter

T = TypeVar("T")

# Entries vanish once no caller holds the lock.
_PATH_LOCKS: weakref.WeakValueDictionary[Path, threading.Lock] = weakref.WeakValueDictionary()
_REGISTRY_LOCK = threading.Lock()
_SLUG = re.compile(r"[^A-Za-z0-9_.-]+")


def _lock_for(target_path: Path) -> threading.Lock:
    """Return the process-wide lock guarding writes under ``target_path``."""
    key = Path(target_path).expanduser().resolve()
    with _REGISTRY_LOCK:
        lock = _PATH_LOCKS.get(key)
        if lock is None:
            lock = _PATH_LOCKS[key] = threading.Lock()
        return lock


class GenerationManager:
    """Runs the eight generation stages in a fixed order.

    1. plan, 2. prompt, 3. content, 4. quality, 5. validate, 6. conflicts,
    7. review, 8. write. A stage only starts after the previous one succeeded;
    any failure aborts the run with the :class:`GenerationError` subclass
    naming that stage. Writing happens only when ``dry_run`` is off and the
    validation result is valid.
    """

    def __init__(
        self,
        config: GenerationManagerConfig | None = None,
        *,
        spec_processor: SpecProcessor | None = None,
        prompt_builder: PromptBuilder | None = None,
        quality_enforcer: CodeQualityEnforcer | None = None,
        validator: Validator | None = None,
        conflict_detector: ConflictDetector | None = None,
        review_engine: ReviewEngine | None = None,
        writer: OutputWriter | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or GenerationManagerConfig()
        self.spec_processor = spec_processor or SpecProcessor()
        self.prompt_builder = prompt_builder or PromptBuilder(self.config.project_root)
        self.quality_enforcer = quality_enforcer or CodeQualityEnforcer()
        self.validator = validator or CodeValidator()
        self.conflict_detector = conflict_detector or ConflictDetector()
        self.review_engine = review_engine or ReviewEngine()
        self.writer = writer or OutputWriter(ConflictResolver(MERGE_FUNCTIONS[self.config.merge_mode]))
        self._sleep = sleep
        self.logger = get_logger("orchestrator")

    def generate(
        self,
        spec: Specification,
        target_path: Path,
        provider: Provider | None,
        model: str | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Run the full pipeline once."""
        target = Path(target_path).expanduser().resolve()
        with _lock_for(target):
            return self._run(spec, target, provider, model, temperature, max_tokens)

    def generate_with_retries(
        self,
        spec: Specification,
        target_path: Path,
        provider: Provider | None,
        model: str | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> GenerationResult:
        """Re-run the whole pipeline up to ``max_retries`` times with exponential backoff."""
        attempts = self.config.max_retries
        for attempt in range(attempts):
            try:
                return self.generate(spec, target_path, provider, model, temperature, max_tokens)
            except GenerationError as exc:
                self.logger.warning(
                    "Attempt %d/%d failed at %s stage: %s", attempt + 1, attempts, exc.stage, exc
                )
                if attempt + 1 == attempts:
                    raise
                self._sleep(0.1 * 2**attempt)
        raise GenerationFailed("max_retries must be at least 1 to attempt generation")

    def _run(
        self,
        spec: Specification,
        target: Path,
        provider: Provider | None,
        model: str | None,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> GenerationResult:
        config = self.config
        started = time.perf_counter()
        self.logger.info("Generating %s into %s", spec.id, target)

        plan = self._stage("Plan extraction", SpecError, self.spec_processor.process, spec)
        self.logger.debug("Plan %s has %d step(s)", plan.id, len(plan.steps))

        prompt = self._stage("Prompt building", PromptError, self.prompt_builder.build, plan, spec)

        def _generate_content() -> List[GeneratedFile]:
            generator = self._content_generator(spec, plan, provider, model, temperature, max_tokens)
            return generator.generate(prompt)

        files = self._stage("Content generation", GenerationFailed, _generate_content)
        files = self._stage("Quality enforcement", GenerationFailed, self.quality_enforcer.enforce, files)

        if config.validate:
            validation = self._stage("Validation", ValidationFailed, self.validator.validate, files)
            for issue in validation.errors:
                self.logger.warning("Validation error: %s", issue)
        else:
            validation = ValidationResult.passed()

        conflicts = self._stage(
            "Conflict detection", GenerationFailed, self.conflict_detector.detect, files, target
        )
        for conflict in conflicts:
            if ConflictResolver.is_auto_mergeable(conflict):
                self.logger.debug("%s only adds lines to the existing file", conflict.path)

        review = None
        if config.review:
            review = self._stage("Review", GenerationFailed, self.review_engine.review, spec, files)
            self.logger.info(
                "Review score %.1f (%d/%d requirements)",
                review.score,
                review.requirements_covered,
                review.requirements_total,
            )

        written = False
        conflicts_resolved = 0
        if not config.dry_run and validation.valid:
            outcome = self._stage(
                "Writing",
                WriteFailed,
                self.writer.write,
                files,
                target,
                conflicts,
                config.conflict_strategy,
            )
            written = True
            conflicts_resolved = outcome.conflicts_resolved
        elif config.dry_run:
            preview = self.writer.preview(files, target, conflicts, config.conflict_strategy)
            self.logger.info("Dry run: %s", preview.summary())
            if conflicts:
                self.logger.info(
                    "Conflicts would be handled as: %s",
                    ConflictResolver.describe_strategy(config.conflict_strategy),
                )
            for conflict in conflicts:
                self.logger.debug("%s", ConflictDetector.render_diff(conflict))
        else:
            self.logger.warning("Skipping write: %d validation error(s)", len(validation.errors))

        stats = GenerationStats(
            tokens_used=prompt.estimated_tokens + sum(estimate_tokens(file.content) for file in files),
            time_elapsed=time.perf_counter() - started,
            files_generated=len(files),
            lines_generated=sum(file.line_count for file in files),
            conflicts_detected=len(conflicts),
            conflicts_resolved=conflicts_resolved,
        )
        return GenerationResult(
            files=files,
            validation_result=validation,
            conflicts=conflicts,
            stats=stats,
            review=review,
            written=written,
        )

    def _content_generator(
        self,
        spec: Specification,
        plan: GenerationPlan,
        provider: Provider | None,
        model: str | None,
        temperature: Optional[float],
        max_tokens: Optional[int],
    ) -> ContentGenerator:
        if provider is None:
            raise GenerationFailed("A generation provider is required")
        if self.config.use_templates:
            templates_dir = self.config.templates_dir or self.config.project_root / "templates"
            values = {"name": spec.name, "id": spec.id, "version": spec.version}
            values.update(self.config.template_values)
            return TemplateContentGenerator(discover_templates(templates_dir), TemplateEngine(values))
        return ProviderContentGenerator(
            provider,
            default_path=_SLUG.sub("-", plan.spec_id).strip("-") or "generated",
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    def _stage(self, name: str, error: Type[GenerationError], func: Callable[..., T], *args: object) -> T:
        try:
            return func(*args)
        except GenerationError:
            raise
        except Exception as exc:
            self._log_exception(f"{name} failed", exc)
            raise error(f"{name} failed: {exc}") from exc

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = ["GenerationManager"]
