"""FastAPI application entrypoint for specgen service mode."""

from __future__ import annotations

import asyncio
import dataclasses
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, GenerationManagerConfig, LLMConfig, load_config, parse_strategy
from ..errors import GenerationError
from ..generation import Provider
from ..llm import LLMRunner
from ..models import GenerationResult
from ..orchestrator import GenerationManager
from ..planning import SpecProcessor
from ..report import build_report
from ..spec_loader import SpecLoadError, specification_from_dict

ManagerFactory = Callable[[GenerationManagerConfig], GenerationManager]
ProviderFactory = Callable[[Optional[LLMConfig]], Provider]


class PlanRequest(BaseModel):
    spec: Dict[str, Any]


class StepModel(BaseModel):
    id: str
    description: str
    requirement_ids: List[str]
    priority: str
    optional: bool
    sequence: int


class ConstraintModel(BaseModel):
    id: str
    kind: str
    description: str


class PlanResponse(BaseModel):
    id: str
    spec_id: str
    steps: List[StepModel]
    dependencies: List[List[str]]
    constraints: List[ConstraintModel]


class GenerateRequest(BaseModel):
    spec: Dict[str, Any]
    target_path: str
    dry_run: Optional[bool] = None
    conflict_strategy: Optional[str] = None
    validate_files: Optional[bool] = Field(default=None, alias="validate")
    review: Optional[bool] = None
    use_templates: Optional[bool] = None
    max_retries: Optional[int] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


class FileModel(BaseModel):
    path: str
    line_count: int


class ConflictModel(BaseModel):
    path: str
    added_lines: int
    removed_lines: int
    modified_lines: int


class ValidationModel(BaseModel):
    valid: bool
    errors: List[str]
    warnings: List[str]


class ReviewModel(BaseModel):
    score: float
    requirements_covered: int
    requirements_total: int
    suggestions: List[str]


class StatsModel(BaseModel):
    tokens_used: int
    time_elapsed: float
    files_generated: int
    lines_generated: int
    conflicts_detected: int
    conflicts_resolved: int


class GenerateResponse(BaseModel):
    written: bool
    files: List[FileModel]
    validation: ValidationModel
    conflicts: List[ConflictModel]
    stats: StatsModel
    review: Optional[ReviewModel] = None
    report: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str


def _default_manager(config: GenerationManagerConfig) -> GenerationManager:
    return GenerationManager(config)


def _default_provider(config: Optional[LLMConfig]) -> Provider:
    return LLMRunner.from_config(config)


def create_app(
    manager_factory: ManagerFactory = _default_manager,
    provider_factory: ProviderFactory = _default_provider,
) -> FastAPI:
    """Create the FastAPI application exposing specgen operations."""
    app = FastAPI(title="SpecGen Service", version="1.0.0")

    async def get_processor() -> SpecProcessor:
        return SpecProcessor()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/plan", response_model=PlanResponse)
    async def plan(
        payload: PlanRequest,
        processor: SpecProcessor = Depends(get_processor),
    ) -> PlanResponse:
        spec = specification_from_dict(payload.spec)
        result = processor.process(spec)
        return PlanResponse(
            id=result.id,
            spec_id=result.spec_id,
            steps=[
                StepModel(
                    id=step.id,
                    description=step.description,
                    requirement_ids=list(step.requirement_ids),
                    priority=step.priority.value,
                    optional=step.optional,
                    sequence=step.sequence,
                )
                for step in result.steps
            ],
            dependencies=[list(pair) for pair in result.dependencies],
            constraints=[
                ConstraintModel(id=item.id, kind=item.kind.value, description=item.description)
                for item in result.constraints
            ],
        )

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(payload: GenerateRequest) -> GenerateResponse:
        spec = specification_from_dict(payload.spec)
        target = Path(payload.target_path).expanduser().resolve()
        settings = load_config(target)
        config = dataclasses.replace(settings.generation, **_overrides(payload))
        manager = manager_factory(config)
        provider = provider_factory(settings.llm)

        def _run() -> GenerationResult:
            return manager.generate_with_retries(
                spec,
                target,
                provider,
                model=payload.model,
                temperature=payload.temperature,
                max_tokens=payload.max_tokens,
            )

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run)
        return _to_response(result)

    @app.exception_handler(SpecLoadError)
    async def spec_error_handler(_: Any, exc: SpecLoadError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(GenerationError)
    async def generation_error_handler(_: Any, exc: GenerationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc), "stage": exc.stage})

    return app


def _overrides(payload: GenerateRequest) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if payload.dry_run is not None:
        overrides["dry_run"] = payload.dry_run
    if payload.conflict_strategy is not None:
        overrides["conflict_strategy"] = parse_strategy(payload.conflict_strategy)
    if payload.validate_files is not None:
        overrides["validate"] = payload.validate_files
    if payload.review is not None:
        overrides["review"] = payload.review
    if payload.use_templates is not None:
        overrides["use_templates"] = payload.use_templates
    if payload.max_retries is not None:
        overrides["max_retries"] = payload.max_retries
    return overrides


def _to_response(result: GenerationResult) -> GenerateResponse:
    review = None
    if result.review is not None:
        review = ReviewModel(
            score=result.review.score,
            requirements_covered=result.review.requirements_covered,
            requirements_total=result.review.requirements_total,
            suggestions=list(result.review.suggestions),
        )
    return GenerateResponse(
        written=result.written,
        files=[FileModel(path=file.path, line_count=file.line_count) for file in result.files],
        validation=ValidationModel(
            valid=result.validation_result.valid,
            errors=[str(issue) for issue in result.validation_result.errors],
            warnings=[str(issue) for issue in result.validation_result.warnings],
        ),
        conflicts=[
            ConflictModel(
                path=str(conflict.path),
                added_lines=conflict.diff.added_lines,
                removed_lines=conflict.diff.removed_lines,
                modified_lines=conflict.diff.modified_lines,
            )
            for conflict in result.conflicts
        ],
        stats=StatsModel(**dataclasses.asdict(result.stats)),
        review=review,
        report=build_report(result),
    )


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
