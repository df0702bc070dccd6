"""Configuration loading for specgen (.specgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .conflicts import MERGE_FUNCTIONS
from .models import ConflictStrategy

CONFIG_FILENAME = ".specgen.yml"
LLM_TRANSPORTS = ("http", "cli")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class GenerationManagerConfig:
    """Settings read by the pipeline; replace() between runs, never mutate."""

    project_root: Path = field(default_factory=Path.cwd)
    validate: bool = True
    review: bool = False
    dry_run: bool = False
    conflict_strategy: ConflictStrategy = ConflictStrategy.SKIP
    merge_mode: str = "markers"
    max_retries: int = 3
    use_templates: bool = False
    templates_dir: Optional[Path] = None
    template_values: Dict[str, str] = field(default_factory=dict)


@dataclass
class LLMConfig:
    """Model runtime settings from .specgen.yml."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None
    executable: Optional[str] = None
    transport: Optional[str] = None


@dataclass
class SpecGenConfig:
    """Everything defined in .specgen.yml."""

    root: Path
    generation: GenerationManagerConfig
    llm: Optional[LLMConfig] = None


def load_config(config_path: Path) -> SpecGenConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SpecGenConfig(root=root, generation=GenerationManagerConfig(project_root=root))

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    generation = _parse_generation(_as_dict(data.get("generation")), root)

    llm = _parse_llm(_as_dict(data.get("llm")))
    return SpecGenConfig(root=root, generation=generation, llm=llm)


def _parse_llm(section: Dict[str, Any]) -> Optional[LLMConfig]:
    if not section:
        return None
    return LLMConfig(
        model=_as_str(section.get("model")),
        temperature=_as_float(section.get("temperature")),
        max_tokens=_as_int(section.get("max_tokens")),
        base_url=_as_str(section.get("base_url")),
        api_key=_as_str(section.get("api_key")),
        request_timeout=_as_float(section.get("request_timeout")),
        executable=_as_str(section.get("executable")),
        transport=_parse_transport(section.get("transport")),
    )


def _parse_transport(value: Any) -> Optional[str]:
    if value is None:
        return None
    transport = str(value).strip().lower()
    if transport not in LLM_TRANSPORTS:
        raise ConfigError(
            f"Unknown llm.transport '{value}' (expected one of: {', '.join(LLM_TRANSPORTS)})"
        )
    return transport


def parse_strategy(value: Any) -> ConflictStrategy:
    try:
        return ConflictStrategy(str(value).strip().lower())
    except ValueError:
        choices = ", ".join(strategy.value for strategy in ConflictStrategy)
        raise ConfigError(f"Unknown conflict_strategy '{value}' (expected one of: {choices})") from None


def _parse_generation(data: Dict[str, Any], root: Path) -> GenerationManagerConfig:
    defaults = GenerationManagerConfig(project_root=root)
    if not data:
        return defaults

    strategy = defaults.conflict_strategy
    if data.get("conflict_strategy") is not None:
        strategy = parse_strategy(data["conflict_strategy"])

    merge_mode = _as_str(data.get("merge_mode")) or defaults.merge_mode
    if merge_mode not in MERGE_FUNCTIONS:
        raise ConfigError(f"Unknown merge_mode '{merge_mode}'")

    max_retries = _as_int(data.get("max_retries"))
    if max_retries is not None and max_retries < 0:
        raise ConfigError("max_retries must not be negative")

    templates_dir = _as_str(data.get("templates_dir"))
    template_values = {
        str(key): str(value)
        for key, value in _as_dict(data.get("template_values")).items()
        if value is not None
    }

    return GenerationManagerConfig(
        project_root=root,
        validate=_bool_or(data.get("validate"), defaults.validate),
        review=_bool_or(data.get("review"), defaults.review),
        dry_run=_bool_or(data.get("dry_run"), defaults.dry_run),
        conflict_strategy=strategy,
        merge_mode=merge_mode,
        max_retries=defaults.max_retries if max_retries is None else max_retries,
        use_templates=_bool_or(data.get("use_templates"), defaults.use_templates),
        templates_dir=root / templates_dir if templates_dir else None,
        template_values=template_values,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "GenerationManagerConfig",
    "LLMConfig",
    "SpecGenConfig",
    "load_config",
    "parse_strategy",
]
