"""Tests for specgen.config."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from specgen.config import ConfigError, GenerationManagerConfig, LLMConfig, SpecGenConfig, load_config
from specgen.models import ConflictStrategy


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, SpecGenConfig)
    assert config.root == tmp_path.resolve()
    assert config.llm is None
    generation = config.generation
    assert generation.project_root == tmp_path.resolve()
    assert generation.validate is True
    assert generation.review is False
    assert generation.dry_run is False
    assert generation.conflict_strategy is ConflictStrategy.SKIP
    assert generation.max_retries == 3
    assert generation.use_templates is False


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".specgen.yml"
    config_file.write_text(
        """
generation:
  validate: "no"
  review: true
  dry_run: yes
  conflict_strategy: Overwrite
  merge_mode: union
  max_retries: "5"
  use_templates: true
  templates_dir: "scaffold"
  template_values:
    name: my_project
    year: 2024
llm:
  model: "qwen2.5-coder"
  temperature: 0.15
  max_tokens: 256
  base_url: "http://localhost:12434/engines/v1"
  api_key: "test-key"
  request_timeout: 60
  executable: "ollama"
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    generation = config.generation
    assert generation.validate is False
    assert generation.review is True
    assert generation.dry_run is True
    assert generation.conflict_strategy is ConflictStrategy.OVERWRITE
    assert generation.merge_mode == "union"
    assert generation.max_retries == 5
    assert generation.templates_dir == tmp_path.resolve() / "scaffold"
    assert generation.template_values == {"name": "my_project", "year": "2024"}
    assert config.llm == LLMConfig(
        model="qwen2.5-coder",
        temperature=0.15,
        max_tokens=256,
        base_url="http://localhost:12434/engines/v1",
        api_key="test-key",
        request_timeout=60.0,
        executable="ollama",
    )


@pytest.mark.parametrize(
    "text, message",
    [
        ("generation: [\n", "Failed to parse"),
        ("- just\n- a list\n", "mapping"),
        ("generation:\n  conflict_strategy: prompt\n", "Unknown conflict_strategy"),
        ("generation:\n  merge_mode: three-way\n", "Unknown merge_mode"),
        ("generation:\n  max_retries: -1\n", "negative"),
        ("llm:\n  transport: grpc\n", "Unknown llm.transport"),
    ],
)
def test_load_config_rejects_invalid_documents(tmp_path: Path, text: str, message: str) -> None:
    (tmp_path / ".specgen.yml").write_text(text, encoding="utf-8")

    with pytest.raises(ConfigError, match=message):
        load_config(tmp_path)


def test_empty_file_yields_defaults(tmp_path: Path) -> None:
    (tmp_path / ".specgen.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).generation == GenerationManagerConfig(project_root=tmp_path.resolve())


def test_generation_config_is_frozen_and_replaceable(tmp_path: Path) -> None:
    config = GenerationManagerConfig(project_root=tmp_path)

    with pytest.raises(dataclasses.FrozenInstanceError):
        config.dry_run = True  # type: ignore[misc]

    variant = dataclasses.replace(config, dry_run=True)
    assert variant.dry_run is True
    assert config.dry_run is False
