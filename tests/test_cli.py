"""CLI parser and command tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from specgen import cli
from specgen.cli import _build_parser, main

SPEC_YAML = """
id: greeter
name: Greeter
version: 2.0.0
requirements:
  - id: R1
    user_story: As a user I want a greeting
    acceptance_criteria:
      - id: R1.1
        when: called
        then: names use snake_case
  - id: R2
    user_story: As a user I want a farewell
"""


@pytest.fixture
def spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "spec.yml"
    path.write_text(SPEC_YAML, encoding="utf-8")
    return path


class _StubRunner:
    response = "// File: greeter.py\ndef greet():\n    return 'hi'\n"
    prompts: list[str] = []

    @classmethod
    def from_config(cls, config, *, transport=None):
        return cls()

    def run(self, prompt, *, system=None, model=None, temperature=None, max_tokens=None):
        self.prompts.append(prompt)
        return self.response


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    assert parser.parse_args(["--verbose", "plan", "spec.yml"]).verbose is True
    assert parser.parse_args(["plan", "spec.yml", "--verbose"]).verbose is True
    assert parser.parse_args(["plan", "spec.yml"]).verbose is False


def test_generate_flags_default_to_config_values() -> None:
    args = _build_parser().parse_args(["generate", "spec.yml"])

    assert args.target == "."
    assert args.dry_run is None
    assert args.strategy is None
    assert args.validate is None
    assert args.retries is None


def test_generate_flags_are_parsed() -> None:
    args = _build_parser().parse_args(
        [
            "generate",
            "spec.yml",
            "--target",
            "out",
            "--dry-run",
            "--strategy",
            "merge",
            "--no-validate",
            "--review",
            "--use-templates",
            "--retries",
            "2",
        ]
    )

    assert (args.target, args.dry_run, args.strategy, args.validate) == ("out", True, "merge", False)
    assert (args.review, args.use_templates, args.retries) == (True, True, 2)


def test_unknown_strategy_is_rejected() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["generate", "spec.yml", "--strategy", "prompt"])


def test_plan_prints_json(spec_file: Path, capsys) -> None:
    main(["plan", str(spec_file)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["spec_id"] == "greeter"
    assert [step["id"] for step in payload["steps"]] == ["step-R1", "step-R2"]
    assert payload["dependencies"] == [["step-R1", "step-R2"]]
    assert payload["constraints"][0]["kind"] == "naming_convention"


def test_plan_reports_load_errors(tmp_path: Path, capsys) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["plan", str(tmp_path / "missing.yml")])

    assert excinfo.value.code == 1
    assert "specgen plan failed" in capsys.readouterr().err


def test_render_substitutes_values(tmp_path: Path, capsys) -> None:
    template = tmp_path / "greeting.tmpl"
    template.write_text("Hello {{Name}}{{#if title}}, {{title}}{{/if}}!\n", encoding="utf-8")

    main(["render", str(template), "--set", "name=my_project"])

    assert capsys.readouterr().out == "Hello MyProject!\n"


def test_render_reports_missing_values(tmp_path: Path, capsys) -> None:
    template = tmp_path / "greeting.tmpl"
    template.write_text("Hello {{name}}\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["render", str(template), "--simple"])

    assert excinfo.value.code == 1
    assert "Missing value for placeholder 'name'" in capsys.readouterr().err


def test_generate_writes_files(tmp_path: Path, spec_file: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "LLMRunner", _StubRunner)
    target = tmp_path / "out"
    target.mkdir()

    main(["generate", str(spec_file), "--target", str(target)])

    assert (target / "greeter.py").read_text(encoding="utf-8") == "def greet():\n    return 'hi'\n"
    output = capsys.readouterr().out
    assert "Generated 1 file(s), 2 line(s)" in output
    assert "Files written" in output


def test_generate_dry_run_leaves_target_untouched(tmp_path: Path, spec_file: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "LLMRunner", _StubRunner)
    target = tmp_path / "out"
    target.mkdir()

    main(["generate", str(spec_file), "--target", str(target), "--dry-run", "--review"])

    assert list(target.iterdir()) == []
    output = capsys.readouterr().out
    assert "No files written" in output
    assert "Review score" in output


def test_generate_reports_stage_on_failure(tmp_path: Path, spec_file: Path, monkeypatch, capsys) -> None:
    class EmptyRunner(_StubRunner):
        response = "   "

    monkeypatch.setattr(cli, "LLMRunner", EmptyRunner)
    target = tmp_path / "out"
    target.mkdir()

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(spec_file), "--target", str(target), "--retries", "1"])

    assert excinfo.value.code == 1
    assert "failed at generation stage" in capsys.readouterr().err


def test_generate_reports_config_errors(tmp_path: Path, spec_file: Path, capsys) -> None:
    target = tmp_path / "out"
    target.mkdir()
    (target / ".specgen.yml").write_text("generation:\n  conflict_strategy: ask\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["generate", str(spec_file), "--target", str(target)])

    assert excinfo.value.code == 1
    assert "Unknown conflict_strategy" in capsys.readouterr().err


def test_generate_prints_conflict_summary(tmp_path: Path, spec_file: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "LLMRunner", _StubRunner)
    target = tmp_path / "out"
    target.mkdir()
    (target / "greeter.py").write_text("def greet():\n    return 'hello'\n", encoding="utf-8")

    main(["generate", str(spec_file), "--target", str(target), "--strategy", "overwrite"])

    output = capsys.readouterr().out
    assert "Conflicts: 1 detected, 1 resolved" in output
    assert "greeter.py: 1 changes (+0 -0 ~1)" in output
    assert (target / "greeter.py.bak").read_text(encoding="utf-8") == "def greet():\n    return 'hello'\n"


def test_generate_json_prints_report(tmp_path: Path, spec_file: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(cli, "LLMRunner", _StubRunner)
    target = tmp_path / "out"
    target.mkdir()

    main(["generate", str(spec_file), "--target", str(target), "--dry-run", "--json"])

    report = json.loads(capsys.readouterr().out)
    assert report["summary"]["success"] is True
    assert report["summary"]["written"] is False
    assert report["files"]["paths"] == ["greeter.py"]
    assert report["files"]["by_language"] == {"python": 1}
    assert report["review"] is None
    assert set(report) == {"summary", "files", "validation", "conflicts", "review", "performance"}
