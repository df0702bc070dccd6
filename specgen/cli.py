"""CLI entrypoints for specgen commands."""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Dict, List

from .config import ConfigError, load_config, parse_strategy
from .errors import GenerationError
from .llm import LLMRunner
from .logging import configure_logging
from .models import ConflictStrategy, GenerationResult
from .orchestrator import GenerationManager
from .planning import SpecProcessor
from .report import render_json, render_text
from .spec_loader import SpecLoadError, load_specification
from .templates import TemplateEngine, TemplateError


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="specgen",
        description="Generate source files from requirement specifications.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write DEBUG logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    plan_parser = subparsers.add_parser("plan", help="Print the generation plan for a specification.")
    _add_verbose_option(plan_parser, suppress_default=True)
    plan_parser.add_argument("spec", help="Path to a YAML or JSON specification.")

    render_parser = subparsers.add_parser("render", help="Render a template file to stdout.")
    _add_verbose_option(render_parser, suppress_default=True)
    render_parser.add_argument("template", help="Path to the template file.")
    render_parser.add_argument(
        "--set",
        dest="values",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Bind a placeholder value (repeatable).",
    )
    render_parser.add_argument(
        "--simple",
        action="store_true",
        help="Use direct substitution; conditional blocks are rejected.",
    )

    generate_parser = subparsers.add_parser("generate", help="Generate files from a specification.")
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument("spec", help="Path to a YAML or JSON specification.")
    generate_parser.add_argument(
        "--target",
        default=".",
        help="Directory that receives generated files (defaults to current directory).",
    )
    generate_parser.add_argument(
        "--config",
        default=None,
        help="Path to .specgen.yml or its directory (defaults to the target directory).",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Run every stage but never write to disk.",
    )
    generate_parser.add_argument(
        "--strategy",
        choices=[strategy.value for strategy in ConflictStrategy],
        default=None,
        help="How to handle files that already exist.",
    )
    generate_parser.add_argument(
        "--no-validate",
        dest="validate",
        action="store_false",
        default=None,
        help="Skip validation of generated files.",
    )
    generate_parser.add_argument(
        "--review",
        action="store_true",
        default=None,
        help="Review generated files against the specification.",
    )
    generate_parser.add_argument(
        "--use-templates",
        action="store_true",
        default=None,
        help="Render templates instead of calling the model.",
    )
    generate_parser.add_argument("--retries", type=int, default=None, help="Maximum pipeline attempts.")
    generate_parser.add_argument("--model", default=None, help="Model name override.")
    generate_parser.add_argument("--temperature", type=float, default=None)
    generate_parser.add_argument("--max-tokens", type=int, default=None)
    generate_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print the run report as JSON.",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for specgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=args.quiet,
        log_file=Path(args.log_file) if args.log_file else None,
    )

    if args.command == "plan":
        try:
            plan = SpecProcessor().process(load_specification(Path(args.spec)))
        except (SpecLoadError, GenerationError) as exc:
            parser.exit(1, f"specgen plan failed: {exc}\n")
        print(json.dumps(plan.to_dict(), indent=2))
    elif args.command == "render":
        try:
            values = _parse_values(args.values)
            text = Path(args.template).read_text(encoding="utf-8")
            engine = TemplateEngine(values)
            output = engine.render_simple(text) if args.simple else engine.render(text).content
        except (OSError, ValueError, TemplateError) as exc:
            parser.exit(1, f"specgen render failed: {exc}\n")
        sys.stdout.write(output)
    elif args.command == "generate":
        try:
            result = _run_generate(args)
        except (ConfigError, SpecLoadError) as exc:
            parser.exit(1, f"{exc}\n")
        except GenerationError as exc:
            parser.exit(
                1,
                f"specgen generate failed at {exc.stage} stage: {exc}\nRun with --verbose for more details.\n",
            )
        print(render_json(result) if args.as_json else render_text(result))
    elif args.command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_generate(args: argparse.Namespace) -> GenerationResult:
    target = Path(args.target).expanduser().resolve()
    settings = load_config(Path(args.config) if args.config else target)
    overrides: Dict[str, object] = {}
    if args.dry_run is not None:
        overrides["dry_run"] = args.dry_run
    if args.strategy is not None:
        overrides["conflict_strategy"] = parse_strategy(args.strategy)
    if args.validate is not None:
        overrides["validate"] = args.validate
    if args.review is not None:
        overrides["review"] = args.review
    if args.use_templates is not None:
        overrides["use_templates"] = args.use_templates
    if args.retries is not None:
        overrides["max_retries"] = args.retries
    config = dataclasses.replace(settings.generation, **overrides)

    spec = load_specification(Path(args.spec))
    manager = GenerationManager(config)
    provider = LLMRunner.from_config(settings.llm)
    return manager.generate_with_retries(
        spec,
        target,
        provider,
        model=args.model,
        temperature=args.temperature,
        max_tokens=args.max_tokens,
    )


def _parse_values(pairs: List[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected KEY=VALUE, got '{pair}'")
        values[key.strip()] = value
    return values


if __name__ == "__main__":
    main(sys.argv[1:])
