"""Command-line entry point: ``architech run BLUEPRINT --context CONTEXT``."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

import yaml
from pydantic import ValidationError

from architech.blueprint.executor import BlueprintExecutor
from architech.blueprint.models import Blueprint, ProjectContext
from architech.config import EngineConfig
from architech.utils import console, load_document


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


def _load_config(path: Optional[str]) -> EngineConfig:
    if path is None:
        return EngineConfig.from_env()
    config_path = Path(path)
    if not config_path.exists():
        _fail(f"Config file not found: {config_path}")
    try:
        return EngineConfig.load(config_path)
    except ValidationError as exc:
        _fail(f"Invalid config file {config_path}: {exc}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for ``architech`` / ``python -m architech.cli``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="architech",
        description="Architech -- execute project blueprints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  architech run stripe.blueprint.yaml --context context.json\n"
            "  architech run blueprint.json --context context.yaml --no-commit\n"
        ),
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    run_parser = subcommands.add_parser("run", help="Execute a blueprint against a project")
    run_parser.add_argument("blueprint", help="Blueprint document (JSON or YAML)")
    run_parser.add_argument(
        "--context", "-c",
        required=True,
        help="Project context document (JSON or YAML)",
    )
    run_parser.add_argument(
        "--no-commit",
        action="store_true",
        help="Stage every change but do not write anything to disk",
    )
    run_parser.add_argument(
        "--config",
        default=None,
        help="Engine config JSON (default: ARCHITECH_* environment variables)",
    )
    run_parser.add_argument("--quiet", "-q", action="store_true", help="Suppress progress output")

    args = parser.parse_args(argv)

    documents = {}
    for label, raw_path in (("Blueprint", args.blueprint), ("Context", args.context)):
        path = Path(raw_path)
        if not path.exists():
            _fail(f"{label} file not found: {path}")
        try:
            documents[label] = load_document(path)
        except (ValueError, yaml.YAMLError) as exc:
            _fail(f"{label} file {path} is not a valid document: {exc}")

    try:
        blueprint = Blueprint.model_validate(documents["Blueprint"])
        context = ProjectContext.model_validate(documents["Context"])
    except ValidationError as exc:
        _fail(str(exc))

    config = _load_config(args.config)
    if args.quiet:
        config = config.model_copy(update={"quiet": True})

    executor = BlueprintExecutor(config)
    result = asyncio.run(executor.execute(blueprint, context, commit=not args.no_commit))

    if not result.success:
        for error in result.errors:
            console.print(f"[red]- {error}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
