"""Command line entry point.

Usage:
    bucket-blueprint validate PATH [--region R] [--environment E] [--project-name P]
    bucket-blueprint render PATH [--output FILE]
    bucket-blueprint init PATH [--force]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from prometheus_client import REGISTRY, write_to_textfile

from . import metrics
from .config import Settings
from .constants import PROJECT_NAME, UNIT_DEFINITIONS, UNIT_FILENAMES
from .errors import BlueprintError
from .logging import setup_structured_logging
from .report import exit_code, format_report
from .scaffold import write_configuration_tree
from .tracing import initialize_tracing
from .utils.errors import sanitize_exception
from .validator import compose, load_parameters_file, validate

logger = logging.getLogger(__name__)


def _parameter_args(args: argparse.Namespace) -> dict[str, str]:
    """Explicit parameters: --var-file values overridden by individual flags."""
    values: dict[str, str] = {}
    if args.var_file:
        values.update(load_parameters_file(args.var_file))
    for name in ("region", "environment", "project_name"):
        value = getattr(args, name)
        if value is not None:
            values[name] = value
    return values


def _add_parameter_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("path", help="Configuration tree root directory")
    parser.add_argument("--region", help="Override the region parameter")
    parser.add_argument("--environment", help="Override the environment parameter")
    parser.add_argument("--project-name", dest="project_name", help="Override the project_name parameter")
    parser.add_argument("--var-file", help="YAML file with parameter values")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROJECT_NAME,
        description="Validate and render the bucket provisioning specification",
    )
    parser.add_argument("--metrics-file", help="Write Prometheus metrics to this file after the command")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Check structural and security invariants")
    _add_parameter_options(validate_parser)
    validate_parser.add_argument("--quiet", action="store_true", help="Only print the summary")

    render_parser = subparsers.add_parser("render", help="Print the rendered resource graph as JSON")
    _add_parameter_options(render_parser)
    render_parser.add_argument("--output", help="Write JSON to this file instead of stdout")

    init_parser = subparsers.add_parser("init", help="Write the canonical configuration tree")
    init_parser.add_argument("path", help="Target directory")
    init_parser.add_argument("--force", action="store_true", help="Overwrite an existing tree")

    return parser


def cmd_validate(args: argparse.Namespace) -> int:
    result = validate(args.path, _parameter_args(args))
    lines = format_report(result)
    if args.quiet:
        lines = lines[-5:]
    print("\n".join(lines))
    return exit_code(result)


def cmd_render(args: argparse.Namespace) -> int:
    parameters = _parameter_args(args)
    result = validate(args.path, parameters)
    if not result.ok:
        print("\n".join(format_report(result)), file=sys.stderr)
        metrics.renders_total.labels(result="invalid").inc()
        return exit_code(result)

    graph = compose(args.path, parameters).render()
    metrics.renders_total.labels(result="success").inc()
    payload = json.dumps(graph.to_dict(), indent=2, sort_keys=True)
    if args.output:
        Path(args.output).write_text(payload + "\n", encoding="utf-8")
    else:
        print(payload)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    target = Path(args.path)
    if (target / UNIT_FILENAMES[UNIT_DEFINITIONS]).exists() and not args.force:
        print(f"{target} already contains a configuration tree (use --force to overwrite)", file=sys.stderr)
        return 1
    write_configuration_tree(target)
    print(f"Wrote configuration tree to {target}")
    return 0


COMMANDS = {
    "validate": cmd_validate,
    "render": cmd_render,
    "init": cmd_init,
}


def main(argv: Sequence[str] | None = None) -> int:
    settings = Settings.from_env()
    setup_structured_logging(settings.log_level)
    if settings.tracing_enabled:
        initialize_tracing()

    args = build_parser().parse_args(argv)
    try:
        code = COMMANDS[args.command](args)
    except (BlueprintError, OSError, UnicodeDecodeError) as e:
        logger.error(f"{args.command} failed: {sanitize_exception(e)}")
        print(f"error: {sanitize_exception(e)}", file=sys.stderr)
        code = 2

    metrics_file = args.metrics_file or settings.metrics_file
    if metrics_file:
        write_to_textfile(metrics_file, REGISTRY)
    return code


if __name__ == "__main__":
    sys.exit(main())
