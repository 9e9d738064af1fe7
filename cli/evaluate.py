"""
CLI: Evaluate a rule tree file against parameters.

Usage:
    uv run condval-eval demo/demo.json -p va=1000 -p va_upper=1200 -p va_lower=800
    uv run condval-eval demo/demo.json -p va=1500 -p va_upper=1200 -p va_lower=800 --json

Parameter values are parsed as JSON when possible (numbers, booleans,
quoted strings, arrays, objects) and kept as plain strings otherwise.

Exit codes:
    0  a rule matched
    1  no rule matched
    2  the configuration or an expression is broken
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from enum import Enum
from typing import Any

from condval.core.config import settings
from condval.core.errors import CondvalError, NoMatchError
from condval.engine.builder import BuildLimits, load_rule_tree_file
from condval.engine.evaluator import evaluate


class ExitCode(Enum):
    MATCHED = 0
    NO_MATCH = 1
    ERROR = 2


def parse_parameter(item: str) -> tuple[str, Any]:
    """Split a name=value argument, decoding the value as JSON when it parses."""
    name, sep, raw_value = item.partition("=")
    name = name.strip()
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected name=value, got '{item}'")
    try:
        value = json.loads(raw_value)
    except json.JSONDecodeError:
        value = raw_value
    return name, value


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Evaluate a condition/result rule tree against parameters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run condval-eval demo/demo.json -p va=1000 -p va_upper=1200 -p va_lower=800
  uv run condval-eval rules.json -p amount=250 -p country='"SG"' --json
        """,
    )
    parser.add_argument("config", help="Path to a JSON rule tree file")
    parser.add_argument(
        "--param",
        "-p",
        type=parse_parameter,
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Parameter binding; repeat for each variable",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON object instead of plain text",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log each matched rule and secondary expression fallback",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level_number,
        format="%(levelname)s %(name)s: %(message)s",
    )

    parameters = dict(args.param)
    limits = BuildLimits(max_depth=settings.max_tree_depth, max_rules=settings.max_rule_count)

    try:
        tree = load_rule_tree_file(args.config, limits)
        decision = evaluate(tree, parameters)
    except NoMatchError as e:
        _report_error(e, args.json)
        return ExitCode.NO_MATCH.value
    except CondvalError as e:
        _report_error(e, args.json)
        return ExitCode.ERROR.value

    if args.json:
        print(json.dumps({"result": decision.value, "trace": list(decision.trace)}, default=str))
    else:
        print(f"result: {decision.value!r}")
        print(f"trace: {'-'.join(str(i) for i in decision.trace)}")
    return ExitCode.MATCHED.value


def _report_error(error: CondvalError, as_json: bool) -> None:
    if as_json:
        print(
            json.dumps(
                {
                    "error": error.__class__.__name__,
                    "kind": error.kind.value,
                    "message": error.message,
                    "details": error.details,
                },
                default=str,
            )
        )
    else:
        print(f"error: {error.__class__.__name__}: {error.message}", file=sys.stderr)
        for key, value in error.details.items():
            print(f"  {key}: {value}", file=sys.stderr)


def run() -> None:
    """Console script wrapper propagating the exit code."""
    raise SystemExit(main())
