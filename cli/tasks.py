"""
Developer task entry points.

Each task runs a tool with the current interpreter and exits with the
tool's return code. Extra command line arguments are passed through:

    uv run test -k evaluator
    uv run lint --fix
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence

SOURCE_DIRS = ("condval", "cli", "scripts", "tests")


def _run_module(module: str, *args: str) -> None:
    cmd: Sequence[str] = [sys.executable, "-m", module, *args, *sys.argv[1:]]
    result = subprocess.run(cmd)
    raise SystemExit(result.returncode)


def run_tests() -> None:
    """Run the test suite."""
    _run_module("pytest", "-q")


def run_lint() -> None:
    _run_module("ruff", "check", *SOURCE_DIRS)


def run_format() -> None:
    _run_module("ruff", "format", *SOURCE_DIRS)


def run_dev() -> None:
    """Start the API with auto-reload on localhost:8000."""
    _run_module(
        "uvicorn", "condval.main:app", "--reload", "--host", "127.0.0.1", "--port", "8000"
    )
