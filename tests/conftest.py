"""
Pytest configuration and shared fixtures.

Provides:
- Environment defaults applied before condval settings are imported
- Rule tree fixtures built from literal configurations and demo/demo.json
- A scripted expression evaluator for engine tests that must not depend
  on expression syntax
- FastAPI TestClient
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path so the cli package is importable
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("CONDVAL_APP_ENV", "test")
os.environ.setdefault("CONDVAL_OBSERVABILITY_STRUCTURED_LOGS", "false")

import pytest  # noqa: E402 (import after env setup)
from fastapi.testclient import TestClient  # noqa: E402 (import after env setup)

from condval.core.errors import CompileError, RunError  # noqa: E402
from condval.domain.tree import RuleTree  # noqa: E402
from condval.engine.builder import build_rule_tree, load_rule_tree_file  # noqa: E402

DEMO_CONFIG = ROOT / "demo" / "demo.json"


class ScriptedEvaluator:
    """
    ExpressionEvaluator double driven by a table of outcomes.

    Parameters are bound unchanged. Each source maps to a value, or to an
    exception instance that is raised from compile() (CompileError) or run()
    (anything else). Every compile and run call is recorded in order.
    """

    def __init__(self, outcomes: Mapping[str, Any]) -> None:
        self.outcomes = dict(outcomes)
        self.compiled: list[str] = []
        self.ran: list[str] = []
        self.shapes: list[frozenset[str]] = []

    def compile(self, source: str, environment_shape: frozenset[str]) -> str:
        self.compiled.append(source)
        self.shapes.append(environment_shape)
        outcome = self.outcomes.get(source)
        if isinstance(outcome, CompileError):
            raise outcome
        if source not in self.outcomes:
            raise CompileError("unknown source", details={"source": source})
        return source

    def bind(self, parameters: Mapping[str, Any]) -> dict[str, Any]:
        return dict(parameters)

    def run(self, program: str, environment: Mapping[str, Any]) -> Any:
        self.ran.append(program)
        outcome = self.outcomes[program]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def scripted():
    """Factory for ScriptedEvaluator instances."""
    return ScriptedEvaluator


@pytest.fixture
def run_error() -> RunError:
    return RunError("boom", details={"reason": "scripted failure"})


@pytest.fixture
def simple_tree() -> RuleTree:
    return build_rule_tree([{"condition": "a > 1", "result": 2}])


@pytest.fixture
def nested_tree() -> RuleTree:
    return build_rule_tree(
        [
            {
                "condition": "a > 1 && b < 0",
                "result": [
                    {"condition": "a >= 3", "result": "a * 10"},
                    {"condition": "a >= 2", "result": 4},
                ],
            },
            {"condition": "true", "result": "fallback"},
        ]
    )


@pytest.fixture
def demo_tree() -> RuleTree:
    return load_rule_tree_file(DEMO_CONFIG)


@pytest.fixture
def client() -> TestClient:
    from condval.main import create_app

    return TestClient(create_app())


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
