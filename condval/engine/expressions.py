"""
Expression evaluation collaborator.

The engine never interprets expression text itself. It talks to an
ExpressionEvaluator, which compiles a source string for a set of variable
names and runs the compiled program against concrete values.

CelExpressionEvaluator is the default implementation, backed by
cel-python (Common Expression Language):

    a > 1 && b < 0
    va_upper - va > 200 || !strict
    "literal text"

Any failure inside the library surfaces as CompileError or RunError;
results are converted back to plain Python values.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

import celpy
from celpy import celtypes

from condval.core.errors import CompileError, RunError

logger = logging.getLogger(__name__)


class ExpressionEvaluator(Protocol):
    """Compiles and runs expressions against a named-variable environment."""

    def compile(self, source: str, environment_shape: frozenset[str]) -> Any:
        """
        Compile an expression.

        Args:
            source: Expression text
            environment_shape: Names of the variables that will be bound

        Raises:
            CompileError: If the source is not a valid expression
        """
        ...

    def bind(self, parameters: Mapping[str, Any]) -> Any:
        """
        Convert parameters into the environment passed to run().

        Called once per evaluation.

        Raises:
            RunError: If a parameter value cannot be represented
        """
        ...

    def run(self, program: Any, environment: Any) -> Any:
        """
        Run a compiled expression against an environment from bind().

        Raises:
            RunError: If evaluation fails
        """
        ...


@dataclass(frozen=True)
class CelProgram:
    source: str
    names: frozenset[str]
    runner: Any


class CelExpressionEvaluator:
    """
    ExpressionEvaluator backed by celpy.

    Identifiers are resolved when the program runs, so a reference to a
    name missing from the environment is a RunError, not a CompileError.
    Instances hold no per-evaluation state and may be shared across threads.
    """

    def __init__(self, environment: celpy.Environment | None = None) -> None:
        self._env = environment or celpy.Environment()

    def compile(self, source: str, environment_shape: frozenset[str]) -> CelProgram:
        try:
            ast = self._env.compile(source)
            runner = self._env.program(ast)
        except celpy.CELParseError as e:
            raise CompileError(
                "Failed to compile expression",
                details={"source": source, "reason": str(e)},
            ) from e
        except Exception as e:
            # celpy surfaces some grammar failures as non-CEL exceptions
            raise CompileError(
                "Failed to compile expression",
                details={"source": source, "reason": f"{type(e).__name__}: {e}"},
            ) from e
        return CelProgram(source=source, names=environment_shape, runner=runner)

    def bind(self, parameters: Mapping[str, Any]) -> dict[str, Any]:
        activation = {}
        for name, value in parameters.items():
            try:
                activation[name] = celpy.json_to_cel(value)
            except Exception as e:
                raise RunError(
                    f"Parameter '{name}' cannot be used in expressions",
                    details={"parameter": name, "reason": f"{type(e).__name__}: {e}"},
                ) from e
        return activation

    def run(self, program: CelProgram, environment: Mapping[str, Any]) -> Any:
        try:
            result = program.runner.evaluate(dict(environment))
        except celpy.CELEvalError as e:
            raise RunError(
                "Failed to run expression",
                details={"source": program.source, "reason": str(e)},
            ) from e
        except Exception as e:
            raise RunError(
                "Failed to run expression",
                details={"source": program.source, "reason": f"{type(e).__name__}: {e}"},
            ) from e

        if isinstance(result, celpy.CELEvalError):
            raise RunError(
                "Failed to run expression",
                details={"source": program.source, "reason": str(result)},
            )
        return cel_to_python(result)


def cel_to_python(value: Any) -> Any:
    """Convert celpy result types back to native Python values."""
    if value is None:
        return None
    if isinstance(value, celtypes.BoolType):
        return bool(value)
    if isinstance(value, (celtypes.IntType, celtypes.UintType)):
        return int(value)
    if isinstance(value, celtypes.DoubleType):
        return float(value)
    if isinstance(value, celtypes.StringType):
        return str(value)
    if isinstance(value, celtypes.BytesType):
        return bytes(value)
    if isinstance(value, celtypes.MapType):
        return {cel_to_python(k): cel_to_python(v) for k, v in value.items()}
    if isinstance(value, celtypes.ListType):
        return [cel_to_python(item) for item in value]
    # Timestamps, durations and other CEL-only types pass through unchanged
    return value
