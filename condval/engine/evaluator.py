"""
Rule tree evaluation.

Walks a RuleTree depth-first against a parameter mapping and returns the
result of the first rule whose condition is true, together with the trace
of rule indices taken from the root to the deciding rule.

Semantics:
- Rules are tried strictly in order; later rules are never evaluated once
  one matches.
- Condition failures (compile, run, non-boolean) abort the evaluation.
- Nested trees are evaluated against the same parameters; their errors
  propagate unchanged.
- String results are tried as expressions. If that fails for any reason
  the string itself is the result.
- When nothing matches, NoMatchError is raised.

The engine keeps no state between calls, so one evaluator and one tree can
serve any number of threads.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from condval.core.errors import CompileError, NoMatchError, NonBooleanConditionError, RunError
from condval.domain.tree import ExpressionResult, LiteralResult, Rule, RuleTree, SubTreeResult
from condval.engine.expressions import CelExpressionEvaluator, ExpressionEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Decision:
    """Result of a successful evaluation."""

    value: Any
    trace: tuple[int, ...]


class RuleTreeEvaluator:
    """Evaluates rule trees with a given expression collaborator."""

    def __init__(self, expressions: ExpressionEvaluator | None = None) -> None:
        self.expressions = expressions or CelExpressionEvaluator()

    def evaluate(self, tree: RuleTree, parameters: Mapping[str, Any]) -> Decision:
        """
        Evaluate a tree and return the deciding value with its trace.

        Args:
            tree: Rule tree to evaluate
            parameters: Variables visible to every expression

        Returns:
            Decision with the result value and root-to-leaf rule indices

        Raises:
            CompileError: If a condition does not compile
            RunError: If a parameter cannot be bound or a condition fails at runtime
            NonBooleanConditionError: If a condition yields a non-boolean
            NoMatchError: If no rule matches at some level of the winning path

        Example:
            >>> tree = build_rule_tree([{"condition": "a > 1", "result": "a*2"}])
            >>> RuleTreeEvaluator().evaluate(tree, {"a": 2})
            Decision(value=4, trace=(0,))
        """
        shape = frozenset(parameters)
        environment = self.expressions.bind(parameters)
        trace: list[int] = []
        value = self._evaluate_tree(tree, environment, shape, trace)
        return Decision(value=value, trace=tuple(trace))

    def get_result(self, tree: RuleTree, parameters: Mapping[str, Any]) -> Any:
        """Evaluate a tree and return only the deciding value."""
        return self.evaluate(tree, parameters).value

    def _evaluate_tree(
        self,
        tree: RuleTree,
        environment: Any,
        shape: frozenset[str],
        trace: list[int],
    ) -> Any:
        for index, rule in enumerate(tree):
            if not self._condition_holds(index, rule, environment, shape):
                continue

            trace.append(index)
            logger.debug("Rule %d matched: %s", index, rule.condition)
            return self._resolve_result(rule, environment, shape, trace)

        raise NoMatchError(
            "No condition matched",
            details={"rule_count": len(tree), "trace": list(trace)},
        )

    def _condition_holds(
        self, index: int, rule: Rule, environment: Any, shape: frozenset[str]
    ) -> bool:
        try:
            program = self.expressions.compile(rule.condition, shape)
        except CompileError as e:
            raise CompileError(
                f"Failed to compile condition {index}",
                details={"index": index, **e.details, "source": rule.condition},
            ) from e

        try:
            value = self.expressions.run(program, environment)
        except RunError as e:
            raise RunError(
                f"Failed to run condition {index}",
                details={"index": index, **e.details, "source": rule.condition},
            ) from e

        if not isinstance(value, bool):
            raise NonBooleanConditionError(
                f"Condition {index} did not evaluate to a boolean",
                details={
                    "index": index,
                    "source": rule.condition,
                    "value_type": type(value).__name__,
                },
            )
        return value

    def _resolve_result(
        self,
        rule: Rule,
        environment: Any,
        shape: frozenset[str],
        trace: list[int],
    ) -> Any:
        result = rule.result
        if isinstance(result, SubTreeResult):
            return self._evaluate_tree(result.tree, environment, shape, trace)
        if isinstance(result, ExpressionResult):
            return self._evaluate_secondary(result.source, environment, shape)
        if isinstance(result, LiteralResult):
            return result.value
        raise TypeError(f"Unknown rule result variant: {type(result).__name__}")

    def _evaluate_secondary(
        self, source: str, environment: Any, shape: frozenset[str]
    ) -> Any:
        """Run a string result as an expression, falling back to the text."""
        try:
            program = self.expressions.compile(source, shape)
            return self.expressions.run(program, environment)
        except (CompileError, RunError) as e:
            logger.debug(
                "String result %r is not an evaluable expression, returning it verbatim (%s)",
                source,
                e.details.get("reason", e.message),
            )
            return source


_default_evaluator = RuleTreeEvaluator()


def evaluate(
    tree: RuleTree,
    parameters: Mapping[str, Any],
    expressions: ExpressionEvaluator | None = None,
) -> Decision:
    """Evaluate a tree with the default CEL collaborator unless one is given."""
    evaluator = RuleTreeEvaluator(expressions) if expressions is not None else _default_evaluator
    return evaluator.evaluate(tree, parameters)


def get_result(
    tree: RuleTree,
    parameters: Mapping[str, Any],
    expressions: ExpressionEvaluator | None = None,
) -> Any:
    """Evaluate a tree and return only the deciding value."""
    return evaluate(tree, parameters, expressions).value
