"""
Structural equality for rule trees.

Used to validate configurations and in tests; never consulted during
evaluation. Conditions are compared as text, not by meaning, and
literal values must agree in type as well as value, so 1, 1.0 and True
are all different results. NaN literals equal each other.
"""

import logging
import math
from typing import Any

from condval.domain.tree import ExpressionResult, RuleResult, RuleTree, SubTreeResult

logger = logging.getLogger(__name__)


def trees_equal(a: RuleTree, b: RuleTree) -> bool:
    """
    Check whether two rule trees are structurally identical.

    The first mismatch is logged at debug level with its JSONPath.
    """
    return _trees_equal(a, b, "$")


def _trees_equal(a: RuleTree, b: RuleTree, path: str) -> bool:
    if len(a) != len(b):
        logger.debug("Rule counts differ at %s: %d != %d", path, len(a), len(b))
        return False

    for i, (left, right) in enumerate(zip(a, b)):
        rule_path = f"{path}[{i}]"
        if left.condition != right.condition:
            logger.debug(
                "Conditions differ at %s: %r != %r", rule_path, left.condition, right.condition
            )
            return False
        if not _results_equal(left.result, right.result, f"{rule_path}.result"):
            return False
    return True


def _results_equal(left: RuleResult, right: RuleResult, path: str) -> bool:
    if type(left) is not type(right):
        logger.debug(
            "Result kinds differ at %s: %s != %s",
            path,
            type(left).__name__,
            type(right).__name__,
        )
        return False

    if isinstance(left, SubTreeResult):
        return _trees_equal(left.tree, right.tree, path)

    if isinstance(left, ExpressionResult):
        left_payload, right_payload = left.source, right.source
    else:
        left_payload, right_payload = left.value, right.value
    if not values_equal(left_payload, right_payload):
        logger.debug("Results differ at %s: %r != %r", path, left_payload, right_payload)
        return False
    return True


def values_equal(left: Any, right: Any) -> bool:
    """Compare JSON values requiring identical types at every level."""
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(
            values_equal(left[key], right[key]) for key in left
        )
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) and all(
            values_equal(x, y) for x, y in zip(left, right)
        )
    if isinstance(left, float) and math.isnan(left):
        return math.isnan(right)
    return left == right


def value_key(value: Any) -> Any:
    """
    Hashable key that matches values_equal.

    value_key(a) == value_key(b) exactly when values_equal(a, b). Raises
    TypeError for leaves that are not hashable.
    """
    kind = type(value)
    if isinstance(value, dict):
        return kind, frozenset((key, value_key(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return kind, tuple(value_key(item) for item in value)
    if isinstance(value, float) and math.isnan(value):
        return kind, "nan"
    hash(value)
    return kind, value
