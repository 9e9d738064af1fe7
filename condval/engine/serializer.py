"""
Rule tree serialization.

Converts a RuleTree back into the raw configuration structure accepted by
the builder, and into canonical JSON for hashing, diffing and storage.

Canonical output sorts object keys at every level and uses compact
separators. Rule arrays keep their order, which is evaluation priority.
"""

import json
from typing import Any

from condval.domain.tree import ExpressionResult, LiteralResult, RuleTree, SubTreeResult
from condval.engine.builder import CONDITION_KEY, RESULT_KEY


def to_raw(tree: RuleTree) -> list[dict[str, Any]]:
    """
    Convert a RuleTree into plain lists and dicts.

    Example:
        >>> to_raw(build_rule_tree([{"condition": "true", "result": 1}]))
        [{'condition': 'true', 'result': 1}]
    """
    return [
        {CONDITION_KEY: rule.condition, RESULT_KEY: _result_to_raw(rule.result)} for rule in tree
    ]


def _result_to_raw(result: Any) -> Any:
    if isinstance(result, SubTreeResult):
        return to_raw(result.tree)
    if isinstance(result, ExpressionResult):
        return result.source
    if isinstance(result, LiteralResult):
        return canonicalize_json(result.value)
    raise TypeError(f"Unknown rule result variant: {type(result).__name__}")


def canonicalize_json(obj: Any) -> Any:
    """
    Produce a deterministic representation of a JSON value.

    Dictionary keys are sorted recursively; list order is preserved.
    """
    if isinstance(obj, dict):
        return {k: canonicalize_json(v) for k, v in sorted(obj.items())}

    elif isinstance(obj, (list, tuple)):
        return [canonicalize_json(item) for item in obj]

    else:
        return obj


def to_json(tree: RuleTree) -> str:
    """
    Serialize a RuleTree to a canonical JSON string.

    Example:
        >>> to_json(build_rule_tree([{"result": 1, "condition": "true"}]))
        '[{"condition":"true","result":1}]'
    """
    return json.dumps(to_raw(tree), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def to_json_pretty(tree: RuleTree) -> str:
    """Serialize a RuleTree to indented canonical JSON for humans."""
    return json.dumps(to_raw(tree), sort_keys=True, indent=2, ensure_ascii=False)
