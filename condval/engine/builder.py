"""
Rule tree construction.

Turns a raw, JSON-decoded configuration into an immutable RuleTree:

    [
        {"condition": "va > va_upper", "result": [
            {"condition": "true", "result": "va_upper"}
        ]},
        {"condition": "true", "result": 0}
    ]

Arrays in the result position become nested trees, strings become
secondary expressions, and anything else is kept as a literal. Any
structural problem raises ParseError with the JSONPath of the offending
node; no partial tree is ever returned.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any

from condval.core.errors import LoadError, ParseError
from condval.domain.tree import (
    ExpressionResult,
    LiteralResult,
    Rule,
    RuleResult,
    RuleTree,
    SubTreeResult,
)

logger = logging.getLogger(__name__)

CONDITION_KEY = "condition"
RESULT_KEY = "result"


@dataclass(frozen=True)
class BuildLimits:
    """Structural bounds enforced while building; None disables a bound."""

    max_depth: int | None = None
    max_rules: int | None = None


NO_LIMITS = BuildLimits()


def build_rule_tree(raw: Any, limits: BuildLimits = NO_LIMITS) -> RuleTree:
    """
    Build a RuleTree from a raw configuration structure.

    Args:
        raw: Sequence of {"condition": str, "result": Any} mappings
        limits: Optional depth and rule count bounds

    Returns:
        The immutable rule tree

    Raises:
        ParseError: If the structure is malformed or exceeds the limits

    Example:
        >>> tree = build_rule_tree([{"condition": "a > 1", "result": 2}])
        >>> len(tree)
        1
    """
    counter = [0]
    tree = _build_node(raw, path="$", depth=1, limits=limits, counter=counter)
    logger.debug("Built rule tree: %d rules, depth %d", counter[0], tree.depth())
    return tree


def _build_node(
    raw: Any, path: str, depth: int, limits: BuildLimits, counter: list[int]
) -> RuleTree:
    """
    Recursively build one level of the tree.

    Args:
        raw: Raw rule array for this level
        path: JSONPath to this level (for error reporting)
        depth: Nesting level, 1 for the root
        limits: Structural bounds
        counter: Running total of rules built so far

    Raises:
        ParseError: If this level or any nested level is invalid
    """
    if not isinstance(raw, (list, tuple)):
        raise ParseError(
            f"Rule tree must be an array at {path}",
            details={"path": path, "type": type(raw).__name__},
        )

    if limits.max_depth is not None and depth > limits.max_depth and raw:
        raise ParseError(
            f"Rule tree exceeds maximum depth of {limits.max_depth} at {path}",
            details={"path": path, "max_depth": limits.max_depth},
        )

    rules = []
    for i, entry in enumerate(raw):
        entry_path = f"{path}[{i}]"
        counter[0] += 1
        if limits.max_rules is not None and counter[0] > limits.max_rules:
            raise ParseError(
                f"Rule tree exceeds maximum of {limits.max_rules} rules at {entry_path}",
                details={"path": entry_path, "max_rules": limits.max_rules},
            )
        rules.append(_build_rule(entry, entry_path, depth, limits, counter))

    return RuleTree(tuple(rules))


def _build_rule(
    entry: Any, path: str, depth: int, limits: BuildLimits, counter: list[int]
) -> Rule:
    if not isinstance(entry, Mapping):
        raise ParseError(
            f"Rule must be an object at {path}",
            details={"path": path, "type": type(entry).__name__},
        )

    if CONDITION_KEY not in entry:
        raise ParseError(
            f"Rule missing '{CONDITION_KEY}' at {path}",
            details={"path": path, "keys": list(entry.keys())},
        )

    condition = entry[CONDITION_KEY]
    if not isinstance(condition, str):
        raise ParseError(
            f"'{CONDITION_KEY}' must be a string at {path}",
            details={"path": path, "type": type(condition).__name__},
        )

    if RESULT_KEY not in entry:
        raise ParseError(
            f"Rule missing '{RESULT_KEY}' at {path}",
            details={"path": path, "keys": list(entry.keys())},
        )

    result = _build_result(entry[RESULT_KEY], f"{path}.{RESULT_KEY}", depth, limits, counter)
    return Rule(condition=condition, result=result)


def _build_result(
    raw: Any, path: str, depth: int, limits: BuildLimits, counter: list[int]
) -> RuleResult:
    if isinstance(raw, (list, tuple)):
        return SubTreeResult(_build_node(raw, path, depth + 1, limits, counter))
    if isinstance(raw, str):
        return ExpressionResult(raw)
    return LiteralResult(_json_literal(raw))


def _json_literal(value: Any) -> Any:
    """
    Copy a literal into plain JSON shape.

    Mappings become dicts and sequences become lists at every level, so the
    tree shares nothing with the caller and survives a to_raw round trip.
    """
    if isinstance(value, Mapping):
        return {key: _json_literal(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_literal(item) for item in value]
    return value


def parse_rule_tree_json(text: str | bytes, limits: BuildLimits = NO_LIMITS) -> RuleTree:
    """
    Parse JSON text into a RuleTree.

    Raises:
        ParseError: If the text is not valid JSON or not a valid rule tree
    """
    try:
        raw = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(
            "Rule tree configuration is not valid JSON",
            details={"reason": str(e)},
        ) from e
    return build_rule_tree(raw, limits)


def load_rule_tree_file(path: str | PathLike[str], limits: BuildLimits = NO_LIMITS) -> RuleTree:
    """
    Read and parse a JSON rule tree file.

    Raises:
        LoadError: If the file cannot be read
        ParseError: If its content is not a valid rule tree
    """
    file_path = Path(path)
    try:
        content = file_path.read_bytes()
    except OSError as e:
        raise LoadError(
            f"Failed to read rule tree file {file_path}",
            details={"path": str(file_path), "reason": e.strerror or str(e)},
        ) from e

    logger.info("Loading rule tree from %s (%d bytes)", file_path, len(content))
    return parse_rule_tree_json(content, limits)
