"""Immutable rule tree types."""

from condval.domain.tree import (
    ExpressionResult,
    LiteralResult,
    Rule,
    RuleResult,
    RuleTree,
    SubTreeResult,
)

__all__ = [
    "ExpressionResult",
    "LiteralResult",
    "Rule",
    "RuleResult",
    "RuleTree",
    "SubTreeResult",
]
