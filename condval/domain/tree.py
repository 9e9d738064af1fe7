"""
Rule tree data model.

A rule tree is an ordered, immutable sequence of rules. Each rule pairs a
condition expression with exactly one result variant:

- LiteralResult: a JSON value returned as-is
- ExpressionResult: a string tried as a secondary expression, falling back
  to the text itself
- SubTreeResult: a nested rule tree evaluated recursively

The variant is chosen once by the builder and never re-inspected from the
payload's runtime type.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class LiteralResult:
    """A non-string JSON value returned unchanged on match."""

    value: Any


@dataclass(frozen=True, slots=True)
class ExpressionResult:
    """A string result, evaluated as an expression when possible."""

    source: str


@dataclass(frozen=True, slots=True)
class SubTreeResult:
    """A nested rule tree evaluated against the same parameters."""

    tree: RuleTree


RuleResult = LiteralResult | ExpressionResult | SubTreeResult


@dataclass(frozen=True, slots=True)
class Rule:
    condition: str
    result: RuleResult

    @property
    def is_nested(self) -> bool:
        return isinstance(self.result, SubTreeResult)


@dataclass(frozen=True, slots=True)
class RuleTree:
    """
    Ordered rules; position is evaluation priority and the first match wins.

    An empty tree is valid and never matches.
    """

    rules: tuple[Rule, ...] = ()

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.rules)

    def __getitem__(self, index: int) -> Rule:
        return self.rules[index]

    def depth(self) -> int:
        """Number of rule levels along the deepest nesting chain."""
        if not self.rules:
            return 0
        nested = [rule.result.tree.depth() for rule in self.rules if rule.is_nested]
        return 1 + max(nested, default=0)

    def rule_count(self) -> int:
        """Total number of rules at every nesting level."""
        return sum(
            1 + (rule.result.tree.rule_count() if rule.is_nested else 0) for rule in self.rules
        )

    def iter_paths(self) -> Iterator[tuple[int, ...]]:
        """
        Yield every trace an evaluation could produce, in rule order.

        A path ends at a rule with a non-nested result. Nested trees with
        no rules contribute no paths since they can never match.
        """
        for index, rule in enumerate(self.rules):
            if rule.is_nested:
                for sub_path in rule.result.tree.iter_paths():
                    yield (index, *sub_path)
            else:
                yield (index,)

    def resolve(self, trace: tuple[int, ...] | list[int]) -> Rule:
        """Return the rule a trace ends on."""
        if not trace:
            raise IndexError("trace is empty")
        tree = self
        rule = tree[trace[0]]
        for index in trace[1:]:
            if not rule.is_nested:
                raise IndexError(f"trace {tuple(trace)} descends into a non-nested rule")
            tree = rule.result.tree
            rule = tree[index]
        return rule
