"""
Rule coverage sweeps.

Evaluates one tree across many parameter sets and tallies which branches
were taken, which values came out, and which errors occurred. Comparing
the tallied traces with RuleTree.iter_paths() shows rules that no input
in the sweep could reach.

    grid = parameter_grid(va=range(0, 2000, 30), va_lower=range(0, 2000, 40))
    report = sweep(tree, grid)
    report.unreached_paths(tree)
"""

import itertools
import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from condval.core.errors import EvaluationError, ErrorKind
from condval.domain.tree import RuleTree
from condval.engine.comparator import value_key, values_equal
from condval.engine.evaluator import RuleTreeEvaluator

logger = logging.getLogger(__name__)


@dataclass
class CoverageReport:
    """Tallies collected by a sweep."""

    evaluations: int = 0
    traces: Counter = field(default_factory=Counter)
    results: list[Any] = field(default_factory=list)
    errors: Counter = field(default_factory=Counter)
    # value_key of every entry in results, for constant-time dedupe
    _result_keys: set = field(default_factory=set, repr=False, compare=False)

    def record_decision(self, value: Any, trace: tuple[int, ...]) -> None:
        """Count the trace and keep the value if it is new, in first-seen order."""
        self.evaluations += 1
        self.traces[trace] += 1
        try:
            key = value_key(value)
        except TypeError:
            # Unhashable leaves fall back to a pairwise scan
            if not any(values_equal(value, seen) for seen in self.results):
                self.results.append(value)
            return
        if key not in self._result_keys:
            self._result_keys.add(key)
            self.results.append(value)

    def record_error(self, kind: ErrorKind) -> None:
        self.evaluations += 1
        self.errors[kind] += 1

    def unreached_paths(self, tree: RuleTree) -> list[tuple[int, ...]]:
        """Possible traces of the tree that the sweep never produced."""
        return [path for path in tree.iter_paths() if path not in self.traces]

    def fully_covered(self, tree: RuleTree) -> bool:
        return not self.unreached_paths(tree)


def sweep(
    tree: RuleTree,
    parameter_sets: Iterable[Mapping[str, Any]],
    evaluator: RuleTreeEvaluator | None = None,
) -> CoverageReport:
    """
    Evaluate a tree for every parameter set and tally the outcomes.

    Evaluation errors are counted by kind rather than raised; any other
    exception propagates.

    Args:
        tree: Rule tree to exercise
        parameter_sets: Parameter mappings, consumed once
        evaluator: Evaluator to use (default CEL-backed)

    Returns:
        CoverageReport for the whole sweep
    """
    evaluator = evaluator or RuleTreeEvaluator()
    report = CoverageReport()

    for parameters in parameter_sets:
        try:
            decision = evaluator.evaluate(tree, parameters)
        except EvaluationError as e:
            report.record_error(e.kind)
            continue
        report.record_decision(decision.value, decision.trace)

    logger.info(
        "Coverage sweep finished: %d evaluations, %d distinct traces, %d errors",
        report.evaluations,
        len(report.traces),
        sum(report.errors.values()),
    )
    return report


def parameter_grid(**axes: Iterable[Any]) -> Iterator[dict[str, Any]]:
    """
    Yield the cartesian product of named value ranges.

    Example:
        >>> list(parameter_grid(a=[1, 2], b=[0]))
        [{'a': 1, 'b': 0}, {'a': 2, 'b': 0}]
    """
    names = list(axes)
    for values in itertools.product(*(list(axes[name]) for name in names)):
        yield dict(zip(names, values))


def grid_size(**axes: Iterable[Any]) -> int:
    """Number of parameter sets parameter_grid would yield."""
    size = 1
    for values in axes.values():
        size *= len(list(values))
    return size
