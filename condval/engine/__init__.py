"""
Rule tree engine for condval.

Key Components:
- builder: Builds immutable rule trees from raw JSON configurations
- evaluator: First-match evaluation with trace recording
- comparator: Structural equality between trees
- serializer: Canonical JSON output
- coverage: Parameter sweeps and branch coverage
- expressions: Expression collaborator protocol and its CEL implementation
"""

from condval.engine.builder import (
    BuildLimits,
    build_rule_tree,
    load_rule_tree_file,
    parse_rule_tree_json,
)
from condval.engine.comparator import trees_equal
from condval.engine.coverage import CoverageReport, parameter_grid, sweep
from condval.engine.evaluator import Decision, RuleTreeEvaluator, evaluate, get_result
from condval.engine.expressions import CelExpressionEvaluator, ExpressionEvaluator
from condval.engine.serializer import to_json, to_raw

__all__ = [
    "BuildLimits",
    "CelExpressionEvaluator",
    "CoverageReport",
    "Decision",
    "ExpressionEvaluator",
    "RuleTreeEvaluator",
    "build_rule_tree",
    "evaluate",
    "get_result",
    "load_rule_tree_file",
    "parameter_grid",
    "parse_rule_tree_json",
    "sweep",
    "to_json",
    "to_raw",
    "trees_equal",
]
