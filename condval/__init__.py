"""
condval: ordered condition/result rule trees.

A rule tree maps parameters to a value by testing conditions in order
and returning the result of the first one that holds. Results may be
literals, expressions, or nested trees.

    from condval import build_rule_tree, evaluate

    tree = build_rule_tree([{"condition": "a > 1", "result": "a*2"}])
    evaluate(tree, {"a": 2})  # Decision(value=4, trace=(0,))
"""

from condval.core.errors import (
    CompileError,
    CondvalError,
    ErrorKind,
    EvaluationError,
    LoadError,
    NoMatchError,
    NonBooleanConditionError,
    ParseError,
    RunError,
)
from condval.domain.tree import (
    ExpressionResult,
    LiteralResult,
    Rule,
    RuleTree,
    SubTreeResult,
)
from condval.engine import (
    BuildLimits,
    CelExpressionEvaluator,
    CoverageReport,
    Decision,
    ExpressionEvaluator,
    RuleTreeEvaluator,
    build_rule_tree,
    evaluate,
    get_result,
    load_rule_tree_file,
    parameter_grid,
    parse_rule_tree_json,
    sweep,
    to_json,
    to_raw,
    trees_equal,
)

__all__ = [
    "BuildLimits",
    "CelExpressionEvaluator",
    "CompileError",
    "CondvalError",
    "CoverageReport",
    "Decision",
    "ErrorKind",
    "EvaluationError",
    "ExpressionEvaluator",
    "ExpressionResult",
    "LiteralResult",
    "LoadError",
    "NoMatchError",
    "NonBooleanConditionError",
    "ParseError",
    "Rule",
    "RuleTree",
    "RuleTreeEvaluator",
    "RunError",
    "SubTreeResult",
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
