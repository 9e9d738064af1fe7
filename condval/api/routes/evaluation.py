"""Evaluation, comparison and coverage endpoints.

Each request carries its own rule tree configuration. Trees are built with
the configured structural limits, so untrusted payloads cannot exceed the
depth or size the deployment allows.
"""

import logging
import time

from fastapi import APIRouter

from condval.api.schemas import (
    CompareRequest,
    CompareResponse,
    CoverageRequest,
    CoverageResponse,
    EvaluateRequest,
    EvaluateResponse,
    TraceCount,
)
from condval.core.config import settings
from condval.core.errors import EvaluationError, GridTooLargeError
from condval.core.observability import metrics
from condval.engine.builder import BuildLimits, build_rule_tree
from condval.engine.comparator import trees_equal
from condval.engine.coverage import grid_size, parameter_grid, sweep
from condval.engine.evaluator import RuleTreeEvaluator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Evaluation"])

_evaluator = RuleTreeEvaluator()


def _build_limits() -> BuildLimits:
    return BuildLimits(max_depth=settings.max_tree_depth, max_rules=settings.max_rule_count)


@router.post("/evaluate", response_model=EvaluateResponse)
def evaluate_rules(payload: EvaluateRequest) -> EvaluateResponse:
    """
    Evaluate a rule tree and return the first matching result.

    Raises:
        ParseError: If the configuration is malformed (400)
        NoMatchError: If no condition matched (404)
        CompileError, RunError, NonBooleanConditionError: If a condition is broken (422)
    """
    tree = build_rule_tree(payload.rules, _build_limits())

    start_time = time.perf_counter()
    try:
        decision = _evaluator.evaluate(tree, payload.parameters)
    except EvaluationError as e:
        metrics.record_evaluation(e.kind.value.lower(), time.perf_counter() - start_time)
        raise
    metrics.record_evaluation("match", time.perf_counter() - start_time)

    return EvaluateResponse(result=decision.value, trace=list(decision.trace))


@router.post("/compare", response_model=CompareResponse)
def compare_rules(payload: CompareRequest) -> CompareResponse:
    """Check whether two rule tree configurations are structurally identical."""
    limits = _build_limits()
    left = build_rule_tree(payload.left, limits)
    right = build_rule_tree(payload.right, limits)
    return CompareResponse(equal=trees_equal(left, right))


@router.post("/coverage", response_model=CoverageResponse)
def coverage_sweep(payload: CoverageRequest) -> CoverageResponse:
    """
    Evaluate a rule tree over every combination of the given parameter axes.

    Raises:
        ParseError: If the configuration is malformed (400)
        GridTooLargeError: If the combinations exceed CONDVAL_MAX_GRID_SIZE (400)
    """
    tree = build_rule_tree(payload.rules, _build_limits())

    size = grid_size(**payload.axes)
    if size > settings.max_grid_size:
        metrics.coverage_sweeps_total.labels(status="rejected").inc()
        raise GridTooLargeError(
            f"Coverage grid of {size} parameter sets exceeds the limit of "
            f"{settings.max_grid_size}",
            details={"grid_size": size, "max_grid_size": settings.max_grid_size},
        )

    report = sweep(tree, parameter_grid(**payload.axes), _evaluator)
    metrics.coverage_sweeps_total.labels(status="success").inc()

    return CoverageResponse(
        evaluations=report.evaluations,
        traces=[
            TraceCount(trace=list(trace), count=count)
            for trace, count in report.traces.most_common()
        ],
        results=report.results,
        errors={kind.value: count for kind, count in report.errors.items()},
        unreached_paths=[list(path) for path in report.unreached_paths(tree)],
    )
