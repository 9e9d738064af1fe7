"""Pydantic schemas for evaluation, comparison and coverage requests/responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Evaluation Schemas
# =============================================================================


class EvaluateRequest(BaseModel):
    """Evaluate a rule tree against one parameter set."""

    rules: Any = Field(description="Rule tree configuration: array of {condition, result}")
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="Variables visible to every expression"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rules": [
                    {
                        "condition": "a > 1 && b < 0",
                        "result": [{"condition": "a >= 2", "result": "a * 2"}],
                    },
                    {"condition": "true", "result": 0},
                ],
                "parameters": {"a": 2, "b": -1},
            }
        }
    )


class EvaluateResponse(BaseModel):
    """Deciding value and the rule indices taken to reach it."""

    result: Any
    trace: list[int]


# =============================================================================
# Comparison Schemas
# =============================================================================


class CompareRequest(BaseModel):
    """Compare two rule tree configurations structurally."""

    left: Any
    right: Any


class CompareResponse(BaseModel):
    equal: bool


# =============================================================================
# Coverage Schemas
# =============================================================================


class CoverageRequest(BaseModel):
    """Sweep a rule tree over the cartesian product of parameter axes."""

    rules: Any = Field(description="Rule tree configuration: array of {condition, result}")
    axes: dict[str, list[Any]] = Field(
        description="Parameter name to the list of values to try",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rules": [
                    {"condition": "va > va_upper", "result": "va_upper"},
                    {"condition": "true", "result": "va"},
                ],
                "axes": {"va": [0, 500, 1000], "va_upper": [800, 1200]},
            }
        }
    )


class TraceCount(BaseModel):
    trace: list[int]
    count: int


class CoverageResponse(BaseModel):
    """Tallies of a coverage sweep."""

    evaluations: int
    traces: list[TraceCount]
    results: list[Any]
    errors: dict[str, int]
    unreached_paths: list[list[int]]
