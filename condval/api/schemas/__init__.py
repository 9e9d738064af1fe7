"""
Pydantic schemas for API request/response validation.
"""

# Re-export schemas for convenient imports.
from .evaluation import CompareRequest as CompareRequest
from .evaluation import CompareResponse as CompareResponse
from .evaluation import CoverageRequest as CoverageRequest
from .evaluation import CoverageResponse as CoverageResponse
from .evaluation import EvaluateRequest as EvaluateRequest
from .evaluation import EvaluateResponse as EvaluateResponse
from .evaluation import TraceCount as TraceCount
