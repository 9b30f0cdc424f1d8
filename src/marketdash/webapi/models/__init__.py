"""API Models package for request/response schemas."""

from .requests import (
    AlgorithmRequest,
    AnalysisRequest,
    QuoteRequest,
    ScoredStockRequest,
)
from .responses import (
    AnalysisResponse,
    BaseResponse,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    StatusResponse,
    StockPicksResponse,
    SuccessResponse,
)

__all__ = [
    # Response models
    "BaseResponse",
    "SuccessResponse",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "StatusResponse",
    "StockPicksResponse",
    "AnalysisResponse",
    # Request models
    "QuoteRequest",
    "ScoredStockRequest",
    "AlgorithmRequest",
    "AnalysisRequest",
]
