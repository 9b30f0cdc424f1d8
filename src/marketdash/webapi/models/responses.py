"""Response models for the MarketDash API."""

from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from ...services.stock_picker.models import AnalysisResult, ScoredStock

# Generic type for data responses
T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseResponse(BaseModel):
    """Base response model for all API responses."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Response timestamp"
    )
    request_id: Optional[str] = Field(
        None, description="Unique request identifier for tracking"
    )

    model_config = ConfigDict(
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        """Serialize datetime to ISO format with Z suffix."""
        return dt.isoformat() + "Z"


class SuccessResponse(BaseResponse, Generic[T]):
    """Generic success response with typed data."""

    success: bool = Field(True, description="Always true for success responses")
    data: T = Field(..., description="Response data")
    message: Optional[str] = Field(None, description="Optional success message")


class ErrorResponse(BaseResponse):
    """Error response model."""

    success: bool = Field(False, description="Always false for error responses")
    error: Dict[str, Any] = Field(..., description="Error details")


class HealthStatus(BaseModel):
    """Health status model."""

    status: str = Field(
        ..., description="Overall health status: healthy, degraded, unhealthy"
    )
    services: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Individual service statuses"
    )
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: Optional[str] = Field(None, description="Application version")


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = Field(True, description="Always true for health responses")
    health: HealthStatus = Field(..., description="Detailed health information")


class ScoresData(BaseModel):
    """Factor scores of a stock pick."""

    momentum: int = Field(..., ge=0, le=100)
    volume: int = Field(..., ge=0, le=100)
    trend: int = Field(..., ge=0, le=100)
    volatility: int = Field(..., ge=0, le=100)
    liquidity: int = Field(..., ge=0, le=100)
    quality: int = Field(..., ge=0, le=100)
    composite: int = Field(..., ge=0, le=100)


class StockPick(BaseModel):
    """A ranked stock pick with scores and signals."""

    ticker: str = Field(..., description="Stock symbol")
    name: Optional[str] = Field(None, description="Company name")
    close: float = Field(..., description="Last price")
    open: Optional[float] = Field(None, description="Session open")
    high: Optional[float] = Field(None, description="Session high")
    low: Optional[float] = Field(None, description="Session low")
    change: float = Field(..., description="Price change amount")
    change_percent: float = Field(..., description="Price change percentage")
    volume: Optional[int] = Field(None, description="Trading volume")
    avg_volume: Optional[int] = Field(None, description="Average trading volume")
    scores: ScoresData = Field(..., description="Factor and composite scores")
    signals: List[str] = Field(default_factory=list, description="Signal tags")

    @classmethod
    def from_scored_stock(cls, stock: ScoredStock) -> "StockPick":
        return cls(
            ticker=stock.ticker,
            name=stock.name,
            close=stock.close,
            open=stock.open,
            high=stock.high,
            low=stock.low,
            change=stock.change,
            change_percent=stock.change_percent,
            volume=stock.volume,
            avg_volume=stock.avg_volume,
            scores=ScoresData(**stock.scores.to_dict()),
            signals=list(stock.signals),
        )


class StockPicksResponse(SuccessResponse[List[StockPick]]):
    """Response model for ranked stock picks."""

    data: List[StockPick] = Field(..., description="Ranked stock picks")


class AnalysisData(BaseModel):
    """Analysis text for a batch of stock picks."""

    stock_analyses: Dict[str, str] = Field(..., description="Analysis per ticker")
    market_insight: str = Field(..., description="Overall market insight")
    generated_at: datetime = Field(..., description="Generation timestamp")
    from_fallback: bool = Field(
        False, description="Whether the analysis was synthesized locally"
    )
    error: Optional[str] = Field(None, description="Why provider analysis failed")
    model: Optional[str] = Field(None, description="Provider model name")

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisData":
        return cls(
            stock_analyses=dict(result.stock_analyses),
            market_insight=result.market_insight,
            generated_at=result.generated_at,
            from_fallback=result.from_fallback,
            error=result.error,
            model=result.model,
        )


class AnalysisResponse(SuccessResponse[AnalysisData]):
    """Response model for stock analysis."""

    data: AnalysisData = Field(..., description="Analysis data")


# Utility response models
class MessageResponse(SuccessResponse[Dict[str, str]]):
    """Simple message response."""

    data: Dict[str, str] = Field(..., description="Message data")

    @classmethod
    def create(
        cls, message: str, request_id: Optional[str] = None
    ) -> "MessageResponse":
        """Create a simple message response."""
        return cls(
            success=True,
            data={"message": message},
            message=message,
            request_id=request_id,
        )


class StatusResponse(SuccessResponse[Dict[str, Any]]):
    """Generic status response."""

    data: Dict[str, Any] = Field(..., description="Status data")

    @classmethod
    def create(
        cls,
        data: Dict[str, Any],
        message: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> "StatusResponse":
        """Create a status response."""
        return cls(success=True, data=data, message=message, request_id=request_id)
