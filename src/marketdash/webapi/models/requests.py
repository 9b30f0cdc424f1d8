"""Request models for the MarketDash API."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ...services.stock_picker.models import Quote, ScoredStock, StockScores


class QuoteRequest(BaseModel):
    """A market quote submitted for scoring."""

    ticker: str = Field(
        ..., description="Stock symbol (e.g., AAPL, MSFT)", min_length=1, max_length=10
    )
    name: Optional[str] = Field(None, description="Company name")
    close: float = Field(..., gt=0, description="Last price")
    open: Optional[float] = Field(None, gt=0, description="Session open")
    high: Optional[float] = Field(None, gt=0, description="Session high")
    low: Optional[float] = Field(None, gt=0, description="Session low")
    change: float = Field(0.0, description="Price change vs previous close")
    change_percent: float = Field(
        0.0, description="Percent change vs previous close"
    )
    volume: Optional[int] = Field(None, ge=0, description="Shares traded")
    avg_volume: Optional[int] = Field(None, ge=0, description="Average shares traded")

    @field_validator("ticker")
    @classmethod
    def validate_ticker(cls, v):
        """Normalize ticker symbols to upper case."""
        v = v.strip()
        if not v:
            raise ValueError("Ticker must not be blank")
        return v.upper()

    def to_quote(self) -> Quote:
        return Quote(
            ticker=self.ticker,
            name=self.name,
            close=self.close,
            open=self.open,
            high=self.high,
            low=self.low,
            change=self.change,
            change_percent=self.change_percent,
            volume=self.volume,
            avg_volume=self.avg_volume,
        )


class ScoresRequest(BaseModel):
    """Factor scores supplied with a stock for analysis."""

    momentum: int = Field(0, ge=0, le=100)
    volume: int = Field(0, ge=0, le=100)
    trend: int = Field(0, ge=0, le=100)
    volatility: int = Field(0, ge=0, le=100)
    liquidity: int = Field(0, ge=0, le=100)
    quality: int = Field(0, ge=0, le=100)
    composite: int = Field(0, ge=0, le=100)


class ScoredStockRequest(QuoteRequest):
    """A scored stock pick submitted for analysis."""

    scores: ScoresRequest = Field(default_factory=ScoresRequest)
    signals: List[str] = Field(default_factory=list)

    def to_scored_stock(self) -> ScoredStock:
        quote = self.to_quote()
        return ScoredStock(
            ticker=quote.ticker,
            name=quote.name,
            close=quote.close,
            open=quote.open,
            high=quote.high,
            low=quote.low,
            change=quote.change,
            change_percent=quote.change_percent,
            volume=quote.volume,
            avg_volume=quote.avg_volume,
            scores=StockScores(**self.scores.model_dump()),
            signals=tuple(self.signals),
        )


class AlgorithmRequest(BaseModel):
    """Request model for ranking quotes."""

    stocks: List[QuoteRequest] = Field(..., description="Quotes to evaluate")


class AnalysisRequest(BaseModel):
    """Request model for AI analysis of stock picks."""

    stocks: List[ScoredStockRequest] = Field(
        ..., min_length=1, description="Scored stocks to analyze"
    )
