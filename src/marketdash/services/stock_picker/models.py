"""Data models for the stock picker service."""

from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from .exceptions import InvalidAnalysisResponseError


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present value among alternative key spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


@dataclass(frozen=True)
class Quote:
    """A point-in-time market snapshot for one ticker."""

    ticker: str
    close: float
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    change: float = 0.0
    change_percent: float = 0.0
    volume: Optional[int] = None  # Shares traded in the session
    avg_volume: Optional[int] = None  # Baseline volume for comparison
    name: Optional[str] = None

    @property
    def dollar_volume(self) -> float:
        """Shares traded times closing price, zero when either is missing."""
        if not self.volume or not self.close:
            return 0.0
        return self.volume * self.close

    @property
    def day_range_percent(self) -> Optional[float]:
        """Intraday high-low range as a percentage of the open."""
        if not self.high or not self.low or not self.open:
            return None
        return (self.high - self.low) / self.open * 100

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Quote":
        """Build a quote from a camelCase or snake_case mapping."""
        return cls(
            ticker=str(data["ticker"]).upper(),
            close=float(data["close"]),
            open=_optional_float(_pick(data, "open")),
            high=_optional_float(_pick(data, "high")),
            low=_optional_float(_pick(data, "low")),
            change=float(_pick(data, "change", default=0.0)),
            change_percent=float(
                _pick(data, "changePercent", "change_percent", default=0.0)
            ),
            volume=_optional_int(_pick(data, "volume")),
            avg_volume=_optional_int(_pick(data, "avgVolume", "avg_volume")),
            name=_pick(data, "name"),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Render the quote in the camelCase wire format."""
        payload = {
            "ticker": self.ticker,
            "close": self.close,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "change": self.change,
            "changePercent": self.change_percent,
            "volume": self.volume,
            "avgVolume": self.avg_volume,
            "name": self.name,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class StockScores:
    """Per-factor scores for a stock, each an integer in [0, 100]."""

    momentum: int = 0
    volume: int = 0
    trend: int = 0
    volatility: int = 0
    liquidity: int = 0
    quality: int = 0
    composite: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "momentum": self.momentum,
            "volume": self.volume,
            "trend": self.trend,
            "volatility": self.volatility,
            "liquidity": self.liquidity,
            "quality": self.quality,
            "composite": self.composite,
        }


@dataclass(frozen=True)
class ScoredStock(Quote):
    """A quote enriched with factor scores and signal tags."""

    scores: StockScores = field(default_factory=StockScores)
    signals: Tuple[str, ...] = ()  # Evaluation order, not significance

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoredStock":
        """Build a scored stock from a wire payload."""
        quote = Quote.from_dict(data)
        raw_scores = data.get("scores") or {}
        scores = StockScores(
            **{f.name: int(raw_scores.get(f.name, 0)) for f in fields(StockScores)}
        )
        return cls(
            **{f.name: getattr(quote, f.name) for f in fields(Quote)},
            scores=scores,
            signals=tuple(data.get("signals") or ()),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["scores"] = self.scores.to_dict()
        payload["signals"] = list(self.signals)
        return payload


@dataclass
class AnalysisResult:
    """Analysis text for a batch of scored stocks."""

    stock_analyses: Dict[str, str]
    market_insight: str
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    from_fallback: bool = False
    error: Optional[str] = None
    model: Optional[str] = None
    function_version: Optional[str] = None
    model_endpoint: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisResult":
        """
        Validate a provider response and convert it to a result.

        Args:
            payload: Decoded JSON body returned by the analysis provider

        Returns:
            AnalysisResult built from the payload

        Raises:
            InvalidAnalysisResponseError: If the payload is an error report or
                lacks a non-empty analysis mapping and market insight
        """
        if not isinstance(payload, Mapping):
            raise InvalidAnalysisResponseError("Empty response from analysis provider")

        if payload.get("error"):
            details = payload.get("details")
            message = f"Analysis error: {payload['error']}"
            if details:
                message += f" - {details}"
            raise InvalidAnalysisResponseError(message)

        analyses = payload.get("stockAnalyses")
        insight = payload.get("marketInsight")
        if not isinstance(analyses, Mapping) or not analyses:
            raise InvalidAnalysisResponseError("Response is missing stockAnalyses")
        if not isinstance(insight, str) or not insight.strip():
            raise InvalidAnalysisResponseError("Response is missing marketInsight")

        return cls(
            stock_analyses={str(k): str(v) for k, v in analyses.items()},
            market_insight=insight,
            generated_at=_parse_timestamp(payload.get("generatedAt")),
            from_fallback=bool(payload.get("fromFallback", False)),
            model=payload.get("model"),
            function_version=payload.get("functionVersion"),
            model_endpoint=payload.get("modelEndpoint"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the result in the camelCase wire format."""
        data: Dict[str, Any] = {
            "stockAnalyses": dict(self.stock_analyses),
            "marketInsight": self.market_insight,
            "generatedAt": self.generated_at.isoformat(),
            "fromFallback": self.from_fallback,
        }
        optional = {
            "error": self.error,
            "model": self.model,
            "functionVersion": self.function_version,
            "modelEndpoint": self.model_endpoint,
        }
        data.update({key: value for key, value in optional.items() if value})
        return data


@dataclass
class CacheEntry:
    """A cached analysis result and its bookkeeping."""

    result: AnalysisResult
    timestamp: float  # Epoch seconds when the entry was stored
    tickers: FrozenSet[str]
    stale: bool = False

    def age(self, now: float) -> float:
        return now - self.timestamp


def _parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, defaulting to now."""
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return datetime.now(timezone.utc)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return datetime.now(timezone.utc)
