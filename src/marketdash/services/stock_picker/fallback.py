"""Locally synthesized analysis used when the analysis provider is unavailable."""

from typing import Iterable, Sequence

from .models import AnalysisResult, ScoredStock

DEFAULT_REASON = "AI analysis is temporarily unavailable"


def potential_phrase(composite: int) -> str:
    """Map a composite score to a qualitative tier."""
    if composite > 80:
        return "strong potential"
    if composite > 60:
        return "good potential"
    return "moderate potential"


def describe_stock(stock: ScoredStock) -> str:
    """Compose a one-sentence explanation from a stock's signals and score."""
    phrase = potential_phrase(stock.scores.composite)
    if stock.signals:
        return (
            f"{stock.ticker} shows {', '.join(stock.signals)} signals with "
            f"{phrase} based on a composite score of {stock.scores.composite}/100."
        )
    return (
        f"{stock.ticker} shows no standout technical signals today and has "
        f"{phrase} based on a composite score of {stock.scores.composite}/100."
    )


def build_fallback_analysis(
    stocks: Iterable[ScoredStock], reason: str = DEFAULT_REASON
) -> AnalysisResult:
    """
    Build an analysis result from scores and signals alone.

    Args:
        stocks: Scored stocks to describe
        reason: Why provider analysis is unavailable; stated in the market insight

    Returns:
        AnalysisResult flagged as a fallback with an entry for every stock
    """
    stocks = list(stocks)
    return AnalysisResult(
        stock_analyses={stock.ticker: describe_stock(stock) for stock in stocks},
        market_insight=(
            f"{reason}. Showing algorithmic analysis based on technical signals "
            f"and composite scores for {len(stocks)} stocks."
        ),
        from_fallback=True,
        error=reason,
    )


def fill_missing_analyses(
    result: AnalysisResult, stocks: Sequence[ScoredStock]
) -> AnalysisResult:
    """Add synthesized text for stocks the result does not cover, in place."""
    for stock in stocks:
        if stock.ticker not in result.stock_analyses:
            result.stock_analyses[stock.ticker] = describe_stock(stock)
    return result
