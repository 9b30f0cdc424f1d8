"""Rule-based multi-factor scoring and ranking of candidate stocks."""

import math
from dataclasses import replace
from typing import Iterable, List

from ...config.logging import get_logger
from .models import Quote, ScoredStock, StockScores

logger = get_logger(__name__)

MAX_PICKS = 5

# Hard floors shared by the pre-filter and the minimum-criteria pass
MIN_PRICE = 10.0
MIN_VOLUME = 1_000_000
MIN_DOLLAR_VOLUME = 10_000_000

MIN_QUALITY_SCORE = 50
MIN_LIQUIDITY_SCORE = 60
MIN_COMPOSITE_SCORE = 50

COMPOSITE_WEIGHTS = {
    "momentum": 0.25,
    "volume": 0.15,
    "trend": 0.20,
    "volatility": 0.10,
    "liquidity": 0.15,
    "quality": 0.15,
}


def _round(value: float) -> int:
    """Round half up, matching the dashboard's JavaScript Math.round."""
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def calculate_momentum_score(stock: Quote) -> int:
    """
    Score today's price change on a 0-40 scale.

    The change is clamped to +/-5% and mapped linearly before the 40% weight
    for today's change is applied.
    """
    change_weight = 40
    normalized_change = _clamp(stock.change_percent, -5, 5)
    change_score = ((normalized_change + 5) / 10) * 100 * (change_weight / 100)
    return min(_round(change_score), 100)


def calculate_volume_score(stock: Quote) -> int:
    """Score session volume relative to the average volume."""
    if not stock.volume:
        return 50

    volume_ratio = 1.0
    if stock.avg_volume and stock.avg_volume > 0:
        volume_ratio = stock.volume / stock.avg_volume

    if volume_ratio > 3:
        return 100
    elif volume_ratio > 2:
        return 85
    elif volume_ratio > 1.5:
        return 75
    elif volume_ratio > 1:
        return 60
    elif volume_ratio < 0.5:
        return 40
    elif volume_ratio < 0.3:
        return 30
    return 50


def calculate_trend_score(stock: Quote) -> int:
    """Score price direction: 70-100 when up, 30-60 when down, 50 when flat."""
    if stock.change > 0:
        score = 70 + min(_round(stock.change_percent * 3), 30)
    elif stock.change < 0:
        score = 30 + min(_round(stock.change_percent * -3), 30)
    else:
        score = 50
    return int(_clamp(score, 0, 100))


def calculate_volatility_score(stock: Quote) -> int:
    """Score the intraday range; neutral when high, low or open is missing."""
    day_range = stock.day_range_percent
    if day_range is None:
        return 50

    if day_range < 0.5:
        return 30
    if day_range < 1:
        return 40
    if day_range < 2:
        return 60
    if day_range < 3:
        return 70
    if day_range < 5:
        return 80
    return 90


def calculate_liquidity_score(stock: Quote) -> int:
    """Score dollar volume traded."""
    if not stock.volume or not stock.close:
        return 0

    dollar_volume = stock.dollar_volume
    if dollar_volume > 100_000_000:
        return 100
    if dollar_volume > 50_000_000:
        return 90
    if dollar_volume > 20_000_000:
        return 80
    if dollar_volume > 10_000_000:
        return 70
    if dollar_volume > 5_000_000:
        return 60
    if dollar_volume > 1_000_000:
        return 50
    if dollar_volume > 500_000:
        return 30
    return 10


def calculate_quality_score(stock: Quote) -> int:
    """Score price level and trading activity as a proxy for stock quality."""
    score = 50

    if stock.close >= 100:
        score += 20
    elif stock.close >= 50:
        score += 15
    elif stock.close >= 25:
        score += 10
    elif stock.close >= 15:
        score += 5

    if stock.close < 5:
        score -= 15
    elif stock.close < 10:
        score -= 5

    volume = stock.volume or 0
    if volume > 5_000_000:
        score += 10
    elif volume < 100_000:
        score -= 10

    if stock.avg_volume and stock.avg_volume > 1_000_000:
        score += 10

    return int(_clamp(score, 0, 100))


def calculate_composite_score(scores: StockScores) -> int:
    """Blend the factor scores with the fixed composite weights."""
    total = sum(
        getattr(scores, factor) * weight for factor, weight in COMPOSITE_WEIGHTS.items()
    )
    return int(_clamp(_round(total), 0, 100))


def identify_signals(stock: Quote) -> List[str]:
    """Tag notable conditions in evaluation order."""
    signals = []

    # Price action
    if stock.change_percent > 5:
        signals.append("Strong Bullish")
    elif stock.change_percent > 2:
        signals.append("Bullish")
    if stock.change_percent < -5:
        signals.append("Strong Bearish")
    elif stock.change_percent < -2:
        signals.append("Bearish")

    # Volume with direction
    if stock.volume and stock.avg_volume and stock.volume > stock.avg_volume * 2:
        signals.append("High Volume")
        if stock.change_percent > 0:
            signals.append("Accumulation")
        elif stock.change_percent < 0:
            signals.append("Distribution")

    day_range = stock.day_range_percent
    if day_range is not None and day_range > 5:
        signals.append("High Volatility")

    if stock.close >= 50 and (stock.volume or 0) > 1_000_000:
        signals.append("High Quality")

    if stock.dollar_volume > 50_000_000:
        signals.append("High Liquidity")

    return signals


def passes_prefilter(stock: Quote) -> bool:
    """Cheap price and volume floors applied before scoring."""
    return stock.close >= MIN_PRICE and (stock.volume or 0) >= MIN_VOLUME


def meets_minimum_criteria(stock: ScoredStock) -> bool:
    """Check a scored stock against the hard selection criteria."""
    if stock.close < MIN_PRICE:
        return False
    if not stock.volume or stock.volume < MIN_VOLUME:
        return False
    if stock.dollar_volume < MIN_DOLLAR_VOLUME:
        return False
    if stock.scores.quality < MIN_QUALITY_SCORE:
        return False
    if stock.scores.liquidity < MIN_LIQUIDITY_SCORE:
        return False
    if stock.scores.composite < MIN_COMPOSITE_SCORE:
        return False
    return True


def score_stock(stock: Quote) -> ScoredStock:
    """
    Compute factor scores, composite score and signals for one quote.

    Args:
        stock: Quote to score

    Returns:
        ScoredStock carrying the quote fields plus scores and signals
    """
    factor_scores = StockScores(
        momentum=calculate_momentum_score(stock),
        volume=calculate_volume_score(stock),
        trend=calculate_trend_score(stock),
        volatility=calculate_volatility_score(stock),
        liquidity=calculate_liquidity_score(stock),
        quality=calculate_quality_score(stock),
    )
    scores = replace(factor_scores, composite=calculate_composite_score(factor_scores))

    return ScoredStock(
        ticker=stock.ticker,
        close=stock.close,
        open=stock.open,
        high=stock.high,
        low=stock.low,
        change=stock.change,
        change_percent=stock.change_percent,
        volume=stock.volume,
        avg_volume=stock.avg_volume,
        name=stock.name,
        scores=scores,
        signals=tuple(identify_signals(stock)),
    )


def evaluate_stocks(quotes: Iterable[Quote]) -> List[ScoredStock]:
    """
    Evaluate, filter and rank quotes into the top stock picks.

    Args:
        quotes: Quotes to evaluate; duplicates are scored independently

    Returns:
        At most five scored stocks meeting the minimum criteria, sorted by
        composite score descending. Empty when nothing qualifies.
    """
    quotes = list(quotes)
    logger.debug("Evaluating stocks", input_count=len(quotes))

    candidates = [quote for quote in quotes if passes_prefilter(quote)]
    scored = [score_stock(quote) for quote in candidates]
    qualified = [stock for stock in scored if meets_minimum_criteria(stock)]

    # sorted() is stable, so ties keep input order
    ranked = sorted(qualified, key=lambda s: s.scores.composite, reverse=True)
    picks = ranked[:MAX_PICKS]

    logger.info(
        "Stock evaluation completed",
        input_count=len(quotes),
        prefiltered=len(candidates),
        qualified=len(qualified),
        picks=[stock.ticker for stock in picks],
    )

    return picks
