"""Tests for locally synthesized analysis."""

import sys

import pytest

sys.path.append("src")
from conftest import make_scored_stock

from marketdash.services.stock_picker.fallback import (
    DEFAULT_REASON,
    build_fallback_analysis,
    describe_stock,
    fill_missing_analyses,
    potential_phrase,
)
from marketdash.services.stock_picker.models import AnalysisResult


@pytest.mark.parametrize(
    "composite,phrase",
    [
        (95, "strong potential"),
        (81, "strong potential"),
        (80, "good potential"),
        (61, "good potential"),
        (60, "moderate potential"),
        (10, "moderate potential"),
    ],
)
def test_potential_phrase_tiers(composite, phrase):
    assert potential_phrase(composite) == phrase


def test_describe_stock_mentions_signals_and_tier():
    stock = make_scored_stock("AAPL", composite=85, signals=["Strong Bullish"])
    text = describe_stock(stock)

    assert "AAPL" in text
    assert "Strong Bullish" in text
    assert "strong potential" in text
    assert "85/100" in text


def test_describe_stock_without_signals_uses_generic_text():
    text = describe_stock(make_scored_stock("NVDA", composite=65))

    assert text.startswith("NVDA shows no standout technical signals")
    assert "good potential" in text


def test_build_fallback_analysis_covers_every_stock(scored_stocks):
    result = build_fallback_analysis(scored_stocks, reason="Provider offline")

    assert result.from_fallback is True
    assert result.error == "Provider offline"
    assert set(result.stock_analyses) == {"AAPL", "MSFT", "NVDA", "AMZN"}
    assert result.market_insight.startswith("Provider offline.")
    assert "4 stocks" in result.market_insight


def test_build_fallback_analysis_default_reason():
    result = build_fallback_analysis([make_scored_stock("AAPL")])
    assert result.error == DEFAULT_REASON


def test_fill_missing_analyses_keeps_existing_text(scored_stocks):
    result = AnalysisResult(
        stock_analyses={"AAPL": "Provider text"}, market_insight="Insight"
    )
    filled = fill_missing_analyses(result, scored_stocks)

    assert filled is result
    assert filled.stock_analyses["AAPL"] == "Provider text"
    assert set(filled.stock_analyses) == {"AAPL", "MSFT", "NVDA", "AMZN"}
    assert "MSFT shows High Volume, Accumulation signals" in filled.stock_analyses["MSFT"]
