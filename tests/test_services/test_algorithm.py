"""Tests for the stock picker scoring algorithm."""

import sys
from dataclasses import replace

import pytest

sys.path.append("src")
from conftest import make_quote

from marketdash.services.stock_picker.algorithm import (
    calculate_composite_score,
    calculate_liquidity_score,
    calculate_momentum_score,
    calculate_quality_score,
    calculate_trend_score,
    calculate_volatility_score,
    calculate_volume_score,
    evaluate_stocks,
    identify_signals,
    meets_minimum_criteria,
    passes_prefilter,
    score_stock,
)
from marketdash.services.stock_picker.models import Quote, StockScores


class TestFactorScores:
    """Test the individual factor scores."""

    @pytest.mark.parametrize(
        "change_percent,expected",
        [(5, 40), (12, 40), (0, 20), (-5, 0), (-9, 0), (2, 28), (-1.25, 15)],
    )
    def test_momentum_score(self, change_percent, expected):
        """Momentum maps +/-5% onto a 0-40 scale."""
        stock = make_quote(change_percent=change_percent)
        assert calculate_momentum_score(stock) == expected

    @pytest.mark.parametrize(
        "volume,avg_volume,expected",
        [
            (4_000_000, 1_000_000, 100),
            (2_500_000, 1_000_000, 85),
            (1_600_000, 1_000_000, 75),
            (1_200_000, 1_000_000, 60),
            (1_000_000, 1_000_000, 50),
            (400_000, 1_000_000, 40),
            (200_000, 1_000_000, 40),
        ],
    )
    def test_volume_score_tiers(self, volume, avg_volume, expected):
        """Volume ratio maps to fixed tiers; the 40 tier covers every ratio below 0.5."""
        stock = make_quote(volume=volume, avg_volume=avg_volume)
        assert calculate_volume_score(stock) == expected

    def test_volume_score_neutral_without_volume(self):
        assert calculate_volume_score(make_quote(volume=None)) == 50
        assert calculate_volume_score(make_quote(volume=0)) == 50

    def test_volume_score_defaults_ratio_without_average(self):
        """A missing average volume counts as a ratio of one."""
        assert calculate_volume_score(make_quote(avg_volume=None)) == 50

    @pytest.mark.parametrize(
        "change,change_percent,expected",
        [
            (3.0, 2.0, 76),
            (20.0, 15.0, 100),
            (-3.0, -2.0, 36),
            (-20.0, -15.0, 60),
            (0.0, 0.0, 50),
        ],
    )
    def test_trend_score(self, change, change_percent, expected):
        stock = make_quote(change=change, change_percent=change_percent)
        assert calculate_trend_score(stock) == expected

    @pytest.mark.parametrize(
        "high,low,expected",
        [
            (100.4, 100.0, 30),
            (100.8, 100.0, 40),
            (101.5, 100.0, 60),
            (102.5, 100.0, 70),
            (104.0, 100.0, 80),
            (106.0, 100.0, 90),
        ],
    )
    def test_volatility_score_tiers(self, high, low, expected):
        stock = make_quote(open=100.0, high=high, low=low)
        assert calculate_volatility_score(stock) == expected

    def test_volatility_score_neutral_without_range(self):
        assert calculate_volatility_score(make_quote(high=None)) == 50
        assert calculate_volatility_score(make_quote(open=None)) == 50

    @pytest.mark.parametrize(
        "close,volume,expected",
        [
            (150.0, 1_000_000, 100),
            (60.0, 1_000_000, 90),
            (25.0, 1_000_000, 80),
            (12.0, 1_000_000, 70),
            (6.0, 1_000_000, 60),
            (2.0, 1_000_000, 50),
            (1.0, 600_000, 30),
            (1.0, 100_000, 10),
        ],
    )
    def test_liquidity_score_tiers(self, close, volume, expected):
        stock = make_quote(close=close, volume=volume)
        assert calculate_liquidity_score(stock) == expected

    def test_liquidity_score_zero_without_volume(self):
        assert calculate_liquidity_score(make_quote(volume=None)) == 0

    def test_quality_score_for_large_liquid_stock(self):
        """High price, heavy volume and high average volume max out the bonuses."""
        assert calculate_quality_score(make_quote()) == 90

    def test_quality_score_penalties_do_not_stack(self):
        """A sub-$5 stock takes the larger penalty only."""
        cheap = make_quote(close=4.0, volume=50_000, avg_volume=None)
        assert calculate_quality_score(cheap) == 25

        low = make_quote(close=8.0, volume=1_000_000, avg_volume=None)
        assert calculate_quality_score(low) == 45

    def test_composite_score_weights(self):
        scores = StockScores(
            momentum=28, volume=85, trend=76, volatility=90, liquidity=100, quality=90
        )
        assert calculate_composite_score(scores) == 72

    def test_composite_score_rounds_half_up(self):
        # 50 * 0.15 * 2 + 50 * 0.20 + 50 * 0.10 + 70 * 0.15 + 20 * 0.25 = 45.5
        scores = StockScores(
            momentum=20, volume=50, trend=50, volatility=50, liquidity=70, quality=50
        )
        assert calculate_composite_score(scores) == 46


class TestSignals:
    """Test signal tagging."""

    def test_signals_for_strong_stock(self):
        signals = identify_signals(make_quote())
        assert signals == [
            "High Volume",
            "Accumulation",
            "High Volatility",
            "High Quality",
            "High Liquidity",
        ]

    def test_strong_bullish_replaces_bullish(self):
        signals = identify_signals(make_quote(change_percent=6.0))
        assert signals[0] == "Strong Bullish"
        assert "Bullish" not in signals

    def test_bearish_and_distribution(self):
        stock = make_quote(change=-5.0, change_percent=-3.0)
        signals = identify_signals(stock)
        assert signals[:3] == ["Bearish", "High Volume", "Distribution"]

    def test_no_signals_for_quiet_stock(self):
        stock = Quote(ticker="QUIET", close=20.0, change_percent=0.5, volume=500_000)
        assert identify_signals(stock) == []


class TestEvaluateStocks:
    """Test the end-to-end evaluation pipeline."""

    def test_empty_input(self):
        assert evaluate_stocks([]) == []

    def test_prefilter_rejects_cheap_and_thin_stocks(self):
        assert not passes_prefilter(make_quote(close=9.99))
        assert not passes_prefilter(make_quote(volume=999_999))
        assert not passes_prefilter(make_quote(volume=None))
        assert passes_prefilter(make_quote(close=10.0, volume=1_000_000))

        assert evaluate_stocks([make_quote(close=5.0), make_quote(volume=10)]) == []

    def test_score_stock_populates_scores_and_signals(self):
        scored = score_stock(make_quote(name="Apple Inc."))

        assert scored.ticker == "AAPL"
        assert scored.name == "Apple Inc."
        assert scored.scores == StockScores(
            momentum=28,
            volume=85,
            trend=76,
            volatility=90,
            liquidity=100,
            quality=90,
            composite=72,
        )
        assert "High Liquidity" in scored.signals

    def test_dollar_volume_floor_and_liquidity_score_are_separate_checks(self):
        """$12M traded clears the dollar floor and scores 70 on liquidity."""
        quote = Quote(ticker="MID", close=12.0, volume=1_000_000)
        scored = score_stock(quote)

        assert quote.dollar_volume == 12_000_000
        assert scored.scores.liquidity == 70
        # Rejected on composite only
        assert scored.scores.composite == 46
        assert not meets_minimum_criteria(scored)

        rising = Quote(
            ticker="MID",
            close=12.0,
            change=0.46,
            change_percent=4.0,
            volume=1_000_000,
            avg_volume=1_200_000,
        )
        picks = evaluate_stocks([rising])
        assert [p.ticker for p in picks] == ["MID"]
        assert picks[0].scores.composite == 57
        assert picks[0].signals == ("Bullish",)

    def test_quality_floor_is_inclusive(self):
        stock = make_quote(
            ticker="LOWQ",
            close=11.0,
            open=11.0,
            high=11.2,
            low=10.9,
            volume=1_000_000,
            avg_volume=None,
        )
        scored = score_stock(stock)
        assert scored.scores.quality == 50
        assert scored.scores.liquidity == 70
        assert scored.scores.composite == 55
        assert meets_minimum_criteria(scored)

        weaker = replace(scored, scores=replace(scored.scores, quality=49))
        assert not meets_minimum_criteria(weaker)

    def test_liquidity_score_floor(self):
        scored = score_stock(make_quote())
        assert not meets_minimum_criteria(
            replace(scored, scores=replace(scored.scores, liquidity=59))
        )

    def test_cardinality_bound_and_stable_ties(self):
        quotes = [make_quote(ticker=f"T{i}") for i in range(8)]
        picks = evaluate_stocks(quotes)

        assert len(picks) == 5
        assert [p.ticker for p in picks] == ["T0", "T1", "T2", "T3", "T4"]

    def test_sorted_by_composite_descending(self):
        quotes = [
            make_quote(ticker="FLAT", change=0.0, change_percent=0.0),
            make_quote(ticker="UP", change=6.0, change_percent=4.0),
            make_quote(ticker="DOWN", change=-1.5, change_percent=-1.0),
        ]
        picks = evaluate_stocks(quotes)
        composites = [p.scores.composite for p in picks]

        assert composites == sorted(composites, reverse=True)
        assert picks[0].ticker == "UP"

    def test_deterministic(self):
        quotes = [
            make_quote(ticker="A", change_percent=1.0),
            make_quote(ticker="B", change_percent=3.5),
            make_quote(ticker="C", change=-1.0, change_percent=-0.5),
            make_quote(ticker="D", close=45.0, volume=3_000_000),
        ]
        assert evaluate_stocks(quotes) == evaluate_stocks(list(quotes))

    def test_duplicates_scored_independently(self):
        picks = evaluate_stocks([make_quote(), make_quote()])
        assert [p.ticker for p in picks] == ["AAPL", "AAPL"]

    def test_output_satisfies_selection_invariants(self):
        quotes = [
            make_quote(ticker="A"),
            make_quote(ticker="B", close=12.0, volume=1_000_000, avg_volume=None),
            make_quote(ticker="C", close=30.0, volume=2_000_000, change_percent=4.5),
            make_quote(ticker="D", close=55.0, change=-2.0, change_percent=-4.0),
            make_quote(ticker="E", close=8.0),
            make_quote(ticker="F", close=300.0, volume=1_500_000, avg_volume=900_000),
            Quote(ticker="G", close=25.0, volume=2_000_000),
        ]
        picks = evaluate_stocks(quotes)

        assert picks
        for pick in picks:
            assert pick.close >= 10
            assert pick.volume >= 1_000_000
            assert pick.volume * pick.close >= 10_000_000
            assert pick.scores.quality >= 50
            assert pick.scores.liquidity >= 60
            assert pick.scores.composite >= 50
            for value in pick.scores.to_dict().values():
                assert isinstance(value, int)
                assert 0 <= value <= 100
