"""Shared test configuration and fixtures."""

from typing import Any, Dict, List
from unittest.mock import AsyncMock, Mock, patch

import pytest

from marketdash.config.settings import Settings, get_settings
from marketdash.services.stock_picker.models import Quote, ScoredStock, StockScores

# Start a little way into a 15 minute cache bucket
BASE_TIME = 1_000_000_000.0


class FakeClock:
    """Manually advanced clock standing in for time.time."""

    def __init__(self, start: float = BASE_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_quote(**overrides) -> Quote:
    """Build a quote that clears every selection criterion by default."""
    data: Dict[str, Any] = {
        "ticker": "AAPL",
        "close": 150.0,
        "open": 145.0,
        "high": 152.0,
        "low": 144.0,
        "change": 3.0,
        "change_percent": 2.0,
        "volume": 20_000_000,
        "avg_volume": 8_000_000,
    }
    data.update(overrides)
    return Quote(**data)


def make_scored_stock(ticker: str, composite: int = 72, signals=()) -> ScoredStock:
    """Build a scored stock without running the algorithm."""
    return ScoredStock(
        ticker=ticker,
        close=150.0,
        change=3.0,
        change_percent=2.0,
        volume=20_000_000,
        avg_volume=8_000_000,
        scores=StockScores(
            momentum=28,
            volume=85,
            trend=76,
            volatility=90,
            liquidity=100,
            quality=90,
            composite=composite,
        ),
        signals=tuple(signals),
    )


def analysis_payload(tickers: List[str], insight: str = "Markets are mixed.") -> dict:
    """Build a well-formed provider response for tickers."""
    return {
        "stockAnalyses": {t: f"{t} provider analysis" for t in tickers},
        "marketInsight": insight,
        "generatedAt": "2024-01-15T10:30:00Z",
        "model": "gemini-test",
    }


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="testing",
        analysis_provider_url="https://provider.test",
        analysis_provider_api_key="test_api_key",
        log_file_enabled=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    """Backoff sleep that returns immediately and records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def scored_stocks():
    return [
        make_scored_stock("AAPL", composite=85, signals=["Strong Bullish"]),
        make_scored_stock("MSFT", composite=72, signals=["High Volume", "Accumulation"]),
        make_scored_stock("NVDA", composite=65),
        make_scored_stock("AMZN", composite=55, signals=["Bullish"]),
    ]


@pytest.fixture
def mock_provider():
    """Analysis provider that answers every request successfully."""

    async def analyze(stocks, request_id):
        return analysis_payload([s.ticker for s in stocks])

    provider = Mock()
    provider.analyze = AsyncMock(side_effect=analyze)
    provider.check_health = AsyncMock(return_value={"healthy": True})
    return provider


@pytest.fixture(autouse=True)
def test_environment():
    """Keep tests away from real provider credentials and log files."""
    with patch.dict(
        "os.environ",
        {
            "ENVIRONMENT": "testing",
            "LOG_FILE_ENABLED": "false",
            "ANALYSIS_PROVIDER_URL": "https://provider.test",
            "ANALYSIS_PROVIDER_API_KEY": "test_api_key",
        },
    ):
        yield


@pytest.fixture(autouse=True)
def clean_lru_cache():
    """Clear LRU caches between tests to avoid state pollution."""
    from marketdash.services.stock_picker.service import get_stock_picker_service

    yield

    get_settings.cache_clear()
    get_stock_picker_service.cache_clear()
