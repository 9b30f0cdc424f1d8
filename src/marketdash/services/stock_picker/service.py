"""Main orchestration service for stock picks and their analysis."""

from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence

from ...config.logging import get_logger
from ...config.settings import Settings, get_settings
from .algorithm import evaluate_stocks
from .analysis import AnalysisCoordinator
from .exceptions import MarketDataError
from .models import AnalysisResult, Quote, ScoredStock
from .provider import AnalysisProvider, EdgeFunctionAnalysisProvider

logger = get_logger(__name__)


class QuoteSource(Protocol):
    """Protocol for market data sources that supply quotes."""

    async def get_quotes(self, symbols: Iterable[str]) -> List[Quote]:
        ...


class StockPickerService:
    """Service for algorithmic stock picks and AI-enhanced analysis."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        provider: Optional[AnalysisProvider] = None,
        coordinator: Optional[AnalysisCoordinator] = None,
        quote_source: Optional[QuoteSource] = None,
    ):
        self.logger = get_logger(__name__)
        self.settings = settings or get_settings()
        self.provider = provider or EdgeFunctionAnalysisProvider(
            base_url=self.settings.analysis_provider_url,
            api_key=self.settings.analysis_provider_api_key,
            function_name=self.settings.analysis_function_name,
        )
        self.coordinator = coordinator or AnalysisCoordinator(
            self.provider, settings=self.settings
        )
        if quote_source is None:
            from ..market_data import YFinanceQuoteSource

            quote_source = YFinanceQuoteSource()
        self.quote_source = quote_source

    def get_top_picks(self, quotes: Iterable[Quote]) -> List[ScoredStock]:
        """
        Get top stock picks based on algorithmic analysis.

        Args:
            quotes: Quotes to evaluate

        Returns:
            Ranked picks, or an empty list if the algorithm is disabled or fails
        """
        if not self.settings.use_stock_picker_algorithm:
            self.logger.info("Stock picker algorithm is disabled by feature flag")
            return []

        try:
            return evaluate_stocks(quotes)
        except Exception as e:
            self.logger.error("Error in stock picker algorithm", error=str(e), exc_info=True)
            return []

    async def pick_symbols(self, symbols: Iterable[str]) -> List[ScoredStock]:
        """
        Fetch quotes for symbols and rank them.

        Args:
            symbols: Ticker symbols to consider

        Returns:
            Ranked picks among the symbols that could be quoted

        Raises:
            MarketDataError: If none of the symbols could be quoted
        """
        symbols = list(symbols)
        quotes = await self.quote_source.get_quotes(symbols)
        if not quotes:
            raise MarketDataError(
                "No quotes available for the requested symbols", symbols=symbols
            )
        return self.get_top_picks(quotes)

    async def get_stock_analysis(self, stocks: Sequence[ScoredStock]) -> AnalysisResult:
        """Get AI-enhanced analysis for scored stocks; never raises."""
        return await self.coordinator.get_analysis(stocks)

    async def check_analysis_health(self) -> Dict[str, Any]:
        """Check whether the analysis provider is reachable."""
        if not self.settings.use_ai_stock_analysis:
            return {"healthy": False, "error": "AI analysis is disabled"}
        return await self.provider.check_health()

    def clear_analysis_cache(self) -> int:
        """Clear cached analysis and reset retry state."""
        return self.coordinator.clear_cache()

    def reset(self) -> None:
        self.coordinator.reset()


@lru_cache()
def get_stock_picker_service() -> StockPickerService:
    """
    Get the process-wide stock picker service.

    Returns:
        StockPickerService: Shared instance owning the analysis cache
    """
    return StockPickerService()
