"""Stock picker service module."""

from .algorithm import evaluate_stocks, score_stock
from .analysis import AnalysisCoordinator
from .cache import AnalysisCache
from .exceptions import (
    AnalysisProviderError,
    InvalidAnalysisResponseError,
    MarketDataError,
    StockPickerError,
)
from .fallback import build_fallback_analysis
from .models import AnalysisResult, CacheEntry, Quote, ScoredStock, StockScores
from .provider import AnalysisProvider, EdgeFunctionAnalysisProvider
from .service import StockPickerService, get_stock_picker_service

__all__ = [
    "StockPickerService",
    "get_stock_picker_service",
    "AnalysisCoordinator",
    "AnalysisCache",
    "AnalysisProvider",
    "EdgeFunctionAnalysisProvider",
    "evaluate_stocks",
    "score_stock",
    "build_fallback_analysis",
    "Quote",
    "ScoredStock",
    "StockScores",
    "AnalysisResult",
    "CacheEntry",
    "StockPickerError",
    "AnalysisProviderError",
    "InvalidAnalysisResponseError",
    "MarketDataError",
]
