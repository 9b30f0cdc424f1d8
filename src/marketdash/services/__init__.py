"""Service layer for business logic encapsulation."""

from .market_data import YFinanceQuoteSource
from .stock_picker import StockPickerService

__all__ = [
    "StockPickerService",
    "YFinanceQuoteSource",
]
