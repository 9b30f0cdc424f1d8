"""Exceptions raised inside the stock picker service."""

from typing import List, Optional


class StockPickerError(Exception):
    """Base exception for stock picker failures."""


class AnalysisProviderError(StockPickerError):
    """Raised when the analysis provider cannot be reached or answers with an error."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class InvalidAnalysisResponseError(StockPickerError):
    """Raised when a provider response lacks the required analysis fields."""


class MarketDataError(StockPickerError):
    """Raised when no quotes could be fetched for the requested symbols."""

    def __init__(self, message: str, symbols: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.symbols = symbols or []
