"""MarketDash - algorithmic stock picks with AI-enhanced analysis."""

__version__ = "1.0.0"
