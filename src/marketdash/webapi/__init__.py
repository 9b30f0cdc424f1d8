"""Web API package for MarketDash."""
