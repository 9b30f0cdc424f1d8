"""Utility helpers for MarketDash."""
