"""
MarketDash - Main application entry point.

Ranks stocks with a transparent scoring algorithm and serves AI-written
analysis for the picks, degrading to cached or synthesized text when the
analysis provider is unavailable.
"""

import asyncio
import sys

import uvicorn
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from marketdash.config.logging import get_logger
from marketdash.config.settings import get_settings
from marketdash.services.stock_picker import MarketDataError, get_stock_picker_service
from marketdash.utils.config import initialize_application, validate_environment


async def print_picks(symbols: list) -> None:
    """Rank symbols and print the picks with their analysis."""
    logger = get_logger(__name__)
    service = get_stock_picker_service()

    try:
        picks = await service.pick_symbols(symbols)
    except MarketDataError as e:
        print(f"Error: {e.message}: {', '.join(e.symbols)}")
        logger.warning("No quotes for symbols", symbols=symbols)
        return

    if not picks:
        print("No stocks met the selection criteria.")
        logger.info("No picks for symbols", symbols=symbols)
        return

    analysis = await service.get_stock_analysis(picks)

    for rank, pick in enumerate(picks, start=1):
        signals = ", ".join(pick.signals) or "none"
        print(
            f"{rank}. {pick.ticker} ${pick.close:.2f} "
            f"({pick.change_percent:+.2f}%) composite {pick.scores.composite}/100 "
            f"signals: {signals}"
        )
        print(f"   {analysis.stock_analyses.get(pick.ticker, '')}")

    print(f"\nMarket insight: {analysis.market_insight}")
    if analysis.from_fallback:
        print(f"(fallback analysis: {analysis.error})")


def main() -> None:
    """Main application entry point."""
    # Initialize application (logging, config)
    initialize_application()

    logger = get_logger(__name__)
    logger.info("Starting MarketDash application")

    settings = get_settings()

    if validate_environment():
        logger.info("Environment validation passed")
    else:
        print(
            "Analysis provider not configured, AI analysis will use fallback text."
        )

    if "-picks" in sys.argv:
        try:
            raw = sys.argv[sys.argv.index("-picks") + 1]
        except IndexError:
            logger.error("Invalid picks command")
            print("Error: Please provide comma separated symbols after -picks flag.")
            sys.exit(1)

        symbols = [s.strip().upper() for s in raw.split(",") if s.strip()]
        if not symbols:
            print("Error: Please provide comma separated symbols after -picks flag.")
            sys.exit(1)

        logger.info("Running picks mode", symbols=symbols)
        asyncio.run(print_picks(symbols))
    else:
        logger.info(
            "Starting API server",
            host=settings.endpoint_host,
            port=settings.endpoint_port,
        )
        print("Starting MarketDash API...")

        try:
            uvicorn.run(
                "marketdash.webapi.app:app",
                host=settings.endpoint_host,
                port=settings.endpoint_port,
                reload=settings.api_reload,
                log_level=settings.api_log_level.lower(),
            )
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")
            print("\nShutting down...")


if __name__ == "__main__":
    main()
