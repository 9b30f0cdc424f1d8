"""Tests for the command line entry point."""

import sys
from unittest.mock import AsyncMock, Mock, patch

import pytest

sys.path.append("src")
from conftest import make_scored_stock

import main
from marketdash.services.stock_picker.exceptions import MarketDataError
from marketdash.services.stock_picker.fallback import build_fallback_analysis


@pytest.fixture
def mock_service():
    picks = [
        make_scored_stock("AAPL", composite=85, signals=["Strong Bullish"]),
        make_scored_stock("MSFT", composite=70),
    ]
    service = Mock()
    service.pick_symbols = AsyncMock(return_value=picks)
    service.get_stock_analysis = AsyncMock(
        return_value=build_fallback_analysis(picks, reason="Provider offline")
    )
    return service


@pytest.mark.asyncio
async def test_print_picks(mock_service, capsys):
    with patch("main.get_stock_picker_service", return_value=mock_service):
        await main.print_picks(["AAPL", "MSFT"])

    output = capsys.readouterr().out
    assert "1. AAPL $150.00 (+2.00%) composite 85/100 signals: Strong Bullish" in output
    assert "2. MSFT" in output
    assert "Market insight: Provider offline." in output
    assert "(fallback analysis: Provider offline)" in output


@pytest.mark.asyncio
async def test_print_picks_without_picks(mock_service, capsys):
    mock_service.pick_symbols.return_value = []

    with patch("main.get_stock_picker_service", return_value=mock_service):
        await main.print_picks(["ZZZZ"])

    assert "No stocks met the selection criteria." in capsys.readouterr().out
    mock_service.get_stock_analysis.assert_not_called()


def test_main_picks_mode(mock_service):
    with patch.object(sys, "argv", ["main.py", "-picks", "aapl, msft"]), patch(
        "main.initialize_application"
    ), patch("main.print_picks", new=Mock(return_value=None)) as mock_print, patch(
        "main.asyncio.run"
    ) as mock_run:
        main.main()

    mock_print.assert_called_once_with(["AAPL", "MSFT"])
    mock_run.assert_called_once()


def test_main_picks_mode_requires_symbols():
    with patch.object(sys, "argv", ["main.py", "-picks"]), patch(
        "main.initialize_application"
    ):
        with pytest.raises(SystemExit):
            main.main()


def test_main_serves_api():
    with patch.object(sys, "argv", ["main.py"]), patch(
        "main.initialize_application"
    ), patch("main.uvicorn.run") as mock_uvicorn:
        main.main()

    args, kwargs = mock_uvicorn.call_args
    assert args[0] == "marketdash.webapi.app:app"
    assert kwargs["port"] == 8000


@pytest.mark.asyncio
async def test_print_picks_without_quotes(mock_service, capsys):
    mock_service.pick_symbols.side_effect = MarketDataError(
        "No quotes available for the requested symbols", symbols=["ZZZZ"]
    )

    with patch("main.get_stock_picker_service", return_value=mock_service):
        await main.print_picks(["ZZZZ"])

    assert "No quotes available for the requested symbols: ZZZZ" in (
        capsys.readouterr().out
    )
    mock_service.get_stock_analysis.assert_not_called()
