"""Stock picker and AI analysis endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from ...config.logging import get_logger
from ...services.stock_picker import StockPickerService, get_stock_picker_service
from ..exceptions import ValidationException
from ..models.requests import AlgorithmRequest, AnalysisRequest
from ..models.responses import (
    AnalysisData,
    AnalysisResponse,
    StatusResponse,
    StockPick,
    StockPicksResponse,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/stock-picker")


@router.post(
    "/algorithm",
    response_model=StockPicksResponse,
    summary="Rank Quotes",
    description="Score submitted quotes and return the top algorithmic picks",
)
async def run_algorithm(
    body: AlgorithmRequest,
    request: Request,
    service: StockPickerService = Depends(get_stock_picker_service),
):
    """
    Rank submitted quotes.

    Quotes failing the price, volume or liquidity filters are dropped. At most
    five picks are returned, best composite score first.
    """
    request_id = getattr(request.state, "request_id", None)

    quotes = [stock.to_quote() for stock in body.stocks]
    picks = service.get_top_picks(quotes)

    logger.info(
        "Algorithm picks computed",
        submitted=len(quotes),
        picks=len(picks),
        request_id=request_id,
    )

    return StockPicksResponse(
        success=True,
        data=[StockPick.from_scored_stock(pick) for pick in picks],
        request_id=request_id,
    )


@router.get(
    "/picks",
    response_model=StockPicksResponse,
    summary="Get Picks For Symbols",
    description="Fetch live quotes for symbols and return the top algorithmic picks",
)
async def get_picks(
    request: Request,
    symbols: str = Query(..., description="Comma separated ticker symbols"),
    service: StockPickerService = Depends(get_stock_picker_service),
):
    """
    Fetch quotes for a list of symbols and rank them.

    - **symbols**: Comma separated tickers (e.g., AAPL,MSFT,NVDA)

    Responds with 503 when none of the symbols can be quoted.
    """
    request_id = getattr(request.state, "request_id", None)

    symbol_list = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    if not symbol_list:
        raise ValidationException(
            "At least one symbol is required",
            field_errors={"symbols": "No symbols provided"},
            request_id=request_id,
        )

    picks = await service.pick_symbols(symbol_list)

    logger.info(
        "Symbol picks computed",
        symbols=symbol_list,
        picks=len(picks),
        request_id=request_id,
    )

    return StockPicksResponse(
        success=True,
        data=[StockPick.from_scored_stock(pick) for pick in picks],
        request_id=request_id,
    )


@router.post(
    "/ai-analysis",
    response_model=AnalysisResponse,
    summary="Analyze Picks",
    description="Get AI-generated commentary for scored picks, with cached and fallback results",
)
async def analyze_picks(
    body: AnalysisRequest,
    request: Request,
    service: StockPickerService = Depends(get_stock_picker_service),
):
    """
    Analyze scored stock picks.

    The response always carries an analysis per ticker. When the provider is
    unavailable the analysis is served from cache or synthesized locally and
    `from_fallback` is set.
    """
    request_id = getattr(request.state, "request_id", None)

    stocks = [stock.to_scored_stock() for stock in body.stocks]
    result = await service.get_stock_analysis(stocks)

    logger.info(
        "Stock analysis served",
        tickers=[s.ticker for s in stocks],
        from_fallback=result.from_fallback,
        request_id=request_id,
    )

    return AnalysisResponse(
        success=True,
        data=AnalysisData.from_result(result),
        request_id=request_id,
    )


@router.get(
    "/ai-analysis/health",
    response_model=StatusResponse,
    summary="Analysis Provider Health",
    description="Check whether the AI analysis provider is reachable",
)
async def analysis_health(
    request: Request,
    service: StockPickerService = Depends(get_stock_picker_service),
):
    request_id = getattr(request.state, "request_id", None)
    health = await service.check_analysis_health()

    return StatusResponse.create(
        data={
            **health,
            "consecutive_errors": service.coordinator.consecutive_errors,
            "cached_entries": len(service.coordinator.cache),
        },
        request_id=request_id,
    )


@router.delete(
    "/ai-analysis/cache",
    response_model=StatusResponse,
    summary="Clear Analysis Cache",
    description="Drop cached analysis results and reset retry state",
)
async def clear_analysis_cache(
    request: Request,
    service: StockPickerService = Depends(get_stock_picker_service),
):
    request_id = getattr(request.state, "request_id", None)
    removed = service.clear_analysis_cache()

    return StatusResponse.create(
        data={"entries_removed": removed},
        message="Analysis cache cleared",
        request_id=request_id,
    )
