"""FastAPI application exposing stock picks and AI analysis."""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config.logging import get_logger
from ..config.settings import get_settings
from ..services.stock_picker import get_stock_picker_service
from .exceptions import setup_exception_handlers
from .health import router as health_router
from .models.responses import MessageResponse, StatusResponse
from .routers import stock_picker_router

# Get settings and logger
settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info(
        "Starting MarketDash API",
        environment=settings.environment,
        ai_analysis_enabled=settings.use_ai_stock_analysis,
    )

    yield

    # Shutdown
    logger.info("Shutting down MarketDash API")
    get_stock_picker_service().reset()
    logger.info("MarketDash API shutdown completed")


async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    logger.info(
        "Request started",
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        query_params=str(request.query_params),
        user_agent=request.headers.get("user-agent"),
        remote_addr=request.client.host if request.client else None,
    )

    response = await call_next(request)

    response.headers["X-Request-ID"] = request_id

    logger.info(
        "Request completed",
        request_id=request_id,
        status_code=response.status_code,
        method=request.method,
        path=request.url.path,
    )

    return response


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="MarketDash API",
        description="""
        Algorithmic stock picks with AI-generated commentary.

        ## Features

        * **Stock Picker**: Score quotes on momentum, volume, trend, volatility,
          liquidity and quality, then rank the best candidates
        * **AI Analysis**: Commentary for each pick from a hosted model, cached
          and retried, with locally synthesized text when the model is unavailable
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Add middleware for request tracking
    app.middleware("http")(add_request_id_middleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health & Status"])
    app.include_router(stock_picker_router, prefix="/api/v1", tags=["Stock Picker"])

    @app.get(
        "/",
        response_model=MessageResponse,
        summary="API Root Endpoint",
        description="Basic API information",
    )
    async def root(request: Request) -> MessageResponse:
        return MessageResponse.create(
            message="MarketDash API - Stock picks with AI analysis",
            request_id=request.state.request_id,
        )

    @app.get(
        "/api/v1/status",
        response_model=StatusResponse,
        summary="API Status",
        description="Feature flags and endpoint map",
    )
    async def api_status(request: Request) -> StatusResponse:
        status_data = {
            "api_version": settings.app_version,
            "status": "operational",
            "features": {
                "stock_picker_algorithm": settings.use_stock_picker_algorithm,
                "ai_stock_analysis": settings.use_ai_stock_analysis,
            },
            "endpoints": {
                "health": "/api/v1/health",
                "algorithm": "/api/v1/stock-picker/algorithm",
                "picks": "/api/v1/stock-picker/picks",
                "analysis": "/api/v1/stock-picker/ai-analysis",
                "analysis_health": "/api/v1/stock-picker/ai-analysis/health",
                "analysis_cache": "/api/v1/stock-picker/ai-analysis/cache",
                "docs": "/docs",
            },
        }

        return StatusResponse.create(
            data=status_data, request_id=request.state.request_id
        )

    return app


# Create the app instance
app = create_app()
