"""Health check endpoints for the MarketDash API."""

import platform
import time
from typing import Any, Dict

from fastapi import APIRouter

from ..config.logging import get_logger
from ..config.settings import get_settings
from .models.responses import HealthResponse, HealthStatus

logger = get_logger(__name__)
router = APIRouter()

# Track application start time for uptime calculation
_app_start_time = time.time()


def get_system_info() -> Dict[str, Any]:
    """Get basic system information."""
    return {
        "platform": platform.platform(),
        "python_version": platform.python_version(),
    }


def check_configuration_health() -> Dict[str, Any]:
    """Check application configuration health."""
    try:
        settings = get_settings()

        checks = {
            "log_level_valid": settings.log_level
            in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            "algorithm_enabled": settings.use_stock_picker_algorithm,
        }

        # Provider settings only matter while AI analysis is on
        optional_checks = {
            "ai_analysis_enabled": settings.use_ai_stock_analysis,
            "analysis_provider_configured": settings.is_analysis_provider_configured(),
        }

        all_checks = {**checks, **optional_checks}

        degraded = not all(checks.values()) or (
            settings.use_ai_stock_analysis
            and not settings.is_analysis_provider_configured()
        )

        return {
            "status": "degraded" if degraded else "healthy",
            "checks": all_checks,
            "required_checks_passed": all(checks.values()),
            "optional_checks_passed": all(optional_checks.values()),
        }

    except Exception as e:
        logger.error("Configuration health check failed", error=str(e), exc_info=True)
        return {
            "status": "unhealthy",
            "error": str(e),
        }


@router.get("/health", response_model=HealthResponse, summary="Basic Health Check")
async def basic_health_check():
    """
    Perform a basic health check.

    Returns application health status including:
    - Overall status
    - Configuration checks
    - Application uptime
    - Basic system information
    """
    uptime_seconds = time.time() - _app_start_time

    services = {
        "configuration": check_configuration_health(),
        "system": {"status": "healthy", **get_system_info()},
    }

    statuses = [s.get("status", "unknown") for s in services.values()]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
    elif "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    health_status = HealthStatus(
        status=overall_status,
        services=services,
        uptime_seconds=uptime_seconds,
        version=get_settings().app_version,
    )

    logger.debug("Basic health check completed", status=overall_status)
    return HealthResponse(success=True, health=health_status)
