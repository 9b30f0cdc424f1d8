"""Configuration and environment utilities."""

from ..config.logging import get_logger, setup_logging
from ..config.settings import get_required_env_vars, get_settings


def initialize_application() -> None:
    """Initialize application configuration and logging."""
    settings = get_settings()

    setup_logging(
        level=settings.log_level,
        format_type=settings.log_format,
        file_enabled=settings.log_file_enabled,
        file_path=settings.log_file_path,
        max_file_size=settings.log_max_file_size,
        backup_count=settings.log_backup_count,
    )

    logger = get_logger(__name__)
    logger.info(
        "Application initialized successfully",
        environment=settings.environment,
        debug=settings.debug,
        ai_analysis_enabled=settings.use_ai_stock_analysis,
        algorithm_enabled=settings.use_stock_picker_algorithm,
    )


def validate_environment() -> bool:
    """
    Validate that the analysis provider is configured when AI analysis is on.

    Missing provider settings are not fatal: analysis degrades to locally
    synthesized text. The result tells the caller whether to warn.

    Returns:
        True if the configuration allows provider-backed analysis
    """
    logger = get_logger(__name__)
    settings = get_settings()

    if not settings.use_ai_stock_analysis:
        return True

    if not settings.is_analysis_provider_configured():
        logger.warning(
            "Analysis provider not configured, AI analysis will use fallback text",
            required_vars=get_required_env_vars(),
        )
        return False

    return True
