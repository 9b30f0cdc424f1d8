"""Application settings and configuration management using Pydantic."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"
    debug: bool = False
    app_version: str = "1.0.0"

    # Feature flags
    use_stock_picker_algorithm: bool = True
    use_ai_stock_analysis: bool = True

    # Analysis provider (edge function) settings
    analysis_provider_url: Optional[str] = None
    analysis_provider_api_key: Optional[str] = None
    analysis_function_name: str = "gemini-stock-analysis"

    # Analysis cache and retry settings
    analysis_max_stocks: int = 10
    analysis_timeout_seconds: float = 45.0
    analysis_max_attempts: int = 4
    analysis_retry_base_delay: float = 1.0
    analysis_retry_backoff_factor: float = 2.0
    analysis_retry_jitter: float = 0.2
    analysis_debounce_seconds: float = 15.0
    analysis_cache_bucket_minutes: int = 15
    analysis_cache_ttl_minutes: int = 120
    analysis_extended_ttl_minutes: int = 360
    analysis_max_stale_hours: int = 24
    analysis_error_decay_minutes: int = 60
    analysis_partial_match_min_overlap: int = 3

    # API settings
    endpoint_host: str = "0.0.0.0"
    endpoint_port: int = 8000
    api_reload: bool = False
    api_log_level: str = "INFO"

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "structured"  # 'structured' or 'plain'
    log_file_enabled: bool = True
    log_file_path: str = "data/marketdash.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("analysis_provider_url")
    @classmethod
    def validate_provider_url(cls, v):
        """Validate provider URL scheme and strip trailing slashes."""
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("Analysis provider URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator(
        "analysis_max_stocks",
        "analysis_max_attempts",
        "analysis_partial_match_min_overlap",
    )
    @classmethod
    def validate_positive_int(cls, v):
        """Validate counts are at least one."""
        if v < 1:
            raise ValueError("Value must be at least 1")
        return v

    @field_validator(
        "analysis_timeout_seconds",
        "analysis_cache_bucket_minutes",
        "analysis_cache_ttl_minutes",
        "analysis_extended_ttl_minutes",
        "analysis_max_stale_hours",
    )
    @classmethod
    def validate_positive_duration(cls, v):
        """Validate durations are positive."""
        if v <= 0:
            raise ValueError("Duration must be positive")
        return v

    @field_validator(
        "analysis_retry_base_delay",
        "analysis_debounce_seconds",
        "analysis_error_decay_minutes",
    )
    @classmethod
    def validate_non_negative(cls, v):
        """Validate delays are not negative."""
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @field_validator("analysis_retry_backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v):
        """Validate backoff never shrinks the delay."""
        if v < 1:
            raise ValueError("Backoff factor must be at least 1")
        return v

    @field_validator("analysis_retry_jitter")
    @classmethod
    def validate_jitter(cls, v):
        """Validate jitter fraction."""
        if v < 0 or v >= 1:
            raise ValueError("Retry jitter must be between 0 and 1 (0-100%)")
        return v

    @field_validator("endpoint_port")
    @classmethod
    def validate_port(cls, v):
        """Validate port number is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("log_level", "api_log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["structured", "plain"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def is_analysis_provider_configured(self) -> bool:
        """Check whether the analysis provider endpoint is set."""
        return bool(self.analysis_provider_url)

    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()


def get_required_env_vars() -> list[str]:
    """
    Get list of environment variables needed for AI analysis.

    Returns:
        list: List of environment variable names
    """
    return [
        "ANALYSIS_PROVIDER_URL",
        "ANALYSIS_PROVIDER_API_KEY",
    ]
