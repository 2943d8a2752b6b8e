"""
Settings and environment management module for the Clinic Outcomes backend.

Configuration for the API process, read by pydantic-settings from the
environment and an optional .env file in the working directory.

Key Features:
- Enum-valued analytics defaults are validated at startup
- CORS origins default to the local dashboard dev servers
- One cached instance per process (@lru_cache)

The scoring and analytics services never read settings themselves. Settings are
resolved at the HTTP boundary (see clinic_outcomes/api/) and passed into the
pure service functions as explicit arguments.

Environment Variables:
- APP_NAME: Display name reported by the root endpoint
- LOG_LEVEL: Root logging level (default: INFO)
- CORS_ALLOWED_ORIGINS: Origins allowed to call the API
- DEFAULT_TIME_WINDOW: Time window used when a request omits one (default: 90d)
- INCLUDE_OVERRIDES_BY_DEFAULT: Whether override records are included when a
  request omits the flag (default: false)
- MCID_COUNTING_MODE: 'improved_proxy' (default) or 'instrument_threshold'

Usage:
    from clinic_outcomes.core.config import get_settings

    settings = get_settings()
    window = settings.default_time_window
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from clinic_outcomes.models.enums import MCIDCountingMode, TimeWindow


class Settings(BaseSettings):
    """
    Process-wide configuration for the Clinic Outcomes API.

    Field names map to upper-case environment variables; lookups are
    case-insensitive and unknown variables are ignored.

    Attributes:
        app_name: Service name reported by the root endpoint.
        log_level: Root logging level name.
        cors_allowed_origins: Origins allowed by the CORS middleware.
        default_time_window: Leadership time window applied when a request
            does not specify one.
        include_overrides_by_default: Default for the includeOverrides filter.
        mcid_counting_mode: How OutcomeMetrics.mcidAchievedCount is derived.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    app_name: str = 'Clinic Outcomes API'

    log_level: str = 'INFO'

    # Dashboard dev servers
    cors_allowed_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
        'http://localhost:5173',
    ]

    # =========================================================================
    # Leadership analytics defaults
    # =========================================================================

    default_time_window: TimeWindow = TimeWindow.NINETY_DAYS

    # When false the upstream query and the cohort filter both restrict care
    # targets to integrity_status == 'complete'
    include_overrides_by_default: bool = False

    # improved_proxy keeps mcidAchievedCount == improvedCount
    mcid_counting_mode: MCIDCountingMode = MCIDCountingMode.IMPROVED_PROXY


@lru_cache()
def get_settings() -> Settings:
    """
    Return the process-wide Settings instance.

    The environment is read on the first call only; later calls return the
    same object.

    Returns:
        Settings: The cached instance.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid
            value (e.g., DEFAULT_TIME_WINDOW=7d).

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
