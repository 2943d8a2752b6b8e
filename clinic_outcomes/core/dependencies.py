"""
FastAPI dependency injection module for the Clinic Outcomes backend.

Provides reusable FastAPI dependencies so route handlers receive
configuration and the reference clock as parameters instead of reading them
from module globals. Tests override them with app.dependency_overrides.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_now: Returns the current UTC instant
- SettingsDep: Type alias for injecting Settings into endpoints
- NowDep: Type alias for injecting the reference instant into endpoints

The clock lives here because the analytics services take `now` as an
explicit argument; the HTTP request is the only place a wall-clock read
happens.

Usage Examples:
    @router.post("/leadership")
    async def leadership(
        request: LeadershipAnalyticsRequest,
        settings: SettingsDep,
        now: NowDep,
    ) -> LeadershipAnalytics:
        ...

    # In tests
    app.dependency_overrides[get_now] = lambda: datetime(2024, 6, 1, tzinfo=timezone.utc)
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends

from clinic_outcomes.core.config import Settings, get_settings


# =============================================================================
# Settings Dependency
# =============================================================================


def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Returns:
        Settings: The cached Settings instance with all configuration values.

    Raises:
        pydantic.ValidationError: If an environment variable holds an invalid
            value (e.g., MCID_COUNTING_MODE=strict).
    """
    return get_settings()


# =============================================================================
# Clock Dependency
# =============================================================================


def get_now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

NowDep = Annotated[datetime, Depends(get_now)]
