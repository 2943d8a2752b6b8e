"""
Core infrastructure package for the Clinic Outcomes backend.

Provides:
- Configuration management via pydantic-settings
- The exception hierarchy shared by services and API routers
- FastAPI dependency injection utilities

This module re-exports key components from submodules so other modules can
write:

    from clinic_outcomes.core import get_settings, SettingsDep, OutcomesError

Instead of:

    from clinic_outcomes.core.config import get_settings
    from clinic_outcomes.core.dependencies import SettingsDep
    from clinic_outcomes.core.exceptions import OutcomesError
"""

# =============================================================================
# Re-exports from clinic_outcomes.core.config
# =============================================================================
from clinic_outcomes.core.config import Settings, get_settings

# =============================================================================
# Re-exports from clinic_outcomes.core.exceptions
# =============================================================================
from clinic_outcomes.core.exceptions import (
    OutcomesError,
    UnknownInstrumentError,
    InstrumentNotScorableError,
    InvalidResponseError,
    ScoreRecordInvariantError,
    RegistryIntegrityError,
)

# =============================================================================
# Re-exports from clinic_outcomes.core.dependencies
# =============================================================================
from clinic_outcomes.core.dependencies import (
    get_settings_dependency,
    get_now,
    SettingsDep,
    NowDep,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Exceptions (from exceptions.py)
    'OutcomesError',
    'UnknownInstrumentError',
    'InstrumentNotScorableError',
    'InvalidResponseError',
    'ScoreRecordInvariantError',
    'RegistryIntegrityError',
    # FastAPI dependency injection (from dependencies.py)
    'get_settings_dependency',
    'get_now',
    'SettingsDep',
    'NowDep',
]
