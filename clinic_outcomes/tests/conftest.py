"""
Pytest Configuration and Shared Fixtures for Clinic Outcomes Tests.

This module provides fixtures and configuration for all tests, supporting:
- Async HTTP tests with pytest-asyncio and httpx
- A fixed reference instant so time windows are deterministic
- Factories for episode summary and care target outcome rows
- A mixed-integrity cohort used by the leadership analytics tests
- Score record factories for progress tests
- A FastAPI TestClient with the clock dependency pinned
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Generator, List

import pytest
from fastapi.testclient import TestClient

from clinic_outcomes.core.config import get_settings
from clinic_outcomes.core.dependencies import get_now
from clinic_outcomes.models import (
    CareTargetOutcome,
    EpisodeSummary,
    OutcomeScoreRecord,
)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - api: HTTP endpoint tests running against the ASGI app
    - parity: Reference values the dashboards and score sheets rely on

    Usage:
        # Run only the reference value tests:
        pytest -m parity
    """
    config.addinivalue_line(
        'markers',
        'api: marks tests exercising the HTTP endpoints'
    )
    config.addinivalue_line(
        'markers',
        'parity: marks tests pinning reference scores and statistics'
    )


# ============================================================
# CLOCK FIXTURES
# ============================================================

FIXED_NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now() -> datetime:
    """Reference instant used for every time window in the tests."""
    return FIXED_NOW


# ============================================================
# RECORD FACTORIES
# ============================================================

@pytest.fixture
def make_episode() -> Callable[..., EpisodeSummary]:
    """
    Factory for EpisodeSummary rows with sensible defaults.

    Example:
        episode = make_episode('ep-1', episode_status='CLOSED', number_of_care_targets=2)
    """
    def _make(episode_id: str, **overrides: Any) -> EpisodeSummary:
        row: Dict[str, Any] = {
            'episode_id': episode_id,
            'clinician_id': 'clin-1',
            'episode_status': 'ACTIVE',
            'episode_start_date': FIXED_NOW - timedelta(days=10),
            'number_of_care_targets': 1,
            'staggered_resolution': False,
        }
        row.update(overrides)
        return EpisodeSummary.model_validate(row)

    return _make


@pytest.fixture
def make_care_target() -> Callable[..., CareTargetOutcome]:
    """
    Factory for CareTargetOutcome rows.

    Defaults describe a discharged MSK lumbar target with a complete ODI
    outcome that improved by 12 points in 20 days.
    """
    def _make(care_target_id: str, **overrides: Any) -> CareTargetOutcome:
        row: Dict[str, Any] = {
            'care_target_id': care_target_id,
            'episode_id': 'ep-1',
            'clinician_id': 'clin-1',
            'domain': 'MSK',
            'body_region': 'Lumbar',
            'care_target_status': 'DISCHARGED',
            'care_target_start_date': FIXED_NOW - timedelta(days=10),
            'duration_to_resolution_days': 20,
            'discharge_reason': 'Goals met',
            'outcome_instrument': 'ODI',
            'baseline_score': 50,
            'discharge_score': 38,
            'outcome_delta': -12,
            'outcome_direction': 'improved',
            'outcome_integrity_status': 'complete',
        }
        row.update(overrides)
        return CareTargetOutcome.model_validate(row)

    return _make


@pytest.fixture
def make_score_record() -> Callable[..., OutcomeScoreRecord]:
    """Factory for OutcomeScoreRecord rows; days_ago offsets recorded_at."""
    def _make(
        instrument_code: str,
        score_type: str,
        score: float,
        days_ago: int = 0,
        episode_id: str = 'ep-1',
    ) -> OutcomeScoreRecord:
        return OutcomeScoreRecord(
            episode_id=episode_id,
            instrument_code=instrument_code,
            score_type=score_type,
            score=score,
            recorded_at=FIXED_NOW - timedelta(days=days_ago),
        )

    return _make


# ============================================================
# COHORT FIXTURES
# ============================================================

@pytest.fixture
def mixed_integrity_cohort(
    make_episode: Callable[..., EpisodeSummary],
    make_care_target: Callable[..., CareTargetOutcome],
) -> Dict[str, List[Any]]:
    """
    Two episodes and four care targets across all integrity states.

    - ct-complete-1: complete, discharged, improved (ODI -12, 20 days)
    - ct-complete-2: complete, active, no outcome yet
    - ct-override: override, discharged, improved (LEFS +15, 40 days),
      'Patient moved' discharge reason, Neuro domain
    - ct-incomplete: incomplete, discharged, incomplete outcome (QUICKDASH)
    """
    episodes = [
        make_episode('ep-1', episode_status='CLOSED', number_of_care_targets=3,
                     staggered_resolution=True),
        make_episode('ep-2', number_of_care_targets=1),
    ]
    care_targets = [
        make_care_target('ct-complete-1'),
        make_care_target(
            'ct-complete-2',
            care_target_status='ACTIVE',
            duration_to_resolution_days=None,
            discharge_reason=None,
            discharge_score=None,
            outcome_delta=None,
            outcome_direction='incomplete',
        ),
        make_care_target(
            'ct-override',
            domain='Neuro',
            body_region='Knee',
            duration_to_resolution_days=40,
            discharge_reason='Patient moved',
            outcome_instrument='LEFS',
            baseline_score=40,
            discharge_score=55,
            outcome_delta=15,
            outcome_integrity_status='override',
        ),
        make_care_target(
            'ct-incomplete',
            episode_id='ep-2',
            duration_to_resolution_days=60,
            discharge_reason='',
            outcome_instrument='QuickDASH',
            discharge_score=None,
            outcome_delta=None,
            outcome_direction='incomplete',
            outcome_integrity_status='incomplete',
        ),
    ]
    return {'episodes': episodes, 'care_targets': care_targets}


# ============================================================
# API FIXTURES
# ============================================================

@pytest.fixture
def app():
    """FastAPI app with the request clock pinned to FIXED_NOW."""
    from clinic_outcomes.main import app as fastapi_app

    fastapi_app.dependency_overrides[get_now] = lambda: FIXED_NOW
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Synchronous TestClient for route tests."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Reload settings for every test so environment patches take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
