"""
FastAPI router module for leadership analytics.

Implements POST /analytics/leadership: the caller posts a snapshot of episode
summaries and care-target outcomes together with the dashboard filters, and
receives the six metric groups (volume, resolution, time, outcomes,
complexity, integrity).

Defaults come from Settings:
- timeWindow / includeOverrides not sent (or no filters at all) ->
  DEFAULT_TIME_WINDOW / INCLUDE_OVERRIDES_BY_DEFAULT
- now omitted -> the request clock (get_now dependency)
- MCID counting mode -> MCID_COUNTING_MODE

The rollup runs in the threadpool and returns as one unit; there is no
partial or streamed result.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from fastapi.concurrency import run_in_threadpool

from clinic_outcomes.core.config import Settings
from clinic_outcomes.core.dependencies import NowDep, SettingsDep
from clinic_outcomes.models import (
    LeadershipAnalytics,
    LeadershipAnalyticsRequest,
    LeadershipFilters,
)
from clinic_outcomes.services.leadership_analytics import compute_leadership_analytics


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def resolve_filters(requested: Optional[LeadershipFilters], settings: Settings) -> LeadershipFilters:
    """
    Fill filter fields the caller did not send from the configured defaults.

    Only timeWindow and includeOverrides have configured defaults. A field
    sent explicitly, even with the model's default value, is kept as sent.
    """
    defaults = {
        'timeWindow': settings.default_time_window,
        'includeOverrides': settings.include_overrides_by_default,
    }
    if requested is None:
        return LeadershipFilters(**defaults)
    unset = {
        name: value for name, value in defaults.items()
        if name not in requested.model_fields_set
    }
    return requested.model_copy(update=unset)


@router.post("/leadership", response_model=LeadershipAnalytics)
async def leadership_analytics_endpoint(
    request: LeadershipAnalyticsRequest,
    settings: SettingsDep,
    now: NowDep,
) -> LeadershipAnalytics:
    """
    Compute leadership analytics over a posted data snapshot.

    Args:
        request: Episodes, care targets, optional filters, optional `now`.
        settings: Injected application settings.
        now: Injected request clock, used when the body has no `now`.

    Returns:
        LeadershipAnalytics with all six metric groups.

    Raises:
        HTTPException 500: If the computation fails unexpectedly
    """
    filters = resolve_filters(request.filters, settings)
    reference_now = request.now or now

    try:
        return await run_in_threadpool(
            compute_leadership_analytics,
            request.episodes,
            request.careTargets,
            filters,
            reference_now,
            settings.mcid_counting_mode,
        )
    except Exception as e:
        logger.exception(f"Error computing leadership analytics: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Error computing leadership analytics: {str(e)}",
        )
