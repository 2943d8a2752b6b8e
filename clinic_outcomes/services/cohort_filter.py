"""
Cohort Filter Service

Applies LeadershipFilters to raw EpisodeSummary and CareTargetOutcome
collections before any metric is computed.

Filter rules:
- Time window: cutoff = now - 30 / 90 / 365 days, no cutoff for 'all'. A
  record is kept iff its start date is >= cutoff (inclusive). With a cutoff,
  records without a start date are dropped.
- domain / bodyRegion: exact match on care targets when set.
- clinicianId: records carrying a clinician id must match it. Rows from views
  that do not expose the column are kept; the upstream query already scoped
  them.
- Integrity: when includeOverrides is False only care targets whose
  outcome_integrity_status is 'complete' are kept, and the upstream query is
  built with the same restriction. Every care-target metric group downstream
  therefore sees the complete-only population, not only IntegrityMetrics.

Datetimes without tzinfo are treated as UTC so naive database timestamps and
aware request timestamps compare cleanly.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from clinic_outcomes.models.enums import IntegrityStatus, TimeWindow
from clinic_outcomes.models.schemas import (
    CareTargetOutcome,
    EpisodeSummary,
    LeadershipFilters,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Module Constants
# =============================================================================

# Days per time window; 'all' has no cutoff
TIME_WINDOW_DAYS: Dict[TimeWindow, int] = {
    TimeWindow.THIRTY_DAYS: 30,
    TimeWindow.NINETY_DAYS: 90,
    TimeWindow.TWELVE_MONTHS: 365,
}


# =============================================================================
# Result Types
# =============================================================================


class FilteredCohort(NamedTuple):
    """Episodes and care targets that passed the cohort filter."""
    episodes: List[EpisodeSummary]
    care_targets: List[CareTargetOutcome]


class SourceQuery(BaseModel):
    """
    Pre-filter hints passed to the upstream data source.

    The source may ignore any hint; the cohort filter re-applies all of them.
    """

    model_config = ConfigDict(frozen=True)

    clinician_id: Optional[str] = Field(default=None)
    domain: Optional[str] = Field(default=None)
    integrity_status: Optional[IntegrityStatus] = Field(
        default=None,
        description="'complete' when overrides are excluded, None for no filter"
    )


# =============================================================================
# Date Helpers
# =============================================================================


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def get_date_cutoff(time_window: TimeWindow, now: datetime) -> Optional[datetime]:
    """
    Return the inclusive lower bound for a time window.

    Args:
        time_window: 30d, 90d, 12mo or all.
        now: Reference instant, supplied by the caller.

    Returns:
        now minus the window length (UTC), or None for TimeWindow.ALL.

    Example:
        >>> get_date_cutoff(TimeWindow.THIRTY_DAYS, datetime(2024, 3, 31))
        datetime.datetime(2024, 3, 1, 0, 0, tzinfo=datetime.timezone.utc)
    """
    days = TIME_WINDOW_DAYS.get(TimeWindow(time_window))
    if days is None:
        return None
    return _as_utc(now) - timedelta(days=days)


def _within_window(start: Optional[datetime], cutoff: Optional[datetime]) -> bool:
    if cutoff is None:
        return True
    if start is None:
        return False
    return _as_utc(start) >= cutoff


def _matches_clinician(record_clinician: Optional[str], wanted: Optional[str]) -> bool:
    if wanted is None or record_clinician is None:
        return True
    return record_clinician == wanted


def is_complete_integrity(care_target: CareTargetOutcome) -> bool:
    """Whether a care target has complete baseline/discharge symmetry."""
    status = (care_target.outcome_integrity_status or '').strip().lower()
    return status == IntegrityStatus.COMPLETE.value


# =============================================================================
# Filters
# =============================================================================


def filter_episodes(
    episodes: Iterable[EpisodeSummary],
    filters: LeadershipFilters,
    now: datetime,
) -> List[EpisodeSummary]:
    """
    Keep episodes that started inside the time window and match the clinician.

    Domain, body region and integrity are care-target attributes and do not
    filter episodes.
    """
    cutoff = get_date_cutoff(filters.timeWindow, now)
    return [
        episode
        for episode in episodes
        if _within_window(episode.episode_start_date, cutoff)
        and _matches_clinician(episode.clinician_id, filters.clinicianId)
    ]


def filter_care_targets(
    care_targets: Iterable[CareTargetOutcome],
    filters: LeadershipFilters,
    now: datetime,
) -> List[CareTargetOutcome]:
    """
    Keep care targets that pass every cohort filter.

    Args:
        care_targets: Raw care-target outcome rows.
        filters: Leadership filters.
        now: Reference instant for the time window.

    Returns:
        Filtered list in input order.
    """
    cutoff = get_date_cutoff(filters.timeWindow, now)
    kept = []

    for target in care_targets:
        if not _within_window(target.care_target_start_date, cutoff):
            continue
        if filters.domain is not None and target.domain != filters.domain:
            continue
        if filters.bodyRegion is not None and target.body_region != filters.bodyRegion:
            continue
        if not _matches_clinician(target.clinician_id, filters.clinicianId):
            continue
        if not filters.includeOverrides and not is_complete_integrity(target):
            continue
        kept.append(target)

    return kept


def apply_cohort_filters(
    episodes: Iterable[EpisodeSummary],
    care_targets: Iterable[CareTargetOutcome],
    filters: LeadershipFilters,
    now: datetime,
) -> FilteredCohort:
    """
    Filter both collections with the same filters and reference instant.

    Returns:
        FilteredCohort(episodes, care_targets)
    """
    episodes = list(episodes)
    care_targets = list(care_targets)

    cohort = FilteredCohort(
        episodes=filter_episodes(episodes, filters, now),
        care_targets=filter_care_targets(care_targets, filters, now),
    )

    logger.debug(
        f"Cohort filter ({filters.timeWindow.value}, "
        f"includeOverrides={filters.includeOverrides}): "
        f"episodes {len(episodes)} -> {len(cohort.episodes)}, "
        f"care targets {len(care_targets)} -> {len(cohort.care_targets)}"
    )

    return cohort


def build_source_query(filters: LeadershipFilters) -> SourceQuery:
    """
    Build the upstream pre-filter hints for a set of leadership filters.

    Excluding overrides restricts the upstream query to complete records, so
    the population every metric group sees is the complete-only one.

    Example:
        >>> build_source_query(LeadershipFilters()).integrity_status
        <IntegrityStatus.COMPLETE: 'complete'>
        >>> build_source_query(LeadershipFilters(includeOverrides=True)).integrity_status is None
        True
    """
    return SourceQuery(
        clinician_id=filters.clinicianId,
        domain=filters.domain,
        integrity_status=None if filters.includeOverrides else IntegrityStatus.COMPLETE,
    )
