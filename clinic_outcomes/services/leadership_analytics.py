"""
Leadership Analytics Service

Entry point for the leadership dashboard rollup. Filters a snapshot of
episode and care-target records and computes all six metric groups in one
synchronous pass.

The computation is a pure function of (episodes, care_targets, filters, now,
mcid_mode). It performs no I/O, reads no clock and keeps no cache. Callers
that cache results must key them by the filters together with the version of
the data snapshot.

Key Functions:
- compute_leadership_analytics: Rollup over an in-memory snapshot
- compute_leadership_analytics_from_source: Query an OutcomeDataSource with
  the upstream pre-filter hints, then run the same rollup
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from clinic_outcomes.models.enums import MCIDCountingMode
from clinic_outcomes.models.schemas import (
    CareTargetOutcome,
    EpisodeSummary,
    LeadershipAnalytics,
    LeadershipFilters,
)
from clinic_outcomes.services.aggregation import (
    compute_complexity_metrics,
    compute_integrity_metrics,
    compute_outcome_metrics,
    compute_resolution_metrics,
    compute_time_metrics,
    compute_volume_metrics,
)
from clinic_outcomes.services.cohort_filter import apply_cohort_filters, build_source_query


logger = logging.getLogger(__name__)


EpisodeRow = Union[EpisodeSummary, Mapping[str, Any]]
CareTargetRow = Union[CareTargetOutcome, Mapping[str, Any]]


class OutcomeDataSource(Protocol):
    """Read capability supplying raw analytics rows."""

    def fetch_episode_summaries(
        self,
        clinician_id: Optional[str] = None,
    ) -> Iterable[EpisodeRow]:
        """
        Fetch episode summary rows.

        Args:
            clinician_id: Restrict to one clinician's episodes (optional)

        Returns:
            EpisodeSummary models or row mappings with the same field names
        """
        ...

    def fetch_care_target_outcomes(
        self,
        clinician_id: Optional[str] = None,
        domain: Optional[str] = None,
        integrity_status: Optional[str] = None,
    ) -> Iterable[CareTargetRow]:
        """
        Fetch care-target outcome rows.

        Args:
            clinician_id: Restrict to one clinician (optional)
            domain: Restrict to one domain (optional)
            integrity_status: Restrict to one integrity status; None means
                every status

        Returns:
            CareTargetOutcome models or row mappings with the same field names
        """
        ...


def _as_episode(row: EpisodeRow) -> EpisodeSummary:
    if isinstance(row, EpisodeSummary):
        return row
    return EpisodeSummary.model_validate(row)


def _as_care_target(row: CareTargetRow) -> CareTargetOutcome:
    if isinstance(row, CareTargetOutcome):
        return row
    return CareTargetOutcome.model_validate(row)


def compute_leadership_analytics(
    episodes: Iterable[EpisodeRow],
    care_targets: Iterable[CareTargetRow],
    filters: LeadershipFilters,
    now: datetime,
    mcid_mode: MCIDCountingMode = MCIDCountingMode.IMPROVED_PROXY,
) -> LeadershipAnalytics:
    """
    Compute the six leadership metric groups for a filtered cohort.

    Args:
        episodes: Episode summary rows (models or mappings).
        care_targets: Care-target outcome rows (models or mappings).
        filters: Time window, domain, body region, clinician, and
            includeOverrides. When includeOverrides is False every care-target
            metric group is computed over complete-integrity targets only.
        now: Reference instant for the time window cutoff.
        mcid_mode: How mcidAchievedCount is derived (see
            compute_outcome_metrics).

    Returns:
        LeadershipAnalytics with volume, resolution, time, outcomes,
        complexity, and integrity groups. Empty inputs yield zero counts,
        zero rates, and None medians.

    Raises:
        pydantic.ValidationError: If a mapping row lacks a required id field.

    Example:
        >>> analytics = compute_leadership_analytics(
        ...     [], [], LeadershipFilters(), datetime(2024, 6, 1)
        ... )
        >>> analytics.volume.episodesOpened, analytics.outcomes.improvedPercentage
        (0, 0.0)
    """
    episode_models: List[EpisodeSummary] = [_as_episode(row) for row in episodes]
    care_target_models: List[CareTargetOutcome] = [_as_care_target(row) for row in care_targets]

    cohort = apply_cohort_filters(episode_models, care_target_models, filters, now)

    analytics = LeadershipAnalytics(
        volume=compute_volume_metrics(cohort.episodes, cohort.care_targets),
        resolution=compute_resolution_metrics(cohort.care_targets),
        time=compute_time_metrics(cohort.care_targets),
        outcomes=compute_outcome_metrics(cohort.care_targets, mcid_mode),
        complexity=compute_complexity_metrics(cohort.episodes),
        integrity=compute_integrity_metrics(cohort.care_targets),
    )

    logger.info(
        f"Leadership analytics computed: {len(cohort.episodes)} episodes, "
        f"{len(cohort.care_targets)} care targets "
        f"(window={filters.timeWindow.value}, includeOverrides={filters.includeOverrides})"
    )

    return analytics


def compute_leadership_analytics_from_source(
    source: OutcomeDataSource,
    filters: LeadershipFilters,
    now: datetime,
    mcid_mode: MCIDCountingMode = MCIDCountingMode.IMPROVED_PROXY,
) -> LeadershipAnalytics:
    """
    Fetch rows from a data source and compute leadership analytics.

    The source is queried with the pre-filter hints from build_source_query
    (clinician, domain, and 'complete' integrity unless overrides are
    included). The cohort filter is applied again to whatever comes back, so
    a source that ignores the hints still yields correct metrics.

    Errors raised by the source propagate to the caller unchanged.
    """
    query = build_source_query(filters)

    episodes = source.fetch_episode_summaries(clinician_id=query.clinician_id)
    care_targets = source.fetch_care_target_outcomes(
        clinician_id=query.clinician_id,
        domain=query.domain,
        integrity_status=query.integrity_status.value if query.integrity_status else None,
    )

    return compute_leadership_analytics(episodes, care_targets, filters, now, mcid_mode)
