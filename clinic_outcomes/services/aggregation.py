"""
Leadership Metric Aggregation Service

Computes the six leadership metric groups from an already filtered cohort:

- VolumeMetrics: episodes opened/closed, care targets created/discharged
- ResolutionMetrics: discharge rate by domain, discharge reason distribution
- TimeMetrics: median and 25th/75th percentile days to resolution
- OutcomeMetrics: improvement rate, median delta by instrument, MCID count
- ComplexityMetrics: multi-target and staggered-resolution episodes
- IntegrityMetrics: complete/override symmetry and missingness by instrument

Every rate and percentage is 0 when its denominator is 0; medians and
percentiles of an empty list are None. Non-numeric optional fields were
already mapped to None when the raw records were parsed, so they drop out of
the aggregates here without raising.

Statistical helpers:
- calculate_median: middle value, or the mean of the two middle values
- calculate_percentile: nearest-rank, index = ceil(p/100 x n) - 1, clamped
  at 0
"""

import logging
import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import numpy as np

from clinic_outcomes.core.exceptions import UnknownInstrumentError
from clinic_outcomes.models.enums import (
    CareTargetStatus,
    EpisodeStatus,
    IntegrityStatus,
    MCIDCountingMode,
    OutcomeDirection,
)
from clinic_outcomes.models.schemas import (
    CareTargetOutcome,
    ComplexityMetrics,
    DomainDischargeRate,
    DomainDuration,
    EpisodeSummary,
    InstrumentDelta,
    IntegrityMetrics,
    OutcomeMetrics,
    ResolutionMetrics,
    TimeMetrics,
    VolumeMetrics,
)
from clinic_outcomes.services.instruments import get_mcid


logger = logging.getLogger(__name__)


# =============================================================================
# Module Constants
# =============================================================================

UNKNOWN_DOMAIN = 'Unknown'
UNSPECIFIED_DISCHARGE_REASON = 'Not specified'


# =============================================================================
# Statistical Helpers
# =============================================================================


def calculate_median(values: Sequence[float]) -> Optional[float]:
    """
    Calculate the median of a list of values.

    Args:
        values: Numeric values in any order.

    Returns:
        The middle value of the sorted list, the mean of the two middle
        values for an even count, or None for an empty list.

    Example:
        >>> calculate_median([4, 10, 6])
        6.0
        >>> calculate_median([4, 10])
        7.0
    """
    if len(values) == 0:
        return None
    return float(np.median(np.array(values, dtype=np.float64)))


def calculate_percentile(values: Sequence[float], percentile: float) -> Optional[float]:
    """
    Nearest-rank percentile of a list of values.

    The value at sorted index ceil(percentile/100 x n) - 1, clamped at 0.
    No interpolation is done, so the result is always one of the inputs.

    Args:
        values: Numeric values in any order.
        percentile: Percentile in 0..100.

    Returns:
        The selected value, or None for an empty list.

    Example:
        >>> calculate_percentile([1, 2, 3, 4, 5, 6, 7, 8], 25)
        2.0
    """
    if len(values) == 0:
        return None
    sorted_values = np.sort(np.array(values, dtype=np.float64))
    index = math.ceil((percentile / 100) * len(sorted_values)) - 1
    return float(sorted_values[max(0, index)])


def _safe_percentage(numerator: float, denominator: float) -> float:
    """numerator / denominator x 100, or 0.0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return (numerator / denominator) * 100


# =============================================================================
# Record Predicates
# =============================================================================


def _normalized(value: Optional[str]) -> str:
    return (value or '').strip()


def is_closed(episode: EpisodeSummary) -> bool:
    return _normalized(episode.episode_status).upper() == EpisodeStatus.CLOSED.value


def is_discharged(target: CareTargetOutcome) -> bool:
    return _normalized(target.care_target_status).upper() == CareTargetStatus.DISCHARGED.value


def _direction(target: CareTargetOutcome) -> str:
    return _normalized(target.outcome_direction).lower()


def _integrity(target: CareTargetOutcome) -> str:
    return _normalized(target.outcome_integrity_status).lower()


def _domain_key(target: CareTargetOutcome) -> str:
    return target.domain or UNKNOWN_DOMAIN


# =============================================================================
# Metric Groups
# =============================================================================


def compute_volume_metrics(
    episodes: List[EpisodeSummary],
    care_targets: List[CareTargetOutcome],
) -> VolumeMetrics:
    """Count opened/closed episodes and created/discharged care targets."""
    return VolumeMetrics(
        episodesOpened=len(episodes),
        episodesClosed=sum(1 for episode in episodes if is_closed(episode)),
        careTargetsCreated=len(care_targets),
        careTargetsDischarged=sum(1 for target in care_targets if is_discharged(target)),
    )


def compute_resolution_metrics(care_targets: List[CareTargetOutcome]) -> ResolutionMetrics:
    """
    Compute discharge totals, per-domain discharge rates, and discharge reasons.

    A domain appears only when at least one care target carries it; targets
    with no domain are grouped under 'Unknown'. Discharge reasons that are
    missing or empty are counted as 'Not specified'.
    """
    totals: Dict[str, int] = defaultdict(int)
    discharged_counts: Dict[str, int] = defaultdict(int)
    reasons: Dict[str, int] = defaultdict(int)
    total_discharged = 0

    for target in care_targets:
        domain = _domain_key(target)
        totals[domain] += 1
        if is_discharged(target):
            total_discharged += 1
            discharged_counts[domain] += 1
            reasons[target.discharge_reason or UNSPECIFIED_DISCHARGE_REASON] += 1

    by_domain = {
        domain: DomainDischargeRate(
            discharged=discharged_counts[domain],
            total=total,
            rate=_safe_percentage(discharged_counts[domain], total),
        )
        for domain, total in totals.items()
    }

    return ResolutionMetrics(
        totalDischarged=total_discharged,
        dischargeRateByDomain=by_domain,
        dischargeReasonDistribution=dict(reasons),
    )


def compute_time_metrics(care_targets: List[CareTargetOutcome]) -> TimeMetrics:
    """
    Compute time-to-resolution statistics over discharged care targets.

    Only non-null duration_to_resolution_days values count. byDomain lists a
    domain only when it has at least one duration.
    """
    durations: List[float] = []
    domain_durations: Dict[str, List[float]] = defaultdict(list)

    for target in care_targets:
        if not is_discharged(target) or target.duration_to_resolution_days is None:
            continue
        durations.append(target.duration_to_resolution_days)
        domain_durations[_domain_key(target)].append(target.duration_to_resolution_days)

    return TimeMetrics(
        medianDaysToResolution=calculate_median(durations),
        percentile25=calculate_percentile(durations, 25),
        percentile75=calculate_percentile(durations, 75),
        byDomain={
            domain: DomainDuration(median=calculate_median(values), count=len(values))
            for domain, values in domain_durations.items()
        },
    )


def _reaches_instrument_mcid(target: CareTargetOutcome) -> bool:
    if not target.outcome_instrument or target.outcome_delta is None:
        return False
    try:
        mcid = get_mcid(target.outcome_instrument)
    except UnknownInstrumentError:
        logger.debug(
            f"Care target {target.care_target_id}: instrument "
            f"{target.outcome_instrument!r} has no MCID; not counted"
        )
        return False
    return abs(target.outcome_delta) >= mcid


def compute_outcome_metrics(
    care_targets: List[CareTargetOutcome],
    mcid_mode: MCIDCountingMode = MCIDCountingMode.IMPROVED_PROXY,
) -> OutcomeMetrics:
    """
    Compute outcome improvement metrics over discharged care targets.

    Args:
        care_targets: Filtered care targets; only discharged ones are used.
        mcid_mode: IMPROVED_PROXY counts every improved target as reaching
            MCID. INSTRUMENT_THRESHOLD counts improved targets whose
            |outcome_delta| reaches the MCID of their instrument; targets
            with an unregistered instrument never count.

    Returns:
        OutcomeMetrics. Targets whose outcome_direction is 'incomplete' are
        excluded from totalWithOutcomes, which is the denominator of both
        percentages.
    """
    discharged = [target for target in care_targets if is_discharged(target)]
    with_outcomes = [
        target for target in discharged
        if _direction(target) != OutcomeDirection.INCOMPLETE.value
    ]
    improved = [
        target for target in with_outcomes
        if _direction(target) == OutcomeDirection.IMPROVED.value
    ]

    instrument_deltas: Dict[str, List[float]] = defaultdict(list)
    for target in discharged:
        if target.outcome_instrument and target.outcome_delta is not None:
            instrument_deltas[target.outcome_instrument].append(target.outcome_delta)

    median_delta_by_instrument = {
        instrument: InstrumentDelta(
            median=calculate_median(deltas) or 0.0,
            count=len(deltas),
        )
        for instrument, deltas in instrument_deltas.items()
    }

    if mcid_mode == MCIDCountingMode.INSTRUMENT_THRESHOLD:
        mcid_achieved_count = sum(1 for target in improved if _reaches_instrument_mcid(target))
    else:
        mcid_achieved_count = len(improved)

    return OutcomeMetrics(
        totalWithOutcomes=len(with_outcomes),
        improvedCount=len(improved),
        improvedPercentage=_safe_percentage(len(improved), len(with_outcomes)),
        medianDeltaByInstrument=median_delta_by_instrument,
        mcidAchievedCount=mcid_achieved_count,
        mcidPercentage=_safe_percentage(mcid_achieved_count, len(with_outcomes)),
    )


def compute_complexity_metrics(episodes: List[EpisodeSummary]) -> ComplexityMetrics:
    """Compute multi-target and staggered-resolution shares over episodes."""
    episode_count = len(episodes)
    multi_target = sum(1 for episode in episodes if episode.number_of_care_targets > 1)
    staggered = sum(1 for episode in episodes if episode.staggered_resolution)
    total_targets = sum(episode.number_of_care_targets for episode in episodes)

    return ComplexityMetrics(
        multiCareTargetEpisodeCount=multi_target,
        multiCareTargetPercentage=_safe_percentage(multi_target, episode_count),
        averageCareTargetsPerEpisode=(
            total_targets / episode_count if episode_count > 0 else 0.0
        ),
        staggeredResolutionCount=staggered,
        staggeredResolutionPercentage=_safe_percentage(staggered, episode_count),
    )


def compute_integrity_metrics(care_targets: List[CareTargetOutcome]) -> IntegrityMetrics:
    """
    Compute integrity symmetry shares and missingness by instrument.

    Incomplete records without an outcome instrument are not attributed to
    any instrument.
    """
    total = len(care_targets)
    complete = 0
    override = 0
    missing: Dict[str, int] = defaultdict(int)

    for target in care_targets:
        status = _integrity(target)
        if status == IntegrityStatus.COMPLETE.value:
            complete += 1
        elif status == IntegrityStatus.OVERRIDE.value:
            override += 1
        elif status == IntegrityStatus.INCOMPLETE.value and target.outcome_instrument:
            missing[target.outcome_instrument] += 1

    return IntegrityMetrics(
        totalCareTargets=total,
        completeSymmetryCount=complete,
        completeSymmetryPercentage=_safe_percentage(complete, total),
        overrideCount=override,
        overridePercentage=_safe_percentage(override, total),
        missingnessByInstrument=dict(missing),
    )
