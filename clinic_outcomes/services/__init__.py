"""
Clinic Outcomes Services Module

Stateless business logic for instrument scoring and leadership analytics.
Every function here is a pure computation over its arguments.

Services:
- instruments: Enum-keyed instrument registry (definitions and references)
- scoring: Per-instrument score formulas, validity, interpretation bands
- score_comparison: Baseline/followup/discharge progress and MCID grading
- cohort_filter: Time window, domain, region, clinician, integrity filters
- aggregation: Volume, resolution, time, outcome, complexity, integrity groups
- leadership_analytics: Filter + aggregate entry point and data source protocol
- recommendations: Instrument suggestions by anatomical region

All services are consumed by the API layer (clinic_outcomes/api/).
"""

# =============================================================================
# Instrument Registry Exports
# =============================================================================

from clinic_outcomes.services.instruments import (
    INSTRUMENT_REGISTRY,
    ODI_INSTRUMENT,
    QUICKDASH_INSTRUMENT,
    LEFS_INSTRUMENT,
    NDI_REFERENCE,
    RPQ_REFERENCE,
    verify_registry,
    parse_instrument_code,
    get_registry_entry,
    get_instrument,
    list_instruments,
    list_registry_entries,
    get_mcid,
    get_polarity,
    get_instrument_name,
)

# =============================================================================
# Scoring Exports
# =============================================================================

from clinic_outcomes.services.scoring import (
    round_half_up,
    validate_responses,
    calculate_score,
    describe_responses,
    interpret_score,
)

# =============================================================================
# Score Comparison Exports
# =============================================================================

from clinic_outcomes.services.score_comparison import (
    is_improvement,
    compare_score_records,
    compare_episode_scores,
    calculate_mcid_achievement,
    summarize_mcid_achievements,
)

# =============================================================================
# Cohort Filter Exports
# =============================================================================

from clinic_outcomes.services.cohort_filter import (
    TIME_WINDOW_DAYS,
    FilteredCohort,
    SourceQuery,
    get_date_cutoff,
    filter_episodes,
    filter_care_targets,
    apply_cohort_filters,
    build_source_query,
)

# =============================================================================
# Aggregation Exports
# =============================================================================

from clinic_outcomes.services.aggregation import (
    calculate_median,
    calculate_percentile,
    compute_volume_metrics,
    compute_resolution_metrics,
    compute_time_metrics,
    compute_outcome_metrics,
    compute_complexity_metrics,
    compute_integrity_metrics,
)

# =============================================================================
# Leadership Analytics Exports
# =============================================================================

from clinic_outcomes.services.leadership_analytics import (
    OutcomeDataSource,
    compute_leadership_analytics,
    compute_leadership_analytics_from_source,
)

# =============================================================================
# Recommendation Exports
# =============================================================================

from clinic_outcomes.services.recommendations import (
    recommend_instruments,
    get_primary_instrument,
)


__all__ = [
    # Instrument registry
    'INSTRUMENT_REGISTRY',
    'ODI_INSTRUMENT',
    'QUICKDASH_INSTRUMENT',
    'LEFS_INSTRUMENT',
    'NDI_REFERENCE',
    'RPQ_REFERENCE',
    'verify_registry',
    'parse_instrument_code',
    'get_registry_entry',
    'get_instrument',
    'list_instruments',
    'list_registry_entries',
    'get_mcid',
    'get_polarity',
    'get_instrument_name',
    # Scoring
    'round_half_up',
    'validate_responses',
    'calculate_score',
    'describe_responses',
    'interpret_score',
    # Score comparison
    'is_improvement',
    'compare_score_records',
    'compare_episode_scores',
    'calculate_mcid_achievement',
    'summarize_mcid_achievements',
    # Cohort filter
    'TIME_WINDOW_DAYS',
    'FilteredCohort',
    'SourceQuery',
    'get_date_cutoff',
    'filter_episodes',
    'filter_care_targets',
    'apply_cohort_filters',
    'build_source_query',
    # Aggregation
    'calculate_median',
    'calculate_percentile',
    'compute_volume_metrics',
    'compute_resolution_metrics',
    'compute_time_metrics',
    'compute_outcome_metrics',
    'compute_complexity_metrics',
    'compute_integrity_metrics',
    # Leadership analytics
    'OutcomeDataSource',
    'compute_leadership_analytics',
    'compute_leadership_analytics_from_source',
    # Recommendations
    'recommend_instruments',
    'get_primary_instrument',
]
