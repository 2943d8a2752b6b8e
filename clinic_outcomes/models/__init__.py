"""
Package initialization file for clinic_outcomes models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from clinic_outcomes.models directly.

Usage:
    from clinic_outcomes.models import (
        InstrumentCode,
        ScoreResult,
        CareTargetOutcome,
        LeadershipFilters,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from clinic_outcomes.models.enums import (
    InstrumentCode,
    Polarity,
    ScoreType,
    MCIDBadge,
    AchievementLevel,
    SuccessLevel,
    RecommendationConfidence,
    EpisodeStatus,
    CareTargetStatus,
    OutcomeDirection,
    IntegrityStatus,
    TimeWindow,
    MCIDCountingMode,
)


# =============================================================================
# Schemas
# =============================================================================

from clinic_outcomes.models.schemas import (
    # -------------------------------------------------------------------------
    # Instrument catalog
    # -------------------------------------------------------------------------
    ItemResponses,
    ResponseOption,
    InstrumentItem,
    InstrumentDefinition,
    ExternalInstrumentReference,

    # -------------------------------------------------------------------------
    # Scoring and progress
    # -------------------------------------------------------------------------
    ScoreResult,
    ItemResponseDetail,
    OutcomeScoreRecord,
    ScoreProgress,
    MCIDAchievement,
    MCIDSummary,
    InstrumentRecommendation,

    # -------------------------------------------------------------------------
    # Raw analytics records
    # -------------------------------------------------------------------------
    EpisodeSummary,
    CareTargetOutcome,

    # -------------------------------------------------------------------------
    # Leadership filters and metric groups
    # -------------------------------------------------------------------------
    LeadershipFilters,
    VolumeMetrics,
    DomainDischargeRate,
    ResolutionMetrics,
    DomainDuration,
    TimeMetrics,
    InstrumentDelta,
    OutcomeMetrics,
    ComplexityMetrics,
    IntegrityMetrics,
    LeadershipAnalytics,

    # -------------------------------------------------------------------------
    # API contracts
    # -------------------------------------------------------------------------
    ScoreRequest,
    ScoreResponse,
    ProgressRequest,
    MCIDSummaryRequest,
    LeadershipAnalyticsRequest,
)


__all__ = [
    # Enums
    'InstrumentCode',
    'Polarity',
    'ScoreType',
    'MCIDBadge',
    'AchievementLevel',
    'SuccessLevel',
    'RecommendationConfidence',
    'EpisodeStatus',
    'CareTargetStatus',
    'OutcomeDirection',
    'IntegrityStatus',
    'TimeWindow',
    'MCIDCountingMode',
    # Instrument catalog
    'ItemResponses',
    'ResponseOption',
    'InstrumentItem',
    'InstrumentDefinition',
    'ExternalInstrumentReference',
    # Scoring and progress
    'ScoreResult',
    'ItemResponseDetail',
    'OutcomeScoreRecord',
    'ScoreProgress',
    'MCIDAchievement',
    'MCIDSummary',
    'InstrumentRecommendation',
    # Raw analytics records
    'EpisodeSummary',
    'CareTargetOutcome',
    # Leadership filters and metric groups
    'LeadershipFilters',
    'VolumeMetrics',
    'DomainDischargeRate',
    'ResolutionMetrics',
    'DomainDuration',
    'TimeMetrics',
    'InstrumentDelta',
    'OutcomeMetrics',
    'ComplexityMetrics',
    'IntegrityMetrics',
    'LeadershipAnalytics',
    # API contracts
    'ScoreRequest',
    'ScoreResponse',
    'ProgressRequest',
    'MCIDSummaryRequest',
    'LeadershipAnalyticsRequest',
]
