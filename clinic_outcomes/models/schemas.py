"""
Pydantic models for the Clinic Outcomes backend.

This module provides type-safe data validation and serialization for the
instrument catalog, score results, raw analytics records, leadership filters,
the six leadership metric groups, and the HTTP request/response contracts.

Conventions:
- Raw records that mirror upstream analytics rows (EpisodeSummary,
  CareTargetOutcome, OutcomeScoreRecord) use snake_case column names.
- Catalog entries, results, metric structs, and API contracts use camelCase,
  matching the dashboard's JSON contract.
- Raw records are frozen: the engine reads snapshots and never mutates them.

All models use Pydantic v2 syntax.
"""

import math
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from clinic_outcomes.models.enums import (
    AchievementLevel,
    InstrumentCode,
    MCIDBadge,
    Polarity,
    RecommendationConfidence,
    ScoreType,
    SuccessLevel,
    TimeWindow,
)


# Item number -> numeric answer, or None for "no answer" (distinct from zero).
# Strict types keep JSON booleans and numeric strings from passing as answers.
ItemResponses = Dict[int, Optional[Union[StrictInt, StrictFloat]]]

_DATETIME_ADAPTER = TypeAdapter(datetime)


def _lenient_number(value: Any) -> Optional[float]:
    """
    Coerce an optional numeric column, mapping unusable values to None.

    Upstream views occasionally deliver empty strings, NaN, or free text in
    numeric columns. Those values are dropped from aggregates rather than
    failing the whole snapshot.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _lenient_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce an optional date column, mapping blank or unparseable values to None.

    A row whose start date becomes None is excluded by any bounded time
    window and kept only under 'all'.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str) and not value.strip():
        return None
    try:
        return _DATETIME_ADAPTER.validate_python(value)
    except ValidationError:
        return None


def _normalize_instrument_label(value: Any) -> Any:
    """Uppercase instrument labels so 'QuickDASH' and 'QUICKDASH' agree."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped.upper() if stripped else None
    return value


# =============================================================================
# Instrument Catalog Models
# =============================================================================


class ResponseOption(BaseModel):
    """One ordinal response option of an instrument item."""
    model_config = ConfigDict(frozen=True)

    value: int = Field(..., description="Numeric value contributed to the raw sum")
    text: str = Field(..., description="Option text shown to the patient")


class InstrumentItem(BaseModel):
    """
    A single question of an outcome instrument.

    The options table maps the ordinal answer to the numeric value used by
    the instrument's score formula.
    """
    model_config = ConfigDict(frozen=True)

    number: int = Field(..., ge=1, description="1-based item number")
    section: Optional[str] = Field(default=None, description="Section heading")
    text: str = Field(..., description="Question text")
    options: List[ResponseOption] = Field(..., description="Ordered response options")
    allowSkip: bool = Field(
        default=False,
        description="Whether the patient may decline to answer this item"
    )
    skipLabel: Optional[str] = Field(
        default=None,
        description="Label shown for the skip choice"
    )

    def option_for(self, value: Union[int, float]) -> Optional[ResponseOption]:
        """Return the option whose value equals `value`, if any."""
        for option in self.options:
            if option.value == value:
                return option
        return None


class InstrumentDefinition(BaseModel):
    """
    Fully defined, scorable outcome instrument.

    Contains the item table, the score range, the MCID, and the polarity that
    tells callers which direction of change is an improvement.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "code": "LEFS",
                "name": "LEFS",
                "fullName": "Lower Extremity Functional Scale",
                "description": "Measures functional status related to lower extremity conditions",
                "totalItems": 20,
                "minScore": 0,
                "maxScore": 80,
                "scoreUnit": "points",
                "mcid": 9,
                "minRequiredItems": 20,
                "polarity": "higher-is-better",
                "items": []
            }
        }
    )

    code: InstrumentCode = Field(..., description="Instrument code")
    name: str = Field(..., description="Short display name")
    fullName: str = Field(..., description="Full instrument name")
    description: str = Field(..., description="What the instrument measures")
    totalItems: int = Field(..., ge=1, description="Number of items")
    minScore: float = Field(..., description="Lowest possible score")
    maxScore: float = Field(..., description="Highest possible score")
    scoreUnit: str = Field(..., description="Unit label for the score")
    mcid: float = Field(..., gt=0, description="Minimal clinically important difference")
    minRequiredItems: int = Field(
        ...,
        ge=1,
        description="Answered items required for a valid score"
    )
    polarity: Polarity = Field(..., description="Direction of improvement")
    items: List[InstrumentItem] = Field(..., description="Ordered item table")

    @property
    def scorable(self) -> bool:
        return True

    def item(self, number: int) -> Optional[InstrumentItem]:
        """Return the item with the given 1-based number, if defined."""
        if 1 <= number <= len(self.items):
            return self.items[number - 1]
        return None


class ExternalInstrumentReference(BaseModel):
    """
    Instrument known only by code, MCID, and polarity.

    Used for instruments whose validated item tables are maintained outside
    this engine. They take part in MCID threshold lookups and recommendations
    but cannot be scored here.
    """
    model_config = ConfigDict(frozen=True)

    code: InstrumentCode = Field(..., description="Instrument code")
    name: str = Field(..., description="Short display name")
    fullName: str = Field(..., description="Full instrument name")
    description: str = Field(..., description="What the instrument measures")
    mcid: float = Field(..., gt=0, description="Minimal clinically important difference")
    polarity: Polarity = Field(..., description="Direction of improvement")

    @property
    def scorable(self) -> bool:
        return False


# =============================================================================
# Scoring Models
# =============================================================================


class ScoreResult(BaseModel):
    """
    Result of scoring one completed instrument.

    When isValid is False the score is still computed but must not be treated
    as clinically meaningful.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "score": 50.0,
                "isValid": True,
                "answeredCount": 11,
                "interpretation": "Moderate disability"
            }
        }
    )

    score: float = Field(..., description="Instrument score rounded to 1 decimal")
    isValid: bool = Field(..., description="Whether enough items were answered")
    answeredCount: int = Field(..., ge=0, description="Number of answered items")
    interpretation: str = Field(..., description="Interpretation band text")


class ItemResponseDetail(BaseModel):
    """Per-item answer with the question and option text resolved."""

    itemNumber: int = Field(..., ge=1)
    section: Optional[str] = Field(default=None)
    itemText: str = Field(...)
    responseValue: Optional[float] = Field(default=None)
    responseText: Optional[str] = Field(default=None)
    isSkipped: bool = Field(...)


# =============================================================================
# Score Record & Progress Models
# =============================================================================


class OutcomeScoreRecord(BaseModel):
    """
    One recorded outcome score for an episode.

    Mirrors the outcome_scores table. Append-only: the engine reads these
    records and never modifies them.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = Field(default=None, description="Record identifier")
    episode_id: str = Field(..., description="Episode identifier")
    instrument_code: InstrumentCode = Field(
        ...,
        validation_alias=AliasChoices("instrument_code", "index_type"),
        description="Instrument code (index_type column)"
    )
    score_type: ScoreType = Field(..., description="baseline, followup, or discharge")
    score: float = Field(..., description="Recorded score")
    recorded_at: datetime = Field(..., description="When the score was recorded")

    @field_validator("instrument_code", mode="before")
    @classmethod
    def _normalize_code(cls, value: Any) -> Any:
        return _normalize_instrument_label(value)


class ScoreProgress(BaseModel):
    """
    Baseline-to-latest progress for one (episode, instrument) pair.

    latest is the discharge record, else the last followup, else the baseline
    itself. change is None unless a baseline exists and latest differs from it.
    """

    episodeId: str = Field(...)
    instrumentCode: InstrumentCode = Field(...)
    baseline: Optional[OutcomeScoreRecord] = Field(default=None)
    discharge: Optional[OutcomeScoreRecord] = Field(default=None)
    followups: List[OutcomeScoreRecord] = Field(default_factory=list)
    latest: Optional[OutcomeScoreRecord] = Field(default=None)
    change: Optional[float] = Field(
        default=None,
        description="latest.score - baseline.score"
    )
    isImprovement: bool = Field(default=False)
    mcidThreshold: float = Field(...)
    mcidAchieved: bool = Field(default=False)
    badge: Optional[MCIDBadge] = Field(default=None)
    progressPercent: Optional[float] = Field(
        default=None,
        description="Percent of function represented by the latest score; "
                    "None for instruments without a defined score range"
    )


class MCIDAchievement(BaseModel):
    """Graded MCID assessment for one instrument between baseline and discharge."""

    instrumentCode: InstrumentCode = Field(...)
    instrumentName: str = Field(...)
    baselineScore: float = Field(...)
    dischargeScore: float = Field(...)
    scoreChange: float = Field(
        ...,
        description="Improvement magnitude; positive means the patient improved"
    )
    percentImprovement: float = Field(...)
    mcidThreshold: float = Field(...)
    achievedMCID: bool = Field(...)
    achievementLevel: AchievementLevel = Field(...)
    achievementPercentage: float = Field(
        ...,
        description="Improvement as a percentage of the MCID (150 = 1.5x MCID)"
    )
    interpretation: str = Field(...)


class MCIDSummary(BaseModel):
    """MCID achievement across every instrument with baseline and discharge scores."""

    totalAssessments: int = Field(..., ge=0)
    achievedMCID: int = Field(..., ge=0)
    achievementRate: float = Field(...)
    averageImprovement: float = Field(...)
    achievements: List[MCIDAchievement] = Field(default_factory=list)
    overallSuccess: bool = Field(...)
    successLevel: SuccessLevel = Field(...)


class InstrumentRecommendation(BaseModel):
    """Suggested outcome instrument for an anatomical region."""

    instrumentCode: InstrumentCode = Field(...)
    instrumentName: str = Field(...)
    confidence: RecommendationConfidence = Field(...)
    reason: str = Field(...)
    description: str = Field(...)
    targetArea: str = Field(...)


# =============================================================================
# Raw Analytics Records
# =============================================================================


class EpisodeSummary(BaseModel):
    """
    One row of the episode summary analytics view.

    Status is kept as a plain string so unexpected upstream values flow
    through instead of rejecting the snapshot.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    episode_id: str = Field(...)
    clinician_id: Optional[str] = Field(default=None)
    episode_type: Optional[str] = Field(default=None)
    episode_status: Optional[str] = Field(default=None)
    episode_start_date: Optional[datetime] = Field(default=None)
    episode_close_date: Optional[datetime] = Field(default=None)
    episode_duration_days: Optional[float] = Field(default=None)
    number_of_care_targets: int = Field(default=0, ge=0)
    number_active: int = Field(default=0, ge=0)
    number_discharged: int = Field(default=0, ge=0)
    staggered_resolution: bool = Field(default=False)
    resolution_span_days: Optional[float] = Field(default=None)

    @field_validator("episode_start_date", "episode_close_date", mode="before")
    @classmethod
    def _optional_dates(cls, value: Any) -> Optional[datetime]:
        return _lenient_datetime(value)

    @field_validator("episode_duration_days", "resolution_span_days", mode="before")
    @classmethod
    def _optional_numbers(cls, value: Any) -> Optional[float]:
        return _lenient_number(value)

    @field_validator("number_of_care_targets", "number_active", "number_discharged", mode="before")
    @classmethod
    def _counts(cls, value: Any) -> int:
        number = _lenient_number(value)
        # Negative counts from upstream are clamped rather than rejected
        return max(0, int(number)) if number is not None else 0

    @field_validator("staggered_resolution", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> Any:
        return False if value is None else value


class CareTargetOutcome(BaseModel):
    """
    One row of the care target outcomes analytics view.

    Carries the target's lifecycle dates, its outcome instrument with baseline
    and discharge scores, the derived outcome direction, and the integrity
    status of the outcome record.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    care_target_id: str = Field(...)
    episode_id: str = Field(...)
    care_target_name: Optional[str] = Field(default=None)
    clinician_id: Optional[str] = Field(default=None)
    domain: Optional[str] = Field(default=None)
    body_region: Optional[str] = Field(default=None)
    care_target_status: Optional[str] = Field(default=None)
    care_target_start_date: Optional[datetime] = Field(default=None)
    care_target_discharge_date: Optional[datetime] = Field(default=None)
    duration_to_resolution_days: Optional[float] = Field(default=None)
    discharge_reason: Optional[str] = Field(default=None)
    outcome_instrument: Optional[str] = Field(default=None)
    baseline_score: Optional[float] = Field(default=None)
    baseline_recorded_at: Optional[datetime] = Field(default=None)
    discharge_score: Optional[float] = Field(default=None)
    discharge_recorded_at: Optional[datetime] = Field(default=None)
    outcome_delta: Optional[float] = Field(default=None)
    outcome_direction: Optional[str] = Field(default=None)
    outcome_integrity_status: Optional[str] = Field(default=None)

    @field_validator(
        "duration_to_resolution_days",
        "baseline_score",
        "discharge_score",
        "outcome_delta",
        mode="before",
    )
    @classmethod
    def _optional_numbers(cls, value: Any) -> Optional[float]:
        return _lenient_number(value)

    @field_validator(
        "care_target_start_date",
        "care_target_discharge_date",
        "baseline_recorded_at",
        "discharge_recorded_at",
        mode="before",
    )
    @classmethod
    def _optional_dates(cls, value: Any) -> Optional[datetime]:
        return _lenient_datetime(value)

    @field_validator("outcome_instrument", mode="before")
    @classmethod
    def _normalize_instrument(cls, value: Any) -> Any:
        return _normalize_instrument_label(value)


# =============================================================================
# Leadership Filters & Metric Groups
# =============================================================================


class LeadershipFilters(BaseModel):
    """Cohort filters selected on the leadership dashboard."""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "timeWindow": "90d",
                "domain": "MSK",
                "bodyRegion": "Lumbar",
                "clinicianId": None,
                "includeOverrides": False
            }
        }
    )

    timeWindow: TimeWindow = Field(default=TimeWindow.ALL)
    domain: Optional[str] = Field(default=None)
    bodyRegion: Optional[str] = Field(default=None)
    clinicianId: Optional[str] = Field(default=None)
    includeOverrides: bool = Field(
        default=False,
        description="When false only complete-integrity care targets are used"
    )


class VolumeMetrics(BaseModel):
    episodesOpened: int = 0
    episodesClosed: int = 0
    careTargetsCreated: int = 0
    careTargetsDischarged: int = 0


class DomainDischargeRate(BaseModel):
    discharged: int = 0
    total: int = 0
    rate: float = 0.0


class ResolutionMetrics(BaseModel):
    totalDischarged: int = 0
    dischargeRateByDomain: Dict[str, DomainDischargeRate] = Field(default_factory=dict)
    dischargeReasonDistribution: Dict[str, int] = Field(default_factory=dict)


class DomainDuration(BaseModel):
    median: Optional[float] = None
    count: int = 0


class TimeMetrics(BaseModel):
    """Days from care target start to discharge, over discharged targets."""

    medianDaysToResolution: Optional[float] = None
    percentile25: Optional[float] = None
    percentile75: Optional[float] = None
    byDomain: Dict[str, DomainDuration] = Field(default_factory=dict)


class InstrumentDelta(BaseModel):
    median: float = 0.0
    count: int = 0


class OutcomeMetrics(BaseModel):
    """
    Outcome improvement among discharged care targets.

    mcidAchievedCount equals improvedCount unless the instrument threshold
    counting mode is selected.
    """

    totalWithOutcomes: int = 0
    improvedCount: int = 0
    improvedPercentage: float = 0.0
    medianDeltaByInstrument: Dict[str, InstrumentDelta] = Field(default_factory=dict)
    mcidAchievedCount: int = 0
    mcidPercentage: float = 0.0


class ComplexityMetrics(BaseModel):
    multiCareTargetEpisodeCount: int = 0
    multiCareTargetPercentage: float = 0.0
    averageCareTargetsPerEpisode: float = 0.0
    staggeredResolutionCount: int = 0
    staggeredResolutionPercentage: float = 0.0


class IntegrityMetrics(BaseModel):
    totalCareTargets: int = 0
    completeSymmetryCount: int = 0
    completeSymmetryPercentage: float = 0.0
    overrideCount: int = 0
    overridePercentage: float = 0.0
    missingnessByInstrument: Dict[str, int] = Field(default_factory=dict)


class LeadershipAnalytics(BaseModel):
    """All six leadership metric groups computed from one filtered cohort."""

    volume: VolumeMetrics = Field(default_factory=VolumeMetrics)
    resolution: ResolutionMetrics = Field(default_factory=ResolutionMetrics)
    time: TimeMetrics = Field(default_factory=TimeMetrics)
    outcomes: OutcomeMetrics = Field(default_factory=OutcomeMetrics)
    complexity: ComplexityMetrics = Field(default_factory=ComplexityMetrics)
    integrity: IntegrityMetrics = Field(default_factory=IntegrityMetrics)


# =============================================================================
# API Request Models
# =============================================================================


class ScoreRequest(BaseModel):
    """Item responses submitted for scoring."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"responses": {"1": 3, "2": 2, "8": None}}
        }
    )

    responses: ItemResponses = Field(
        ...,
        description="Item number -> numeric answer, null for no answer"
    )


class ScoreResponse(BaseModel):
    """Score result together with the resolved per-item answers."""

    instrumentCode: InstrumentCode
    result: ScoreResult
    responses: List[ItemResponseDetail] = Field(default_factory=list)


class ProgressRequest(BaseModel):
    """Score records for one (episode, instrument) pair."""

    records: List[OutcomeScoreRecord] = Field(..., min_length=1)


class MCIDSummaryRequest(BaseModel):
    """Per-instrument baseline and discharge scores for one patient."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "baselineScores": {"ODI": 50, "LEFS": 40},
                "dischargeScores": {"ODI": 38, "LEFS": 55}
            }
        }
    )

    baselineScores: Dict[str, float] = Field(default_factory=dict)
    dischargeScores: Dict[str, float] = Field(default_factory=dict)


class LeadershipAnalyticsRequest(BaseModel):
    """
    Snapshot and filters for a leadership analytics computation.

    `now` anchors the time window; the server clock is used when omitted.
    `filters` falls back to the configured defaults when omitted.
    """

    episodes: List[EpisodeSummary] = Field(default_factory=list)
    careTargets: List[CareTargetOutcome] = Field(default_factory=list)
    filters: Optional[LeadershipFilters] = Field(default=None)
    now: Optional[datetime] = Field(default=None)
