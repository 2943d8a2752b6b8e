"""
Enumeration definitions for the Clinic Outcomes backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses. Values match the strings stored by the
intake, exam, and discharge workflows that produce the raw records.
"""

from enum import Enum


class InstrumentCode(str, Enum):
    """
    Patient-reported outcome instruments known to the platform.

    - ODI: Oswestry Disability Index (low back)
    - QUICKDASH: Disabilities of the Arm, Shoulder and Hand, quick version
    - LEFS: Lower Extremity Functional Scale
    - NDI: Neck Disability Index
    - RPQ: Rivermead Post-Concussion Symptoms Questionnaire

    Every member must have an entry in the instrument registry
    (clinic_outcomes/services/instruments.py); the registry checks this when
    it is imported.
    """
    ODI = "ODI"
    QUICKDASH = "QUICKDASH"
    LEFS = "LEFS"
    NDI = "NDI"
    RPQ = "RPQ"


class Polarity(str, Enum):
    """
    Direction in which an instrument's score improves.

    - higher-is-better: functional scales (LEFS)
    - lower-is-better: disability and symptom indices (ODI, QuickDASH, NDI, RPQ)
    """
    HIGHER_IS_BETTER = "higher-is-better"
    LOWER_IS_BETTER = "lower-is-better"


class ScoreType(str, Enum):
    """
    Point in the episode at which an outcome score was recorded.

    An (episode, instrument) pair has at most one baseline and one discharge
    record; followup records are unbounded and ordered by recorded time.
    """
    BASELINE = "baseline"
    FOLLOWUP = "followup"
    DISCHARGE = "discharge"


class MCIDBadge(str, Enum):
    """
    Badge shown next to a score once the change reaches the MCID.

    No badge is shown while the change is smaller than the MCID.
    """
    ACHIEVED = "MCID Achieved"
    DECLINE = "MCID Decline"


class AchievementLevel(str, Enum):
    """
    Graded MCID achievement between baseline and discharge.

    - excellent: improvement of at least twice the MCID
    - significant: improvement of at least the MCID
    - moderate: improvement of at least 60% of the MCID
    - minimal: any positive improvement below that
    - none: no measurable change
    - declined: the score moved in the worsening direction
    """
    EXCELLENT = "excellent"
    SIGNIFICANT = "significant"
    MODERATE = "moderate"
    MINIMAL = "minimal"
    NONE = "none"
    DECLINED = "declined"


class SuccessLevel(str, Enum):
    """Overall MCID success level across a patient's instruments."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class RecommendationConfidence(str, Enum):
    """Confidence attached to an instrument recommendation."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EpisodeStatus(str, Enum):
    """Lifecycle status of an episode of care."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class CareTargetStatus(str, Enum):
    """Lifecycle status of a single care target within an episode."""
    ACTIVE = "ACTIVE"
    DISCHARGED = "DISCHARGED"


class OutcomeDirection(str, Enum):
    """
    Direction of a care target's outcome between baseline and discharge.

    `incomplete` marks targets missing the baseline or discharge score.
    """
    IMPROVED = "improved"
    WORSENED = "worsened"
    UNCHANGED = "unchanged"
    INCOMPLETE = "incomplete"


class IntegrityStatus(str, Enum):
    """
    Data integrity classification of a care target's outcome record.

    - complete: both baseline and discharge measurements exist
    - override: one is missing under a documented exception
    - incomplete: one is missing without an exception
    """
    COMPLETE = "complete"
    OVERRIDE = "override"
    INCOMPLETE = "incomplete"


class TimeWindow(str, Enum):
    """
    Leadership dashboard time window.

    Cutoffs are taken relative to an explicit `now`: 30, 90, or 365 days
    back, or no cutoff for ALL.
    """
    THIRTY_DAYS = "30d"
    NINETY_DAYS = "90d"
    TWELVE_MONTHS = "12mo"
    ALL = "all"


class MCIDCountingMode(str, Enum):
    """
    How the OutcomeMetrics MCID count is derived.

    - improved_proxy: mcidAchievedCount equals improvedCount (default)
    - instrument_threshold: improved targets whose |outcome_delta| reaches
      their instrument's MCID
    """
    IMPROVED_PROXY = "improved_proxy"
    INSTRUMENT_THRESHOLD = "instrument_threshold"
