"""
Score Record Comparison Service

Baseline / followup / discharge progress logic for one (episode, instrument)
pair, plus graded MCID achievement and per-patient MCID summaries.

Progress rules:
- baseline is the single `baseline` record, discharge the single `discharge`
  record, followups all `followup` records ascending by recorded_at
- latest = discharge, else the last followup, else the baseline itself
- change = latest.score - baseline.score, only when a baseline exists and
  latest is a different record
- improvement depends on polarity: higher-is-better improves when change > 0,
  lower-is-better improves when change < 0
- mcidAchieved = |change| >= instrument MCID
- badge: "MCID Achieved" for an improvement reaching the MCID, "MCID Decline"
  for a worsening reaching it, no badge below the MCID

Changes are rounded to one decimal, the precision scores are recorded at, so
a 44.3 -> 38.3 drop counts as exactly 6.0 points.

MCID achievement grading (baseline vs discharge):
- declined: the patient got worse
- excellent: improvement >= 2 x MCID
- significant: improvement >= MCID
- moderate: improvement >= 0.6 x MCID
- minimal: any improvement below that
- none: no change
"""

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from clinic_outcomes.core.exceptions import ScoreRecordInvariantError
from clinic_outcomes.models.enums import (
    AchievementLevel,
    InstrumentCode,
    MCIDBadge,
    Polarity,
    ScoreType,
    SuccessLevel,
)
from clinic_outcomes.models.schemas import (
    InstrumentDefinition,
    MCIDAchievement,
    MCIDSummary,
    OutcomeScoreRecord,
    ScoreProgress,
)
from clinic_outcomes.services.instruments import get_registry_entry, parse_instrument_code
from clinic_outcomes.services.scoring import round_half_up


logger = logging.getLogger(__name__)


# =============================================================================
# Module Constants
# =============================================================================

# Achievement level multipliers of the instrument MCID
EXCELLENT_MCID_MULTIPLE: float = 2.0
MODERATE_MCID_FRACTION: float = 0.6

# Share of instruments reaching MCID for overall success
OVERALL_SUCCESS_RATE: float = 50.0

# Success level floors on the achievement rate (percent)
SUCCESS_LEVEL_FLOORS: List[Tuple[float, SuccessLevel]] = [
    (80.0, SuccessLevel.EXCELLENT),
    (60.0, SuccessLevel.GOOD),
    (40.0, SuccessLevel.FAIR),
]


# =============================================================================
# Polarity Helpers
# =============================================================================


def is_improvement(change: Optional[float], polarity: Polarity) -> bool:
    """
    Whether a signed score change is an improvement for the given polarity.

    Example:
        >>> is_improvement(15, Polarity.HIGHER_IS_BETTER)
        True
        >>> is_improvement(-12, Polarity.LOWER_IS_BETTER)
        True
        >>> is_improvement(0, Polarity.LOWER_IS_BETTER)
        False
    """
    if change is None:
        return False
    if polarity == Polarity.HIGHER_IS_BETTER:
        return change > 0
    return change < 0


def improvement_magnitude(
    baseline_score: float,
    later_score: float,
    polarity: Polarity,
) -> float:
    """Signed improvement where positive always means the patient got better."""
    if polarity == Polarity.HIGHER_IS_BETTER:
        return round_half_up(later_score - baseline_score, 1)
    return round_half_up(baseline_score - later_score, 1)


def resolve_badge(mcid_achieved: bool, improved: bool) -> Optional[MCIDBadge]:
    """Badge state for the (mcidAchieved, improvement) pair."""
    if not mcid_achieved:
        return None
    return MCIDBadge.ACHIEVED if improved else MCIDBadge.DECLINE


# =============================================================================
# Progress for One (Episode, Instrument) Pair
# =============================================================================


def _check_record_set(records: List[OutcomeScoreRecord]) -> Tuple[str, InstrumentCode]:
    if not records:
        raise ScoreRecordInvariantError("Cannot compare an empty score record set")

    episode_id = records[0].episode_id
    instrument_code = records[0].instrument_code

    for record in records:
        if record.episode_id != episode_id or record.instrument_code != instrument_code:
            raise ScoreRecordInvariantError(
                "Score records must share one episode and instrument",
                details={
                    "expected": [episode_id, instrument_code.value],
                    "found": [record.episode_id, record.instrument_code.value],
                },
            )

    for score_type in (ScoreType.BASELINE, ScoreType.DISCHARGE):
        count = sum(1 for record in records if record.score_type == score_type)
        if count > 1:
            raise ScoreRecordInvariantError(
                f"Found {count} {score_type.value} records for episode "
                f"{episode_id} / {instrument_code.value}; at most one is allowed",
                details={
                    "episode_id": episode_id,
                    "instrument_code": instrument_code.value,
                    "score_type": score_type.value,
                    "count": count,
                },
            )

    return episode_id, instrument_code


def _progress_percent(entry: Any, latest: Optional[OutcomeScoreRecord]) -> Optional[float]:
    if latest is None or not isinstance(entry, InstrumentDefinition):
        return None
    share = (latest.score / entry.maxScore) * 100
    if entry.polarity == Polarity.HIGHER_IS_BETTER:
        return round_half_up(share, 1)
    return round_half_up(100 - share, 1)


def compare_score_records(records: Iterable[OutcomeScoreRecord]) -> ScoreProgress:
    """
    Compute baseline-to-latest progress for one (episode, instrument) pair.

    Args:
        records: All score records of one episode for one instrument, in any
            order.

    Returns:
        ScoreProgress with the baseline, discharge, ordered followups, latest
        record, change, improvement flag, MCID flag, badge, and the percent of
        function represented by the latest score.

    Raises:
        ScoreRecordInvariantError: If the set is empty, mixes episodes or
            instruments, or holds more than one baseline or discharge record.
        UnknownInstrumentError: If the instrument code is not registered.

    Example:
        LEFS baseline 40, discharge 55:
        change=+15.0, isImprovement=True, mcidAchieved=True (15 >= 9),
        badge=MCID Achieved
    """
    records = list(records)
    episode_id, instrument_code = _check_record_set(records)
    entry = get_registry_entry(instrument_code)

    baseline = next((r for r in records if r.score_type == ScoreType.BASELINE), None)
    discharge = next((r for r in records if r.score_type == ScoreType.DISCHARGE), None)
    followups = sorted(
        (r for r in records if r.score_type == ScoreType.FOLLOWUP),
        key=lambda r: r.recorded_at,
    )

    latest = discharge or (followups[-1] if followups else None) or baseline

    change = None
    if baseline is not None and latest is not None and latest is not baseline:
        change = round_half_up(latest.score - baseline.score, 1)

    improved = is_improvement(change, entry.polarity)
    mcid_achieved = change is not None and abs(change) >= entry.mcid

    return ScoreProgress(
        episodeId=episode_id,
        instrumentCode=instrument_code,
        baseline=baseline,
        discharge=discharge,
        followups=followups,
        latest=latest,
        change=change,
        isImprovement=improved,
        mcidThreshold=entry.mcid,
        mcidAchieved=mcid_achieved,
        badge=resolve_badge(mcid_achieved, improved),
        progressPercent=_progress_percent(entry, latest),
    )


def compare_episode_scores(records: Iterable[OutcomeScoreRecord]) -> List[ScoreProgress]:
    """
    Group score records by (episode, instrument) and compare each group.

    Groups are returned in order of first appearance in `records`.

    Raises:
        ScoreRecordInvariantError: If any group holds duplicate baseline or
            discharge records.
    """
    groups: Dict[Tuple[str, InstrumentCode], List[OutcomeScoreRecord]] = defaultdict(list)
    for record in records:
        groups[(record.episode_id, record.instrument_code)].append(record)

    return [compare_score_records(group) for group in groups.values()]


# =============================================================================
# MCID Achievement
# =============================================================================


def _grade_achievement(
    gain: float,
    mcid: float,
    achievement_percentage: float,
) -> Tuple[AchievementLevel, str]:
    shown = int(round_half_up(achievement_percentage, 0))

    if gain < 0:
        return (
            AchievementLevel.DECLINED,
            "Patient condition declined - score moved away from recovery since baseline",
        )
    if gain >= mcid * EXCELLENT_MCID_MULTIPLE:
        return (
            AchievementLevel.EXCELLENT,
            f"Outstanding improvement - achieved {shown}% of MCID threshold",
        )
    if gain >= mcid:
        return (
            AchievementLevel.SIGNIFICANT,
            f"Clinically significant improvement achieved - {shown}% of MCID threshold",
        )
    if gain >= mcid * MODERATE_MCID_FRACTION:
        return (
            AchievementLevel.MODERATE,
            f"Approaching clinical significance - {shown}% of MCID threshold",
        )
    if gain > 0:
        return (
            AchievementLevel.MINIMAL,
            f"Some improvement detected - {shown}% of MCID threshold",
        )
    return AchievementLevel.NONE, "No measurable improvement detected"


def calculate_mcid_achievement(
    instrument_code: Any,
    baseline_score: float,
    discharge_score: float,
) -> MCIDAchievement:
    """
    Grade the change between baseline and discharge against the MCID.

    scoreChange is the improvement magnitude (positive = better) regardless
    of the instrument's polarity: discharge - baseline for LEFS, baseline -
    discharge for disability indices.

    Args:
        instrument_code: Any registered instrument code, including NDI and RPQ.
        baseline_score: Score at baseline.
        discharge_score: Score at discharge.

    Returns:
        MCIDAchievement with percent improvement, achievement percentage of
        the MCID, achievement level, and interpretation text.

    Raises:
        UnknownInstrumentError: If the code is not registered.

    Example:
        >>> a = calculate_mcid_achievement('ODI', 50, 38)
        >>> a.scoreChange, a.achievedMCID, a.achievementLevel
        (12.0, True, <AchievementLevel.EXCELLENT: 'excellent'>)
    """
    entry = get_registry_entry(instrument_code)
    gain = improvement_magnitude(baseline_score, discharge_score, entry.polarity)

    percent_improvement = (gain / abs(baseline_score)) * 100 if baseline_score != 0 else 0.0
    achievement_percentage = (gain / entry.mcid) * 100
    level, interpretation = _grade_achievement(gain, entry.mcid, achievement_percentage)

    return MCIDAchievement(
        instrumentCode=entry.code,
        instrumentName=entry.fullName,
        baselineScore=baseline_score,
        dischargeScore=discharge_score,
        scoreChange=gain,
        percentImprovement=percent_improvement,
        mcidThreshold=entry.mcid,
        achievedMCID=gain >= entry.mcid,
        achievementLevel=level,
        achievementPercentage=achievement_percentage,
        interpretation=interpretation,
    )


def _success_level(rate: float) -> SuccessLevel:
    for floor, level in SUCCESS_LEVEL_FLOORS:
        if rate >= floor:
            return level
    return SuccessLevel.POOR


def summarize_mcid_achievements(
    baseline_scores: Mapping[Any, float],
    discharge_scores: Mapping[Any, float],
) -> MCIDSummary:
    """
    Summarize MCID achievement across a patient's instruments.

    Only instruments present in both mappings are assessed. Keys may be
    InstrumentCode members or labels such as 'QuickDASH'.

    Args:
        baseline_scores: Instrument -> baseline score.
        discharge_scores: Instrument -> discharge score.

    Returns:
        MCIDSummary with the achieved count, achievement rate (0 when nothing
        was assessed), average percent improvement, overall success flag
        (rate >= 50), and success level.

    Raises:
        UnknownInstrumentError: If a key names no registered instrument.
    """
    discharge_by_code = {
        parse_instrument_code(code): score for code, score in discharge_scores.items()
    }

    achievements = []
    for code, baseline in baseline_scores.items():
        parsed = parse_instrument_code(code)
        if parsed in discharge_by_code:
            achievements.append(
                calculate_mcid_achievement(parsed, baseline, discharge_by_code[parsed])
            )

    total = len(achievements)
    achieved = sum(1 for a in achievements if a.achievedMCID)
    rate = (achieved / total) * 100 if total > 0 else 0.0
    average = (
        sum(a.percentImprovement for a in achievements) / total if total > 0 else 0.0
    )

    logger.debug(f"MCID summary: {achieved}/{total} instruments reached MCID")

    return MCIDSummary(
        totalAssessments=total,
        achievedMCID=achieved,
        achievementRate=rate,
        averageImprovement=average,
        achievements=achievements,
        overallSuccess=rate >= OVERALL_SUCCESS_RATE,
        successLevel=_success_level(rate),
    )
