"""
Outcome Instrument Scoring Service

Pure scoring functions for the scorable instruments in the registry. Each
instrument has its own item count, response scale, score formula, validity
rule, and interpretation bands:

| Instrument | Items | Scale | Score                                   | Valid when          |
|------------|-------|-------|-----------------------------------------|---------------------|
| ODI        | 10    | 0-5   | (sum / (5 x answered)) x 100            | >= 1 answered       |
| QuickDASH  | 11    | 1-5   | ((sum - answered) / answered) x 25      | >= 10 answered      |
| LEFS       | 20    | 0-4   | sum (0-80 raw points)                   | all 20 answered     |

Scores are rounded half-up to one decimal and the interpretation band is
taken from the rounded score, so 6/15 ODI points (40.00000000000001 before
rounding) reads as 40.0 'Moderate disability'. A response of None means "no
answer" and is not the same as a zero. When isValid is False the score is
still computed so callers can display it, but it carries no clinical meaning.

Key Functions:
- calculate_score: Score a set of item responses for one instrument
- validate_responses: Check responses against the instrument's item table
- describe_responses: Resolve item and option text for each answer
- interpret_score: Interpretation band for an already computed score
- round_half_up: Half-up rounding used for scores and percentages
"""

import logging
import math
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from clinic_outcomes.core.exceptions import InvalidResponseError
from clinic_outcomes.models.enums import InstrumentCode
from clinic_outcomes.models.schemas import (
    InstrumentDefinition,
    ItemResponseDetail,
    ScoreResult,
)
from clinic_outcomes.services.instruments import (
    INSTRUMENT_REGISTRY,
    get_instrument,
    list_instruments,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Numeric Helpers
# =============================================================================


def round_half_up(value: float, digits: int = 1) -> float:
    """
    Round to `digits` decimals with halves rounded up.

    Python's round() uses banker's rounding (round(2.25, 1) == 2.2), which
    would disagree with score sheets computed by hand or by the dashboard.

    Example:
        >>> round_half_up(33.35)
        33.4
        >>> round_half_up(62.5, 0)
        63.0
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


# =============================================================================
# Response Validation
# =============================================================================


def validate_responses(
    definition: InstrumentDefinition,
    responses: Mapping[Any, Any],
) -> Dict[int, Optional[float]]:
    """
    Validate item responses against an instrument's item table.

    Args:
        definition: Scorable instrument definition.
        responses: Item number -> numeric answer or None. Items absent from
            the mapping are treated as unanswered.

    Returns:
        Dict of item number -> float value or None, one entry per item in the
        instrument, in item order.

    Raises:
        InvalidResponseError: If an item number is outside 1..totalItems, or a
            value is non-numeric or not one of the item's response options.
    """
    normalized: Dict[int, Optional[float]] = {
        item.number: None for item in definition.items
    }

    for raw_number, value in responses.items():
        if isinstance(raw_number, bool) or not isinstance(raw_number, int):
            raise InvalidResponseError(
                f"Item number must be an integer, got {raw_number!r}",
                instrument_code=definition.code.value,
                item_number=raw_number,
                value=value,
            )
        item = definition.item(raw_number)
        if item is None:
            raise InvalidResponseError(
                f"{definition.name} has no item {raw_number} "
                f"(items 1-{definition.totalItems})",
                instrument_code=definition.code.value,
                item_number=raw_number,
                value=value,
            )
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidResponseError(
                f"{definition.name} item {raw_number} answer must be numeric, got {value!r}",
                instrument_code=definition.code.value,
                item_number=raw_number,
                value=value,
            )
        if item.option_for(value) is None:
            allowed = [option.value for option in item.options]
            raise InvalidResponseError(
                f"{definition.name} item {raw_number} answer {value!r} "
                f"is not one of {allowed}",
                instrument_code=definition.code.value,
                item_number=raw_number,
                value=value,
            )
        normalized[raw_number] = float(value)

    return normalized


# =============================================================================
# Per-Instrument Formulas and Interpretation Bands
# =============================================================================


def _interpret_odi(score: float) -> str:
    if score <= 20:
        return 'Minimal disability'
    elif score <= 40:
        return 'Moderate disability'
    elif score <= 60:
        return 'Severe disability'
    elif score <= 80:
        return 'Crippling disability'
    return 'Bed-bound or exaggerating symptoms'


def _interpret_quickdash(score: float) -> str:
    if score <= 25:
        return 'Mild disability'
    elif score <= 50:
        return 'Moderate disability'
    elif score <= 75:
        return 'Severe disability'
    return 'Very severe disability'


def _interpret_lefs(score: float) -> str:
    percentage = (score / 80) * 100

    if percentage >= 80:
        band = 'Minimal to no disability'
    elif percentage >= 60:
        band = 'Mild disability'
    elif percentage >= 40:
        band = 'Moderate disability'
    elif percentage >= 20:
        band = 'Severe disability'
    else:
        band = 'Very severe disability'

    return f"{band} ({int(round_half_up(percentage, 0))}% function)"


def _score_odi(total: float, answered: int) -> float:
    # Percentage of the maximum possible for the answered sections
    if answered == 0:
        return 0.0
    return (total / (5 * answered)) * 100


def _score_quickdash(total: float, answered: int) -> float:
    if answered == 0:
        return 0.0
    return ((total - answered) / answered) * 25


def _score_lefs(total: float, answered: int) -> float:
    return total


ScoreFormula = Callable[[float, int], float]
Interpreter = Callable[[float], str]

_SCORERS: Dict[InstrumentCode, Tuple[ScoreFormula, Interpreter]] = {
    InstrumentCode.ODI: (_score_odi, _interpret_odi),
    InstrumentCode.QUICKDASH: (_score_quickdash, _interpret_quickdash),
    InstrumentCode.LEFS: (_score_lefs, _interpret_lefs),
}

# Every scorable definition needs a formula
_unscored = [d.code.value for d in list_instruments() if d.code not in _SCORERS]
if _unscored:
    raise RuntimeError(f"No score formula registered for: {_unscored}")
_orphaned = [code.value for code in _SCORERS if code not in INSTRUMENT_REGISTRY]
if _orphaned:
    raise RuntimeError(f"Score formulas registered for unknown instruments: {_orphaned}")


# =============================================================================
# Public API
# =============================================================================


def interpret_score(instrument_code: Any, score: float) -> str:
    """
    Return the interpretation band text for a computed score.

    Args:
        instrument_code: Scorable instrument code.
        score: Score on the instrument's own scale.

    Raises:
        UnknownInstrumentError: If the code is not registered.
        InstrumentNotScorableError: If the instrument has no item definitions.
    """
    definition = get_instrument(instrument_code)
    _, interpreter = _SCORERS[definition.code]
    return interpreter(score)


def calculate_score(
    instrument_code: Any,
    responses: Mapping[Any, Any],
) -> ScoreResult:
    """
    Score a set of item responses for one instrument.

    Args:
        instrument_code: InstrumentCode or string label ('ODI', 'QuickDASH', ...).
        responses: Item number -> numeric answer, None for no answer.

    Returns:
        ScoreResult with the score rounded to one decimal, the validity flag,
        the answered item count, and the interpretation band.

    Raises:
        UnknownInstrumentError: If the code is not registered.
        InstrumentNotScorableError: If the instrument has no item definitions
            (NDI, RPQ).
        InvalidResponseError: If a response does not fit the item table.

    Example:
        >>> result = calculate_score('QUICKDASH', {n: 3 for n in range(1, 12)})
        >>> result.score, result.isValid, result.interpretation
        (50.0, True, 'Moderate disability')
    """
    definition = get_instrument(instrument_code)
    values = validate_responses(definition, responses)

    answered = [value for value in values.values() if value is not None]
    answered_count = len(answered)
    total = float(sum(answered))

    formula, interpreter = _SCORERS[definition.code]
    score = round_half_up(formula(total, answered_count), 1)
    is_valid = answered_count >= definition.minRequiredItems

    if not is_valid:
        logger.debug(
            f"{definition.name} scored with {answered_count}/{definition.totalItems} "
            f"items answered; below the {definition.minRequiredItems} required"
        )

    return ScoreResult(
        score=score,
        isValid=is_valid,
        answeredCount=answered_count,
        interpretation=interpreter(score),
    )


def describe_responses(
    instrument_code: Any,
    responses: Mapping[Any, Any],
) -> List[ItemResponseDetail]:
    """
    Resolve the item text and chosen option text for every item.

    Produces one entry per instrument item in item order. Unanswered items
    (None or absent) are marked isSkipped with no response text. Used by the
    intake and exam workflows that persist individual answers next to the
    score record.

    Raises:
        UnknownInstrumentError, InstrumentNotScorableError, InvalidResponseError:
            As for calculate_score.
    """
    definition = get_instrument(instrument_code)
    values = validate_responses(definition, responses)

    details = []
    for item in definition.items:
        value = values[item.number]
        option = item.option_for(value) if value is not None else None
        details.append(
            ItemResponseDetail(
                itemNumber=item.number,
                section=item.section,
                itemText=item.text,
                responseValue=value,
                responseText=option.text if option else None,
                isSkipped=value is None,
            )
        )
    return details
