"""
FastAPI router module for outcome instruments.

Implements:
- GET  /instruments: list every registered instrument
- GET  /instruments/recommendations: instrument suggestions for a region
- GET  /instruments/{code}: one instrument definition or reference
- POST /instruments/{code}/score: score item responses
- POST /instruments/{code}/progress: baseline-to-latest progress for a
  score record set
- POST /instruments/mcid-summary: MCID achievement across instruments

Error mapping:
- UnknownInstrumentError -> 404
- InstrumentNotScorableError, InvalidResponseError,
  ScoreRecordInvariantError -> 422
"""

import logging
from typing import List, NoReturn, Optional, Union

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from clinic_outcomes.core.exceptions import (
    InstrumentNotScorableError,
    OutcomesError,
    UnknownInstrumentError,
)
from clinic_outcomes.models import (
    ExternalInstrumentReference,
    InstrumentDefinition,
    InstrumentRecommendation,
    MCIDSummary,
    MCIDSummaryRequest,
    ProgressRequest,
    ScoreProgress,
    ScoreRequest,
    ScoreResponse,
)
from clinic_outcomes.services.instruments import (
    get_registry_entry,
    list_registry_entries,
    parse_instrument_code,
)
from clinic_outcomes.services.recommendations import recommend_instruments
from clinic_outcomes.services.score_comparison import (
    compare_score_records,
    summarize_mcid_achievements,
)
from clinic_outcomes.services.scoring import calculate_score, describe_responses


# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/instruments", tags=["instruments"])


RegistryEntryResponse = Union[InstrumentDefinition, ExternalInstrumentReference]


# =============================================================================
# Local Pydantic Models for API Responses
# =============================================================================


class InstrumentListResponse(BaseModel):
    """Response model for the instrument catalog endpoint."""
    instruments: List[RegistryEntryResponse] = Field(
        default_factory=list,
        description="Scorable definitions followed by external references"
    )


class RecommendationListResponse(BaseModel):
    """Response model for instrument recommendations."""
    region: str
    diagnosis: Optional[str] = None
    recommendations: List[InstrumentRecommendation] = Field(default_factory=list)


# =============================================================================
# Error Translation
# =============================================================================


def raise_http_error(error: OutcomesError) -> NoReturn:
    """
    Translate a domain exception into an HTTPException.

    InstrumentNotScorableError is checked before its UnknownInstrumentError
    parent so references such as NDI answer 422, not 404.
    """
    if isinstance(error, InstrumentNotScorableError):
        status_code = 422
    elif isinstance(error, UnknownInstrumentError):
        status_code = 404
    else:
        status_code = 422

    logger.warning(f"{error.code}: {error.message}")
    raise HTTPException(status_code=status_code, detail=error.to_dict()) from error


# =============================================================================
# Catalog Endpoints
# =============================================================================


@router.get("", response_model=InstrumentListResponse)
async def list_instruments_endpoint() -> InstrumentListResponse:
    """List every registered instrument, scorable or reference-only."""
    return InstrumentListResponse(instruments=list_registry_entries())


@router.get("/recommendations", response_model=RecommendationListResponse)
async def recommend_instruments_endpoint(
    region: str = Query(..., description="Anatomical region, e.g. 'Lumbar' or 'Knee'"),
    diagnosis: Optional[str] = Query(None, description="Free-text diagnosis"),
) -> RecommendationListResponse:
    """
    Recommend outcome instruments for an anatomical region.

    Unrecognized regions return an empty recommendation list.
    """
    return RecommendationListResponse(
        region=region,
        diagnosis=diagnosis,
        recommendations=recommend_instruments(region, diagnosis),
    )


@router.post("/mcid-summary", response_model=MCIDSummary)
async def mcid_summary_endpoint(request: MCIDSummaryRequest) -> MCIDSummary:
    """
    Summarize MCID achievement across a patient's instruments.

    Only instruments present in both baselineScores and dischargeScores are
    assessed.

    Raises:
        HTTPException 404: If a key names no registered instrument
    """
    try:
        return summarize_mcid_achievements(request.baselineScores, request.dischargeScores)
    except OutcomesError as e:
        raise_http_error(e)


@router.get("/{code}", response_model=RegistryEntryResponse)
async def get_instrument_endpoint(code: str) -> RegistryEntryResponse:
    """
    Return one instrument's registry entry.

    Raises:
        HTTPException 404: If the code is not registered
    """
    try:
        return get_registry_entry(code)
    except OutcomesError as e:
        raise_http_error(e)


# =============================================================================
# Scoring Endpoints
# =============================================================================


@router.post("/{code}/score", response_model=ScoreResponse)
async def score_instrument_endpoint(code: str, request: ScoreRequest) -> ScoreResponse:
    """
    Score item responses for one instrument.

    The score is returned even when isValid is False; such a score carries
    no clinical meaning.

    Raises:
        HTTPException 404: If the code is not registered
        HTTPException 422: If the instrument is reference-only or a response
            does not fit the item table
    """
    try:
        result = calculate_score(code, request.responses)
        details = describe_responses(code, request.responses)
        return ScoreResponse(
            instrumentCode=parse_instrument_code(code),
            result=result,
            responses=details,
        )
    except OutcomesError as e:
        raise_http_error(e)


@router.post("/{code}/progress", response_model=ScoreProgress)
async def score_progress_endpoint(code: str, request: ProgressRequest) -> ScoreProgress:
    """
    Compute baseline-to-latest progress for one episode's score records.

    Every record must carry the instrument named in the path and belong to
    the same episode.

    Raises:
        HTTPException 404: If the code is not registered
        HTTPException 422: If the record set mixes instruments or episodes,
            or holds duplicate baseline or discharge records
    """
    try:
        instrument_code = parse_instrument_code(code)
        mismatched = [
            record.instrument_code.value
            for record in request.records
            if record.instrument_code != instrument_code
        ]
        if mismatched:
            raise HTTPException(
                status_code=422,
                detail=(
                    f"Records for {sorted(set(mismatched))} posted to "
                    f"{instrument_code.value} progress"
                ),
            )
        return compare_score_records(request.records)
    except OutcomesError as e:
        raise_http_error(e)
