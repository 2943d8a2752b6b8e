"""
Outcome Instrument Recommendation Service

Suggests which outcome instrument to administer for a care target based on
its anatomical region and, for the thoracic spine, the diagnosis text.

Routing:
- Brain/Head -> RPQ
- Cervical -> NDI
- Lumbar -> ODI
- Thoracic -> ODI; NDI is added and both drop to medium confidence when the
  diagnosis mentions 'upper' or 'cervicothoracic'
- Hip, Knee, Ankle/Foot -> LEFS
- Shoulder, Elbow, Wrist/Hand -> QuickDASH

Unrecognized regions get no recommendation.
"""

import logging
from typing import List, Optional

from clinic_outcomes.models.enums import InstrumentCode, RecommendationConfidence
from clinic_outcomes.models.schemas import InstrumentRecommendation
from clinic_outcomes.services.instruments import get_instrument_name


logger = logging.getLogger(__name__)


LOWER_EXTREMITY_REGIONS = ('Hip', 'Knee', 'Ankle/Foot')
UPPER_EXTREMITY_REGIONS = ('Shoulder', 'Elbow', 'Wrist/Hand')
UPPER_THORACIC_TERMS = ('upper', 'cervicothoracic')

_CONFIDENCE_ORDER = {
    RecommendationConfidence.HIGH: 0,
    RecommendationConfidence.MEDIUM: 1,
    RecommendationConfidence.LOW: 2,
}


def _recommend(
    code: InstrumentCode,
    confidence: RecommendationConfidence,
    reason: str,
    description: str,
    target_area: str,
) -> InstrumentRecommendation:
    return InstrumentRecommendation(
        instrumentCode=code,
        instrumentName=get_instrument_name(code),
        confidence=confidence,
        reason=reason,
        description=description,
        targetArea=target_area,
    )


def _is_upper_thoracic(diagnosis: Optional[str]) -> bool:
    text = (diagnosis or '').lower()
    return any(term in text for term in UPPER_THORACIC_TERMS)


def recommend_instruments(
    region: str,
    diagnosis: Optional[str] = None,
) -> List[InstrumentRecommendation]:
    """
    Recommend outcome instruments for an anatomical region.

    Args:
        region: Region label as used by intake ('Lumbar', 'Knee', ...).
        diagnosis: Free-text diagnosis; only consulted for 'Thoracic'.

    Returns:
        Recommendations ordered high, medium, low confidence. Empty for an
        unrecognized region.

    Example:
        >>> [r.instrumentCode.value for r in recommend_instruments('Thoracic', 'Upper back strain')]
        ['NDI', 'ODI']
    """
    recommendations: List[InstrumentRecommendation] = []

    if region == 'Brain/Head':
        recommendations.append(_recommend(
            InstrumentCode.RPQ,
            RecommendationConfidence.HIGH,
            'Standard outcome measure for concussion and head injury assessment',
            '16-item questionnaire measuring post-concussion symptoms across '
            'cognitive, physical, and emotional domains',
            'Brain/Head',
        ))

    elif region == 'Cervical':
        recommendations.append(_recommend(
            InstrumentCode.NDI,
            RecommendationConfidence.HIGH,
            'Standard outcome measure for cervical spine conditions',
            '10-item questionnaire measuring neck pain and disability in daily activities',
            'Neck/Cervical Spine',
        ))

    elif region == 'Lumbar':
        recommendations.append(_recommend(
            InstrumentCode.ODI,
            RecommendationConfidence.HIGH,
            'Gold standard for measuring low back pain disability',
            '10-item questionnaire assessing how back pain affects daily life',
            'Lower Back/Lumbar Spine',
        ))

    elif region == 'Thoracic':
        upper = _is_upper_thoracic(diagnosis)
        if upper:
            recommendations.append(_recommend(
                InstrumentCode.NDI,
                RecommendationConfidence.MEDIUM,
                'Upper thoracic issues often affect neck function',
                'Can capture disability from upper thoracic/cervicothoracic junction pain',
                'Upper Thoracic Spine',
            ))
        recommendations.append(_recommend(
            InstrumentCode.ODI,
            RecommendationConfidence.MEDIUM if upper else RecommendationConfidence.HIGH,
            'Applicable for thoracic spine-related functional limitations',
            'Assesses impact of thoracic pain on daily activities',
            'Thoracic Spine',
        ))

    elif region in LOWER_EXTREMITY_REGIONS:
        recommendations.append(_recommend(
            InstrumentCode.LEFS,
            RecommendationConfidence.HIGH,
            f'Designed specifically for {region.lower()} and lower extremity conditions',
            '20-item questionnaire measuring lower limb function across various activities',
            f'Lower Extremity ({region})',
        ))

    elif region in UPPER_EXTREMITY_REGIONS:
        recommendations.append(_recommend(
            InstrumentCode.QUICKDASH,
            RecommendationConfidence.HIGH,
            f'Standard outcome measure for {region.lower()} and upper extremity conditions',
            '11-item questionnaire assessing arm, shoulder, and hand function',
            f'Upper Extremity ({region})',
        ))

    else:
        logger.debug(f"No outcome instrument mapped for region {region!r}")

    # Stable sort keeps insertion order within a confidence level
    recommendations.sort(key=lambda r: _CONFIDENCE_ORDER[r.confidence])
    return recommendations


def get_primary_instrument(
    region: str,
    diagnosis: Optional[str] = None,
) -> Optional[InstrumentCode]:
    """Return the top recommended instrument for a region, or None."""
    recommendations = recommend_instruments(region, diagnosis)
    return recommendations[0].instrumentCode if recommendations else None
