"""
Outcome Instrument Registry

Static catalog of the patient-reported outcome instruments supported by the
platform. Each entry is keyed by InstrumentCode and is one of two variants:

- InstrumentDefinition: fully defined, scorable instrument with its item table
  (ODI, QuickDASH, LEFS).
- ExternalInstrumentReference: instrument known by code, MCID, and polarity
  only (NDI, RPQ). Their validated item tables live outside this engine.

The registry is exhaustive over InstrumentCode. A code added to the enum
without a registry entry raises RegistryIntegrityError when this module is
imported, so the gap surfaces at startup rather than as a silent lookup miss.

Key Functions:
- parse_instrument_code: Resolve strings such as 'QuickDASH' to InstrumentCode
- get_registry_entry: Either variant for any code
- get_instrument: Scorable definition, raising for external references
- list_instruments: All scorable definitions in catalog order
- get_mcid / get_polarity / get_instrument_name: Lookups valid for every code

MCID constants:
- ODI: 6 points
- QuickDASH: 10 points
- LEFS: 9 points
- NDI: 5 points
- RPQ: 12 points
"""

import logging
from typing import Any, Dict, List, Union

from clinic_outcomes.core.exceptions import (
    InstrumentNotScorableError,
    RegistryIntegrityError,
    UnknownInstrumentError,
)
from clinic_outcomes.models.enums import InstrumentCode, Polarity
from clinic_outcomes.models.schemas import (
    ExternalInstrumentReference,
    InstrumentDefinition,
    InstrumentItem,
    ResponseOption,
)


logger = logging.getLogger(__name__)

RegistryEntry = Union[InstrumentDefinition, ExternalInstrumentReference]


def _options(*pairs) -> List[ResponseOption]:
    return [ResponseOption(value=value, text=text) for value, text in pairs]


# =============================================================================
# ODI - Oswestry Disability Index
# =============================================================================

_ODI_ITEMS = [
    InstrumentItem(
        number=1,
        section='Pain Intensity',
        text='Pain Intensity',
        options=_options(
            (0, 'I have no pain at the moment.'),
            (1, 'The pain is very mild at the moment.'),
            (2, 'The pain is moderate at the moment.'),
            (3, 'The pain is fairly severe at the moment.'),
            (4, 'The pain is very severe at the moment.'),
            (5, 'The pain is the worst imaginable at the moment.'),
        ),
    ),
    InstrumentItem(
        number=2,
        section='Personal Care',
        text='Personal Care (Washing, Dressing, etc.)',
        options=_options(
            (0, 'I can look after myself normally without causing extra pain.'),
            (1, 'I can look after myself normally, but it causes extra pain.'),
            (2, 'It is painful to look after myself, and I am slow and careful.'),
            (3, 'I need some help but manage most of my personal care.'),
            (4, 'I need help every day in most aspects of self-care.'),
            (5, 'I do not get dressed, wash with difficulty, and stay in bed.'),
        ),
    ),
    InstrumentItem(
        number=3,
        section='Lifting',
        text='Lifting',
        options=_options(
            (0, 'I can lift heavy weights without extra pain.'),
            (1, 'I can lift heavy weights, but it causes extra pain.'),
            (2, 'Pain prevents me from lifting heavy weights off the floor, '
                'but I can manage if they are conveniently positioned.'),
            (3, 'Pain prevents me from lifting heavy weights, but I can manage '
                'light to medium weights.'),
            (4, 'I can lift very light weights only.'),
            (5, 'I cannot lift or carry anything.'),
        ),
    ),
    InstrumentItem(
        number=4,
        section='Walking',
        text='Walking',
        options=_options(
            (0, 'Pain does not prevent me from walking any distance.'),
            (1, 'Pain prevents me from walking more than 1 mile.'),
            (2, 'Pain prevents me from walking more than ½ mile.'),
            (3, 'Pain prevents me from walking more than ¼ mile.'),
            (4, 'I can only walk using a stick or crutches.'),
            (5, 'I am in bed most of the time and have to crawl to the toilet.'),
        ),
    ),
    InstrumentItem(
        number=5,
        section='Sitting',
        text='Sitting',
        options=_options(
            (0, 'I can sit in any chair as long as I like.'),
            (1, 'I can sit in my favorite chair as long as I like.'),
            (2, 'Pain prevents me from sitting more than 1 hour.'),
            (3, 'Pain prevents me from sitting more than 30 minutes.'),
            (4, 'Pain prevents me from sitting more than 10 minutes.'),
            (5, 'Pain prevents me from sitting at all.'),
        ),
    ),
    InstrumentItem(
        number=6,
        section='Standing',
        text='Standing',
        options=_options(
            (0, 'I can stand as long as I want without extra pain.'),
            (1, 'I can stand as long as I want, but it causes extra pain.'),
            (2, 'Pain prevents me from standing more than 1 hour.'),
            (3, 'Pain prevents me from standing more than 30 minutes.'),
            (4, 'Pain prevents me from standing more than 10 minutes.'),
            (5, 'Pain prevents me from standing at all.'),
        ),
    ),
    InstrumentItem(
        number=7,
        section='Sleeping',
        text='Sleeping',
        options=_options(
            (0, 'My sleep is never disturbed by pain.'),
            (1, 'My sleep is occasionally disturbed by pain.'),
            (2, 'Because of pain, I have less than 6 hours sleep.'),
            (3, 'Because of pain, I have less than 4 hours sleep.'),
            (4, 'Because of pain, I have less than 2 hours sleep.'),
            (5, 'Pain prevents me from sleeping at all.'),
        ),
    ),
    InstrumentItem(
        number=8,
        section='Sex Life',
        text='Sex Life',
        allowSkip=True,
        skipLabel='Prefer not to answer',
        options=_options(
            (0, 'My sex life is normal and causes no extra pain.'),
            (1, 'My sex life is normal but causes some extra pain.'),
            (2, 'My sex life is nearly normal but is very painful.'),
            (3, 'My sex life is severely restricted by pain.'),
            (4, 'My sex life is nearly absent because of pain.'),
            (5, 'Pain prevents any sex life at all.'),
        ),
    ),
    InstrumentItem(
        number=9,
        section='Social Life',
        text='Social Life',
        options=_options(
            (0, 'My social life is normal and causes no extra pain.'),
            (1, 'My social life is normal but increases the degree of pain.'),
            (2, 'Pain has no significant effect on my social life apart from '
                'limiting more energetic activities.'),
            (3, 'Pain has restricted my social life and I do not go out as often.'),
            (4, 'Pain has restricted my social life to my home.'),
            (5, 'I have no social life because of pain.'),
        ),
    ),
    InstrumentItem(
        number=10,
        section='Traveling',
        text='Traveling',
        options=_options(
            (0, 'I can travel anywhere without pain.'),
            (1, 'I can travel anywhere but it causes extra pain.'),
            (2, 'Pain is bad but I manage journeys over 2 hours.'),
            (3, 'Pain restricts me to journeys of less than 1 hour.'),
            (4, 'Pain restricts me to short necessary journeys under 30 minutes.'),
            (5, 'Pain prevents me from traveling except to receive treatment.'),
        ),
    ),
]

ODI_INSTRUMENT = InstrumentDefinition(
    code=InstrumentCode.ODI,
    name='ODI',
    fullName='Oswestry Disability Index',
    description='Measures disability related to low back pain',
    totalItems=10,
    minScore=0,
    maxScore=100,
    scoreUnit='% disability',
    mcid=6,
    minRequiredItems=1,
    polarity=Polarity.LOWER_IS_BETTER,
    items=_ODI_ITEMS,
)


# =============================================================================
# QuickDASH - Disabilities of the Arm, Shoulder and Hand (Quick Version)
# =============================================================================

_DIFFICULTY = (
    (1, 'No difficulty'),
    (2, 'Mild difficulty'),
    (3, 'Moderate difficulty'),
    (4, 'Severe difficulty'),
    (5, 'Unable'),
)
_INTERFERENCE = (
    (1, 'Not at all'),
    (2, 'Slightly'),
    (3, 'Moderately'),
    (4, 'Quite a bit'),
    (5, 'Extremely'),
)
_SYMPTOM = (
    (1, 'None'),
    (2, 'Mild'),
    (3, 'Moderate'),
    (4, 'Severe'),
    (5, 'Extreme'),
)

_QUICKDASH_ITEMS = [
    InstrumentItem(number=1, text='Open a tight or new jar', options=_options(*_DIFFICULTY)),
    InstrumentItem(
        number=2,
        text='Do heavy household chores (e.g., wash walls, wash floors)',
        options=_options(*_DIFFICULTY),
    ),
    InstrumentItem(number=3, text='Carry a shopping bag or briefcase', options=_options(*_DIFFICULTY)),
    InstrumentItem(number=4, text='Wash your back', options=_options(*_DIFFICULTY)),
    InstrumentItem(number=5, text='Use a knife to cut food', options=_options(*_DIFFICULTY)),
    InstrumentItem(
        number=6,
        text='Recreational activities in which you take some force or impact '
             'through your arm, shoulder, or hand',
        options=_options(*_DIFFICULTY),
    ),
    InstrumentItem(
        number=7,
        text='During the past week, to what extent has your arm, shoulder, or hand '
             'problem interfered with your normal social activities?',
        options=_options(*_INTERFERENCE),
    ),
    InstrumentItem(
        number=8,
        text='During the past week, were you limited in your work or other regular '
             'daily activities as a result of your arm, shoulder, or hand problem?',
        options=_options(*_INTERFERENCE),
    ),
    InstrumentItem(number=9, text='Arm, shoulder, or hand pain', options=_options(*_SYMPTOM)),
    InstrumentItem(
        number=10,
        text='Tingling (pins and needles) in your arm, shoulder, or hand',
        options=_options(*_SYMPTOM),
    ),
    InstrumentItem(
        number=11,
        text='During the past week, how much difficulty have you had sleeping '
             'because of the pain in your arm, shoulder, or hand?',
        options=_options(
            (1, 'No difficulty'),
            (2, 'Mild difficulty'),
            (3, 'Moderate difficulty'),
            (4, 'Severe difficulty'),
            (5, "So much difficulty that I can't sleep"),
        ),
    ),
]

QUICKDASH_INSTRUMENT = InstrumentDefinition(
    code=InstrumentCode.QUICKDASH,
    name='QuickDASH',
    fullName='Disabilities of the Arm, Shoulder and Hand (Quick Version)',
    description='Measures disability related to upper extremity conditions',
    totalItems=11,
    minScore=0,
    maxScore=100,
    scoreUnit='score',
    mcid=10,
    minRequiredItems=10,
    polarity=Polarity.LOWER_IS_BETTER,
    items=_QUICKDASH_ITEMS,
)


# =============================================================================
# LEFS - Lower Extremity Functional Scale
# =============================================================================

_LEFS_ACTIVITIES = [
    'Any of your usual work, housework, or school activities',
    'Your usual hobbies, recreational, or sporting activities',
    'Getting into or out of the bath',
    'Walking between rooms',
    'Putting on your shoes or socks',
    'Squatting',
    'Lifting an object, like a bag of groceries, from the floor',
    'Performing light activities around your home',
    'Performing heavy activities around your home',
    'Getting into or out of a car',
    'Walking 2 blocks',
    'Walking a mile',
    'Going up or down 10 stairs (about 1 flight of stairs)',
    'Standing for 1 hour',
    'Sitting for 1 hour',
    'Running on even ground',
    'Running on uneven ground',
    'Making sharp turns while running fast',
    'Hopping',
    'Rolling over in bed',
]

_LEFS_OPTIONS = (
    (0, 'Extreme difficulty or unable to perform activity'),
    (1, 'Quite a bit of difficulty'),
    (2, 'Moderate difficulty'),
    (3, 'A little bit of difficulty'),
    (4, 'No difficulty'),
)

LEFS_INSTRUMENT = InstrumentDefinition(
    code=InstrumentCode.LEFS,
    name='LEFS',
    fullName='Lower Extremity Functional Scale',
    description='Measures functional status related to lower extremity conditions',
    totalItems=20,
    minScore=0,
    maxScore=80,
    scoreUnit='points',
    mcid=9,
    minRequiredItems=20,
    polarity=Polarity.HIGHER_IS_BETTER,
    items=[
        InstrumentItem(number=number, text=text, options=_options(*_LEFS_OPTIONS))
        for number, text in enumerate(_LEFS_ACTIVITIES, start=1)
    ],
)


# =============================================================================
# External References (code, MCID, and polarity only)
# =============================================================================

NDI_REFERENCE = ExternalInstrumentReference(
    code=InstrumentCode.NDI,
    name='NDI',
    fullName='Neck Disability Index',
    description='Measures neck pain and disability in daily activities',
    mcid=5,
    polarity=Polarity.LOWER_IS_BETTER,
)

RPQ_REFERENCE = ExternalInstrumentReference(
    code=InstrumentCode.RPQ,
    name='RPQ',
    fullName='Rivermead Post-Concussion Symptoms Questionnaire',
    description='Measures post-concussion symptoms across cognitive, physical, '
                'and emotional domains',
    mcid=12,
    polarity=Polarity.LOWER_IS_BETTER,
)


# =============================================================================
# Registry
# =============================================================================

INSTRUMENT_REGISTRY: Dict[InstrumentCode, RegistryEntry] = {
    InstrumentCode.ODI: ODI_INSTRUMENT,
    InstrumentCode.QUICKDASH: QUICKDASH_INSTRUMENT,
    InstrumentCode.LEFS: LEFS_INSTRUMENT,
    InstrumentCode.NDI: NDI_REFERENCE,
    InstrumentCode.RPQ: RPQ_REFERENCE,
}


def verify_registry(registry: Dict[InstrumentCode, RegistryEntry]) -> None:
    """
    Check that every InstrumentCode has a consistent registry entry.

    Args:
        registry: Mapping to verify.

    Raises:
        RegistryIntegrityError: If a code is missing, an entry is filed under
            the wrong code, or a definition's item table does not match its
            declared item count.
    """
    missing = {code.value for code in InstrumentCode if code not in registry}
    if missing:
        raise RegistryIntegrityError(missing)

    for code, entry in registry.items():
        if entry.code != code:
            raise RegistryIntegrityError({code.value})
        if isinstance(entry, InstrumentDefinition):
            numbers = [item.number for item in entry.items]
            if numbers != list(range(1, entry.totalItems + 1)):
                raise RegistryIntegrityError({code.value})

    logger.debug(f"Instrument registry verified: {len(registry)} entries")


verify_registry(INSTRUMENT_REGISTRY)


def parse_instrument_code(value: Any) -> InstrumentCode:
    """
    Resolve an instrument code from an enum member or a string label.

    Matching is case-insensitive, so 'QuickDASH', 'quickdash', and
    'QUICKDASH' all resolve to InstrumentCode.QUICKDASH.

    Args:
        value: InstrumentCode member or string label.

    Returns:
        The matching InstrumentCode.

    Raises:
        UnknownInstrumentError: If the value names no registered instrument.
    """
    if isinstance(value, InstrumentCode):
        return value
    if isinstance(value, str):
        try:
            return InstrumentCode(value.strip().upper())
        except ValueError:
            pass
    raise UnknownInstrumentError(value)


def get_registry_entry(code: Any) -> RegistryEntry:
    """Return the registry entry (either variant) for an instrument code."""
    return INSTRUMENT_REGISTRY[parse_instrument_code(code)]


def get_instrument(code: Any) -> InstrumentDefinition:
    """
    Return the scorable definition for an instrument code.

    Raises:
        UnknownInstrumentError: If the code is not registered.
        InstrumentNotScorableError: If the code is an external reference.
    """
    entry = get_registry_entry(code)
    if not isinstance(entry, InstrumentDefinition):
        raise InstrumentNotScorableError(entry.code.value)
    return entry


def list_instruments() -> List[InstrumentDefinition]:
    """Return every scorable instrument definition in catalog order."""
    return [
        entry for entry in INSTRUMENT_REGISTRY.values()
        if isinstance(entry, InstrumentDefinition)
    ]


def list_registry_entries() -> List[RegistryEntry]:
    """Return every registry entry, scorable or not, in catalog order."""
    return list(INSTRUMENT_REGISTRY.values())


def get_mcid(code: Any) -> float:
    """Return the MCID in score points for any registered instrument."""
    return get_registry_entry(code).mcid


def get_polarity(code: Any) -> Polarity:
    """Return the improvement polarity for any registered instrument."""
    return get_registry_entry(code).polarity


def get_instrument_name(code: Any) -> str:
    """Return the full display name for any registered instrument."""
    return get_registry_entry(code).fullName
