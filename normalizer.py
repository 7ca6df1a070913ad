# ------------------------------------------------------------
# normalizer.py
#
# Turns raw Google Places (v1) records into CareProvider objects.
#
# It:
#   - drops records without usable coordinates (never raises for them)
#   - splits "Dr. Ayşe Yılmaz - Acıbadem Hastanesi" style names into
#     a person name and an institution name
#   - classifies specialty / hospital type / professional title
#   - parses the weekly opening-hours text into 7 WorkingHour entries
# ------------------------------------------------------------

import logging
import math
import re
import uuid
from typing import Iterable, List, Optional, Tuple

from models import DOCTOR, HOSPITAL, PROVIDER_KINDS, CareProvider, Location, WorkingHour
from ranking import haversine_km
from vocabulary import (
    ADDRESS_PLACEHOLDER,
    CLINIC_KEYWORDS,
    CLOSED_WORDS,
    DAY_NAMES,
    DEFAULT_DOCTOR_NAME,
    DEFAULT_HOSPITAL_NAME,
    DEFAULT_HOSPITAL_TYPE,
    DEFAULT_TITLE,
    DOCTOR_WORDS,
    GENERAL_PEDIATRICS,
    GENERIC_PROVIDER_NAME,
    HONORIFICS,
    HOSPITAL_KEYWORDS,
    HOSPITAL_TYPE_RULES,
    PHONE_PLACEHOLDER,
    PRIVATE_PRACTICE_KEYWORDS,
    SPECIALTY_RULES,
    TITLE_PREFIXES,
    TITLE_RULES,
    classify,
    contains_any,
)


logger = logging.getLogger(__name__)

# A cleaned person name shorter than this is treated as "no name"
MIN_NAME_LENGTH = 3

DEFAULT_START = "09:00"
DEFAULT_END = "17:00"


# ------------------------------------------------------------
# Name handling
# ------------------------------------------------------------

def strip_honorifics(name: str) -> str:
    """Remove "Dr.", "Prof. Dr.", "Doç. Dr." etc. from a name (any case)."""
    cleaned = name
    for honorific in HONORIFICS:
        cleaned = re.sub(re.escape(honorific), "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def _is_institution(text: str) -> bool:
    return contains_any(text, HOSPITAL_KEYWORDS) or contains_any(text, CLINIC_KEYWORDS)


def _has_title_prefix(name: str) -> bool:
    return name.startswith(TITLE_PREFIXES)


def _split_on_dash(name: str) -> Tuple[str, str]:
    left, _, right = name.partition("-")
    return left.strip(), right.strip()


def split_doctor_name(name: str) -> Tuple[str, str]:
    """
    Split a doctor place name into (person name, institution name).

    Examples:
        "Dr. Ayşe Yılmaz - Acıbadem Hastanesi" -> ("Ayşe Yılmaz", "Acıbadem Hastanesi")
        "Dr. ÖZEL İLGİ ÇOCUK TIP MERKEZİ"      -> (GENERIC_PROVIDER_NAME, <whole name>)
        "Dr. Mehmet Kaya Muayenehanesi"        -> ("Mehmet Kaya", <whole name>)

    When no person can be identified the generic provider name is
    returned together with the whole string as the institution.
    """
    name = name.strip()

    # 1. Hospital / clinic / medical center
    if _is_institution(name):
        if "-" in name:
            left, right = _split_on_dash(name)
            if _is_institution(left):
                return GENERIC_PROVIDER_NAME, name
            person = strip_honorifics(left)
            if len(person) < MIN_NAME_LENGTH or person == left:
                return GENERIC_PROVIDER_NAME, right or name
            return person, right or name
        # With or without a "Dr." prefix the whole string is the institution
        return GENERIC_PROVIDER_NAME, name

    # 2. Private practice ("muayenehane")
    if contains_any(name, PRIVATE_PRACTICE_KEYWORDS):
        person = name
        for keyword in sorted(PRIVATE_PRACTICE_KEYWORDS, key=len, reverse=True):
            person = re.sub(re.escape(keyword), "", person, flags=re.IGNORECASE)
        person = strip_honorifics(person)
        if len(person) >= MIN_NAME_LENGTH:
            return person, name
        return GENERIC_PROVIDER_NAME, name

    # 3. Looks like a person: "Dr. ..." or mentions "doktor"/"doctor"
    if _has_title_prefix(name) or contains_any(name, DOCTOR_WORDS):
        if "-" in name:
            left, right = _split_on_dash(name)
            person = strip_honorifics(left)
            if len(person) >= MIN_NAME_LENGTH:
                return person, right or name
        person = strip_honorifics(name)
        if len(person) >= MIN_NAME_LENGTH:
            return person, name

    # 4. Nothing recognisable
    return GENERIC_PROVIDER_NAME, name


def classify_specialty(name: str) -> str:
    return classify(name, SPECIALTY_RULES, GENERAL_PEDIATRICS)


def classify_hospital_type(name: str) -> str:
    return classify(name, HOSPITAL_TYPE_RULES, DEFAULT_HOSPITAL_TYPE)


def classify_title(name: str) -> str:
    # Titles are matched case-sensitively: "dr." inside a word is not a title
    for substrings, title in TITLE_RULES:
        if any(s in name for s in substrings):
            return title
    return DEFAULT_TITLE


# ------------------------------------------------------------
# Working hours
# ------------------------------------------------------------

def default_working_hours() -> List[WorkingHour]:
    """Mon-Fri 09:00-17:00, weekend closed."""
    hours = []
    for index, day in enumerate(DAY_NAMES):
        if index < 5:
            hours.append(WorkingHour(day, DEFAULT_START, DEFAULT_END, True))
        else:
            hours.append(WorkingHour(day, "", "", False))
    return hours


def _parse_day(day: str, text: str) -> WorkingHour:
    text = str(text)
    if contains_any(text, CLOSED_WORDS):
        return WorkingHour(day, "", "", False)

    _, sep, time_range = text.partition(": ")
    if sep:
        times = [t.strip() for t in time_range.split("–")]
        if len(times) == 2:
            return WorkingHour(day, times[0], times[1], True)

    # "Open 24 hours", several ranges in one day, unknown formats...
    return WorkingHour(day, DEFAULT_START, DEFAULT_END, True)


def parse_working_hours(descriptions: Optional[List[str]]) -> List[WorkingHour]:
    """
    Parse Google's weekdayDescriptions (index 0 = Monday), e.g.

        "Monday: 9:00 AM – 5:00 PM"
        "Sunday: Closed"

    Missing descriptions give the default week. The result always has
    exactly 7 entries.
    """
    if not descriptions:
        return default_working_hours()

    defaults = default_working_hours()
    hours = []
    for index, day in enumerate(DAY_NAMES):
        if index < len(descriptions):
            hours.append(_parse_day(day, descriptions[index]))
        else:
            hours.append(defaults[index])
    return hours


# ------------------------------------------------------------
# Field parsing
# ------------------------------------------------------------

def parse_location(place: dict) -> Optional[Location]:
    loc = place.get("location")
    if not isinstance(loc, dict):
        return None
    try:
        lat = float(loc["latitude"])
        lon = float(loc["longitude"])
    except (KeyError, TypeError, ValueError):
        return None
    if math.isnan(lat) or math.isnan(lon):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return Location(lat, lon)


def _display_name(place: dict) -> Optional[str]:
    value = place.get("displayName")
    if isinstance(value, dict):
        value = value.get("text")
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _rating(place: dict) -> Optional[float]:
    try:
        rating = float(place["rating"])
    except (KeyError, TypeError, ValueError):
        return None
    if math.isnan(rating):
        return None
    return min(max(rating, 0.0), 5.0)


def _review_count(place: dict) -> Optional[int]:
    try:
        count = int(place["userRatingCount"])
    except (KeyError, TypeError, ValueError):
        return None
    return count if count >= 0 else None


def _text(place: dict, *keys: str) -> Optional[str]:
    for key in keys:
        value = place.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------

def normalize_place(
    place: dict,
    kind: str,
    user_location: Optional[Location] = None,
) -> Optional[CareProvider]:
    """
    Convert one raw place record into a CareProvider.

    Returns None (not an error) when the record has no usable
    coordinates. distance_km is only filled when user_location is given.
    """
    if kind not in PROVIDER_KINDS:
        raise ValueError(f"Unknown provider kind: {kind!r}")

    if not isinstance(place, dict):
        return None

    location = parse_location(place)
    if location is None:
        logger.debug("Dropping place without coordinates: %s", _display_name(place))
        return None

    raw_name = _display_name(place)

    if kind == HOSPITAL:
        name = raw_name or DEFAULT_HOSPITAL_NAME
        display_name, affiliation = name, name
        title = ""
        specialty = classify_hospital_type(name)
    else:
        name = raw_name or DEFAULT_DOCTOR_NAME
        display_name, affiliation = split_doctor_name(name)
        specialty = classify_specialty(name)
        # No floating "Dr." in front of a generic label
        title = "" if display_name == GENERIC_PROVIDER_NAME else classify_title(name)

    distance = None
    if user_location is not None:
        distance = haversine_km(
            user_location.latitude, user_location.longitude,
            location.latitude, location.longitude,
        )

    opening_hours = place.get("regularOpeningHours") or {}
    descriptions = opening_hours.get("weekdayDescriptions") if isinstance(opening_hours, dict) else None

    types = place.get("types")

    return CareProvider(
        id=str(place.get("id") or uuid.uuid4().hex),
        kind=kind,
        display_name=display_name,
        title=title,
        specialty=specialty,
        affiliation=affiliation,
        address=_text(place, "formattedAddress", "shortFormattedAddress") or ADDRESS_PLACEHOLDER,
        phone=_text(place, "internationalPhoneNumber", "nationalPhoneNumber") or PHONE_PLACEHOLDER,
        location=location,
        working_hours=parse_working_hours(descriptions),
        rating=_rating(place),
        review_count=_review_count(place),
        distance_km=distance,
        accepts_appointments=True,
        types=list(types) if isinstance(types, list) else [],
    )


def normalize_places(
    places: Iterable[dict],
    kind: str,
    user_location: Optional[Location] = None,
) -> List[CareProvider]:
    """Normalize a list of records, silently dropping the unusable ones."""
    providers = []
    for place in places:
        provider = normalize_place(place, kind, user_location)
        if provider is not None:
            providers.append(provider)
    return providers
