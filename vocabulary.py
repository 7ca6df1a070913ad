# ------------------------------------------------------------
# vocabulary.py
#
# Keyword tables used to classify free-text place names.
#
# Place names come back from Google in Turkish and English, in any
# case ("DR. ÖZEL İLGİ ÇOCUK TIP MERKEZİ"). The tables below are plain
# data so they can be extended for a new locale without touching the
# normalizer. Bump VOCABULARY_VERSION whenever a table changes.
# ------------------------------------------------------------

from typing import Iterable, Sequence, Tuple


VOCABULARY_VERSION = "2024.2"

# Placeholder person name for records that only name an institution
GENERIC_PROVIDER_NAME = "General Pediatrician"

DEFAULT_DOCTOR_NAME = "Doctor"
DEFAULT_HOSPITAL_NAME = "Hospital"
ADDRESS_PLACEHOLDER = "Address not available"
PHONE_PLACEHOLDER = "Call for details"

HOSPITAL_KEYWORDS = (
    "hastane", "hastanesi", "hospital",
    "tıp merkezi", "tıp merkez", "medical center",
    "sağlık merkezi", "health center",
    "üniversite", "university",
    "devlet hastanesi", "state hospital",
)

CLINIC_KEYWORDS = (
    "klinik", "kliniği", "clinic",
    "poliklinik", "polyclinic",
)

PRIVATE_PRACTICE_KEYWORDS = (
    "özel muayenehane", "muayenehanesi", "muayenehane",
    "private practice",
)

DOCTOR_WORDS = ("doktor", "doctor")

TITLE_PREFIXES = ("Dr.", "Dr ")

# Longest first: "Prof. Dr. " must go before "Dr. " gets a chance
HONORIFICS = (
    "Prof. Dr. ", "Prof.Dr.", "Prof. Dr.",
    "Doç. Dr. ", "Doç.Dr.", "Doç. Dr.",
    "Uzm. Dr. ", "Uzm.Dr.", "Uzm. Dr.",
    "Dr. ", "Dr.",
    "Doktor ",
)

# (substrings, title); checked in order, case-sensitive
TITLE_RULES = (
    (("Prof.", "Profesör"), "Prof. Dr."),
    (("Doç.",), "Doç. Dr."),
    (("Uzm.", "Uzman"), "Uzm. Dr."),
    (("Dr.",), "Dr."),
)
DEFAULT_TITLE = "Dr."

GENERAL_PEDIATRICS = "general pediatrics"

# (substrings, specialty); first match wins
SPECIALTY_RULES = (
    (("göz", "oftalmoloj", "eye", "ophthalm"), "pediatric ophthalmology"),
    (("kalp", "kardiyoloj", "heart", "cardio"), "pediatric cardiology"),
    (("endokrin", "endocrin"), "pediatric endocrinology"),
    (("nöroloj", "sinir", "neurolog", "nerve"), "pediatric neurology"),
    (("gastro", "sindirim", "digestive"), "pediatric gastroenterology"),
    (("hematoloj", "hematolog", "kan hastalık", "blood"), "pediatric hematology"),
    (("cerrahi", "surgery", "surgeon"), "pediatric surgery"),
    (("allerj", "alerji", "allerg", "immun"), "pediatric allergy & immunology"),
    (("çocuk", "pediatr", "bebek", "child", "baby"), GENERAL_PEDIATRICS),
)

# (substrings, hospital type); first match wins
HOSPITAL_TYPE_RULES = (
    (("üniversite", "university"), "general & research hospital"),
    (("devlet", "state"), "state hospital"),
    (("özel", "private"), "private hospital"),
    (("eğitim", "training", "araştırma", "research"), "training & research hospital"),
)
DEFAULT_HOSPITAL_TYPE = "general hospital"

# A doctor text query mentioning any of these is already pediatric
PEDIATRIC_QUERY_WORDS = ("çocuk", "pediatr", "bebek", "child", "baby")
PEDIATRIC_QUERY_PREFIX = "çocuk doktoru"
# Sent instead of a type-only nearby request when only pediatricians are wanted
PEDIATRIC_DOCTOR_QUERY = "çocuk doktoru pediatri"

CLOSED_WORDS = ("closed", "kapalı")

DAY_NAMES = (
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday",
)


def fold(text: str) -> Tuple[str, ...]:
    """
    Lower-case text both the default way and the Turkish way.

    str.lower() turns "TIP" into "tip" and "İ" into "i" + a combining
    dot, so "TIP MERKEZİ" would never match "tıp merkezi". The Turkish
    fold maps I -> ı and İ -> i first. Both forms are returned because
    English words ("HOSPITAL") need the default fold.
    """
    default = text.lower().replace("\u0307", "")
    turkish = text.replace("I", "ı").replace("İ", "i").lower()
    if turkish == default:
        return (default,)
    return (default, turkish)


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    forms = fold(text)
    return any(keyword in form for keyword in keywords for form in forms)


def classify(text: str, rules: Sequence, default: str) -> str:
    """Return the label of the first rule with a matching substring."""
    for keywords, label in rules:
        if contains_any(text, keywords):
            return label
    return default
