"""
Deterministic, network-free query understanding.

Used when the LLM classifier is unavailable or returns something unusable. Every
decision is a table lookup in declared order, so the same text always yields the
same SearchIntent.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from medifly.schemas import ActionItem, SearchFilters, SearchIntent

DOCTOR_WORDS = ("doctor", "specialist", "physician", "surgeon")
HOSPITAL_WORDS = ("hospital", "clinic", "medical center", "medical centre", "facility", "facilities")

# practitioner nouns such as "cardiologist", "psychiatrist", "pediatrician"
PRACTITIONER_RE = re.compile(r"\b[a-z]+(?:ologists?|iatrists?|icians?)\b")

# Scan order matters: first specialty with a matching keyword wins.
SPECIALTY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("cardiology", ("heart", "cardiac", "cardiology", "cardiologist", "cardiovascular")),
    ("oncology", ("cancer", "oncology", "oncologist", "tumor", "tumour", "chemotherapy")),
    ("neurology", ("brain", "neurology", "neurologist", "neurological", "stroke")),
    ("orthopedics", ("bone", "joint", "orthopedic", "orthopedics", "orthopaedic", "fracture", "spine")),
    ("pediatrics", ("child", "children", "pediatric", "pediatrics", "pediatrician", "baby", "infant")),
    ("obstetrics", ("pregnancy", "obstetric", "obstetrics", "gynecology", "gynecologist", "birth", "maternal")),
    ("dermatology", ("skin", "dermatology", "dermatologist", "acne", "rash")),
    ("ophthalmology", ("eye", "ophthalmology", "ophthalmologist", "vision", "cataract")),
    ("ent", ("ear", "nose", "throat", "ent", "hearing")),
    ("gastroenterology", ("stomach", "digestive", "gastro", "gastroenterology", "gastroenterologist", "intestinal")),
    ("urology", ("urinary", "bladder", "urology", "urologist", "prostate")),
    ("psychiatry", ("mental", "psychiatry", "psychiatrist", "depression", "anxiety")),
    ("endocrinology", ("diabetes", "thyroid", "hormone", "endocrine", "endocrinologist")),
    ("nephrology", ("kidney", "renal", "nephrology", "nephrologist", "dialysis")),
    ("pulmonology", ("lung", "respiratory", "breathing", "pulmonary", "pulmonologist")),
)

COUNTRIES = ("Malaysia", "Singapore", "Thailand", "Indonesia")
CITIES = ("Kuala Lumpur", "Singapore", "Bangkok", "Jakarta", "Penang", "Johor Bahru")

HALAL_WORDS = ("halal", "muslim")
EXPERIENCE_WORDS = ("experienced", "senior", "expert")
EXPERIENCED_MIN_YEARS = 10


@lru_cache(maxsize=None)
def _pattern(keyword: str) -> re.Pattern:
    # anchored at a word start only: "gastro" hits "gastrointestinal", "ent" misses "patient"
    body = r"\s+".join(re.escape(part) for part in keyword.lower().split())
    return re.compile(rf"\b{body}")


def has_keyword(text: str, keywords: Sequence[str]) -> bool:
    return any(_pattern(kw).search(text) for kw in keywords)


def first_match(text: str, names: Sequence[str]) -> Optional[str]:
    for name in names:
        if _pattern(name).search(text):
            return name
    return None


def detect_entity_type(text: str) -> str:
    wants_doctor = has_keyword(text, DOCTOR_WORDS) or bool(PRACTITIONER_RE.search(text))
    wants_hospital = has_keyword(text, HOSPITAL_WORDS)
    if wants_doctor and not wants_hospital:
        return "doctor"
    return "hospital"


def detect_specialty(text: str) -> Optional[str]:
    for specialty, keywords in SPECIALTY_KEYWORDS:
        if has_keyword(text, keywords):
            return specialty
    return None


def detect_filters(text: str) -> SearchFilters:
    filters: Dict[str, object] = {}
    specialty = detect_specialty(text)
    if specialty:
        filters["specialty"] = specialty
    country = first_match(text, COUNTRIES)
    if country:
        filters["country"] = country
    city = first_match(text, CITIES)
    if city:
        filters["city"] = city
    if has_keyword(text, HALAL_WORDS):
        filters["is_halal"] = True
    if has_keyword(text, EXPERIENCE_WORDS):
        filters["min_experience"] = EXPERIENCED_MIN_YEARS
    return SearchFilters(**filters)


def compose_response_text(entity_type: str, filters: SearchFilters) -> str:
    specialty, country = filters.specialty, filters.country
    if entity_type == "doctor":
        text = f"I'll help you find {specialty + ' specialists' if specialty else 'doctors'}"
        if country:
            text += f" in {country}"
        if filters.min_experience:
            text += " with extensive experience"
        if filters.is_halal:
            text += " at halal-certified facilities"
        return text + ". Let me search for the best options for you."

    text = f"I'll search for {'hospitals specializing in ' + specialty if specialty else 'hospitals'}"
    if country:
        text += f" in {country}"
    if filters.is_halal:
        text += " with halal-certified facilities"
    return text + ". Give me a moment to find the best matches."


def compose_actions(entity_type: str, filters: SearchFilters) -> List[ActionItem]:
    specialty, country = filters.specialty, filters.country
    subject = specialty or entity_type
    in_country = f" in {country}" if country else ""
    pivot = "doctor" if entity_type == "hospital" else "hospital"

    if specialty:
        noun = f"{specialty} specialists" if entity_type == "doctor" else f"{specialty} hospitals"
    else:
        noun = f"{entity_type}s"

    show_more = ActionItem(
        text=f"Show more {noun}{in_country}",
        entity_type=entity_type,
        query=f"{subject} {country or ''}".strip(),
        filters=filters.model_copy(),
    )
    cross = ActionItem(
        text="Find doctors at these hospitals" if entity_type == "hospital" else "View hospital affiliations",
        entity_type=pivot,
        query=specialty or "general",
        filters=SearchFilters(specialty=specialty, country=country),
    )
    browse = ActionItem(
        text=f"Explore other specialties{in_country}",
        entity_type="hospital",
        query=f"hospitals in {country}" if country else "all hospitals",
        filters=SearchFilters(country=country),
    )
    return [show_more, cross, browse]


class RuleBasedIntentClassifier:
    """Keyword-table classifier. Same input text, same SearchIntent."""

    def classify(
        self,
        text: str,
        previous_query: Optional[str] = None,
        previous_count: Optional[int] = None,
    ) -> SearchIntent:
        # output depends on `text` only
        lowered = (text or "").lower()
        entity_type = detect_entity_type(lowered)
        filters = detect_filters(lowered)
        return SearchIntent(
            response_text=compose_response_text(entity_type, filters),
            entity_type=entity_type,
            query_text=(text or "").strip() or entity_type,
            filters=filters,
            suggested_actions=compose_actions(entity_type, filters),
        )
