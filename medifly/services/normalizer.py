"""
Turn raw vector-index rows into the flat HospitalResult / DoctorResult shapes the UI renders.

Both transforms are total: malformed nested data degrades to empty lists, literal
defaults or zero instead of raising.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from medifly.schemas import (
    CertificationInfo,
    DoctorHospitalInfo,
    DoctorResult,
    DoctorServiceInfo,
    FacilityInfo,
    HospitalResult,
    HospitalServiceInfo,
    LanguageInfo,
    RawDoctorMatch,
    RawHospitalMatch,
    as_bool,
    as_float,
    as_int,
    as_text,
)

logger = logging.getLogger(__name__)

CONTACT_FOR_PRICING = "Contact for pricing"
DEFAULT_SPECIALTY = "General Practice"
DEFAULT_HOSPITAL = "Independent Practice"
DEFAULT_LOCATION = "Multiple Locations"
SHOWN_SPECIALTIES = 2


def similarity_percent(similarity: Any) -> int:
    """0..1 score -> integer percentage, half rounds up, clamped to 0..100."""
    value = as_float(similarity, 0.0)
    if not math.isfinite(value):
        return 0
    return max(0, min(100, int(math.floor(value * 100 + 0.5))))


def join_location(*parts: Optional[str]) -> str:
    return ", ".join(p.strip() for p in parts if p and p.strip())


def distinct_categories(services: Iterable[Dict[str, Any]]) -> List[str]:
    seen: List[str] = []
    for service in services:
        category = (as_text(service.get("category")) or "").strip()
        if category and category not in seen:
            seen.append(category)
    return seen


def price_range(services: Iterable[Dict[str, Any]]) -> str:
    prices = []
    for service in services:
        price = service.get("base_price")
        if price is None:
            price = service.get("price")
        value = as_float(price)
        if value is not None and math.isfinite(value) and value > 0:
            prices.append(value)
    if not prices:
        return CONTACT_FOR_PRICING
    amount = f"{min(prices):,.3f}".rstrip("0").rstrip(".")
    return f"Starting from ${amount}"


def pick_primary(items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for item in items:
        if as_bool(item.get("is_primary")):
            return item
    return items[0] if items else None


def transform_hospital_result(row: Union[RawHospitalMatch, Dict[str, Any]]) -> HospitalResult:
    item = row if isinstance(row, RawHospitalMatch) else RawHospitalMatch.model_validate(row)
    services, facilities = item.services, item.facilities

    categories = distinct_categories(services)

    return HospitalResult(
        id=item.id,
        name=item.hospital_name,
        location=join_location(item.city, item.country),
        city=item.city or "",
        country=item.country or "",
        specialties=categories[:SHOWN_SPECIALTIES],
        more_specialties=max(0, len(categories) - SHOWN_SPECIALTIES),
        doctors_available=max(0, item.doctor_count),
        price_range=price_range(services),
        rating=item.rating,
        website=item.website,
        phone=item.contact_number,
        is_halal=item.is_halal,
        facilities=[
            FacilityInfo(
                id=as_text(f.get("id")),
                name=as_text(f.get("name")),
                code=as_text(f.get("code")),
                category=as_text(f.get("category")),
                icon=as_text(f.get("icon")),
            )
            for f in facilities
        ],
        services=[
            HospitalServiceInfo(
                id=as_text(s.get("id")),
                name=as_text(s.get("name")),
                category=as_text(s.get("category")),
                description=as_text(s.get("description")),
                base_price=as_float(s.get("base_price")),
                is_available=as_bool(s.get("is_available")),
            )
            for s in services
        ],
        similarity=similarity_percent(item.similarity),
        description=item.description,
        address=item.address,
        state_province=item.state_province,
    )


def transform_doctor_result(row: Union[RawDoctorMatch, Dict[str, Any]]) -> DoctorResult:
    item = row if isinstance(row, RawDoctorMatch) else RawDoctorMatch.model_validate(row)
    hospitals, services = item.hospitals, item.services

    primary_hospital = pick_primary(hospitals)
    primary_service = pick_primary(services)

    specialty = DEFAULT_SPECIALTY
    if primary_service:
        specialty = as_text(primary_service.get("name")) or as_text(primary_service.get("category")) or DEFAULT_SPECIALTY

    hospital = DEFAULT_HOSPITAL
    location = DEFAULT_LOCATION
    if primary_hospital:
        hospital = as_text(primary_hospital.get("hospital_name")) or DEFAULT_HOSPITAL
        location = join_location(
            as_text(primary_hospital.get("city")),
            as_text(primary_hospital.get("country")),
        ) or DEFAULT_LOCATION

    years = item.experience_years

    return DoctorResult(
        id=item.id,
        name=item.name,
        specialty=specialty,
        hospital=hospital,
        location=location,
        experience=f"{years} Years",
        experience_years=years,
        available=True,
        rating=item.rating,
        bio=item.bio,
        image_url=item.image_url,
        license_number=item.license_number,
        certifications=[
            CertificationInfo(
                id=as_text(c.get("id")),
                certification_name=as_text(c.get("certification_name")),
                issuing_organization=as_text(c.get("issuing_organization")),
                issue_date=as_text(c.get("issue_date")),
                expiry_date=as_text(c.get("expiry_date")),
                is_verified=as_bool(c.get("is_verified")),
            )
            for c in item.certifications
        ],
        languages=[
            LanguageInfo(
                id=as_text(lang.get("id")),
                name=as_text(lang.get("name")),
                code=as_text(lang.get("code")),
                proficiency_level=as_text(lang.get("proficiency_level")),
                is_primary=as_bool(lang.get("is_primary")),
            )
            for lang in item.languages
        ],
        services=[
            DoctorServiceInfo(
                id=as_text(s.get("id")),
                name=as_text(s.get("name")),
                category=as_text(s.get("category")),
                description=as_text(s.get("description")),
                is_primary=as_bool(s.get("is_primary")),
                proficiency_level=as_text(s.get("proficiency_level")),
                years_experience=as_int(s.get("years_experience")),
            )
            for s in services
        ],
        hospitals=[
            DoctorHospitalInfo(
                id=as_text(h.get("id")),
                hospital_name=as_text(h.get("hospital_name")),
                city=as_text(h.get("city")),
                country=as_text(h.get("country")),
                is_primary=as_bool(h.get("is_primary")),
                department=as_text(h.get("department")),
                position=as_text(h.get("position")),
            )
            for h in hospitals
        ],
        similarity=similarity_percent(item.similarity),
        phone=item.phone_number,
        email=item.email_address,
    )


def normalize_results(entity_type: str, rows: Iterable[Any]) -> List[Union[HospitalResult, DoctorResult]]:
    """Normalise every row of one entity type; rows that are not even mappings are dropped."""
    transform = transform_hospital_result if entity_type == "hospital" else transform_doctor_result
    results = []
    for row in rows or []:
        try:
            results.append(transform(row))
        except ValidationError as e:
            logger.warning("dropping unreadable %s row: %s", entity_type, e.errors()[0].get("msg"))
    return results
