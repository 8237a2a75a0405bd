# medifly/schemas.py
# Purpose: Pydantic models for the search core and the HTTP contract.
# - Request side: SearchFilters, SearchRequest, AssistRequest
# - Query understanding: ActionItem, SearchIntent
# - Index boundary: RawHospitalMatch / RawDoctorMatch (lenient, coerce-on-receipt)
# - Response side: HospitalResult / DoctorResult, SearchResponse, AssistResponse

from __future__ import annotations

import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

EntityType = Literal["hospital", "doctor"]
ENTITY_TYPES = ("hospital", "doctor")


# ---------- coercion helpers (shared with the normalizer) ----------

def as_list(value: Any) -> List[Dict[str, Any]]:
    """JSONB sub-collections arrive as lists, JSON strings, null or junk; keep only dict items."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def as_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:  # NaN
        return default
    return number


def as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    number = as_float(value)
    if number is None or number in (float("inf"), float("-inf")):
        return default
    return int(number)


def as_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("true", "t", "yes", "y", "1"):
            return True
        if v in ("false", "f", "no", "n", "0", ""):
            return False
    return None


def as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return None
    return str(value)


# ---------- filters / intent ----------

class SearchFilters(BaseModel):
    """Structured constraints. Absent fields mean "no constraint" and are omitted on the wire."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    specialty: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    min_experience: Optional[int] = Field(default=None, ge=0, alias="minExperience")
    is_halal: Optional[bool] = Field(default=None, alias="isHalal")
    min_rating: Optional[float] = Field(default=None, ge=1, le=5, alias="minRating")
    # request knobs, not part of the intent vocabulary
    threshold: Optional[float] = Field(default=None, gt=0, le=1)
    limit: Optional[int] = Field(default=None, ge=1, le=100)

    @field_validator("specialty", "country", "city", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ActionItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1)
    entity_type: EntityType = Field(..., alias="type", validation_alias=AliasChoices("type", "searchType", "entityType"))
    query: str = Field(..., min_length=1)
    filters: SearchFilters = Field(default_factory=SearchFilters)


class SearchIntent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response_text: str = Field(..., alias="responseText")
    entity_type: EntityType = Field(..., alias="searchType", validation_alias=AliasChoices("searchType", "entityType"))
    query_text: str = Field(..., min_length=1, alias="searchQuery", validation_alias=AliasChoices("searchQuery", "queryText"))
    filters: SearchFilters = Field(default_factory=SearchFilters)
    # exactly three follow-ups, whichever strategy produced the intent
    suggested_actions: List[ActionItem] = Field(
        ...,
        min_length=3,
        max_length=3,
        alias="actions",
        validation_alias=AliasChoices("actions", "suggestedActions"),
    )

    @field_validator("filters", mode="before")
    @classmethod
    def _null_filters(cls, v: Any) -> Any:
        return {} if v is None else v


# ---------- raw index rows ----------

class _RawMatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    similarity: float = 0.0

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str:
        return as_text(v) or ""

    @field_validator("similarity", mode="before")
    @classmethod
    def _similarity(cls, v: Any) -> float:
        return as_float(v, 0.0)


class RawHospitalMatch(_RawMatch):
    """Row from search_hospitals_vector."""

    hospital_name: str = ""
    description: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    contact_number: Optional[str] = None
    address: Optional[str] = None
    state_province: Optional[str] = None
    rating: float = 0.0
    is_halal: Optional[bool] = None
    doctor_count: int = 0
    facilities: List[Dict[str, Any]] = Field(default_factory=list)
    services: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator(
        "description", "city", "country", "website", "contact_number", "address", "state_province",
        mode="before",
    )
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return as_text(v)

    @field_validator("hospital_name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return as_text(v) or ""

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v: Any) -> float:
        return as_float(v, 0.0)

    @field_validator("doctor_count", mode="before")
    @classmethod
    def _doctor_count(cls, v: Any) -> int:
        return as_int(v, 0)

    @field_validator("is_halal", mode="before")
    @classmethod
    def _halal(cls, v: Any) -> Optional[bool]:
        return as_bool(v)

    @field_validator("facilities", "services", mode="before")
    @classmethod
    def _nested(cls, v: Any) -> List[Dict[str, Any]]:
        return as_list(v)


class RawDoctorMatch(_RawMatch):
    """Row from search_doctors_vector."""

    name: str = ""
    bio: Optional[str] = None
    experience_years: int = 0
    rating: float = 0.0
    phone_number: Optional[str] = None
    email_address: Optional[str] = None
    image_url: Optional[str] = None
    license_number: Optional[str] = None
    certifications: List[Dict[str, Any]] = Field(default_factory=list)
    languages: List[Dict[str, Any]] = Field(default_factory=list)
    services: List[Dict[str, Any]] = Field(default_factory=list)
    hospitals: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("bio", "phone_number", "email_address", "image_url", "license_number", mode="before")
    @classmethod
    def _text(cls, v: Any) -> Optional[str]:
        return as_text(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return as_text(v) or ""

    @field_validator("experience_years", mode="before")
    @classmethod
    def _years(cls, v: Any) -> int:
        return max(0, as_int(v, 0))

    @field_validator("rating", mode="before")
    @classmethod
    def _rating(cls, v: Any) -> float:
        return as_float(v, 0.0)

    @field_validator("certifications", "languages", "services", "hospitals", mode="before")
    @classmethod
    def _nested(cls, v: Any) -> List[Dict[str, Any]]:
        return as_list(v)


# ---------- UI-ready results ----------

class _Out(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FacilityInfo(_Out):
    id: Optional[str] = None
    name: Optional[str] = None
    code: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None


class HospitalServiceInfo(_Out):
    id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = None
    is_available: Optional[bool] = None


class CertificationInfo(_Out):
    id: Optional[str] = None
    certification_name: Optional[str] = None
    issuing_organization: Optional[str] = None
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    is_verified: Optional[bool] = None


class LanguageInfo(_Out):
    id: Optional[str] = None
    name: Optional[str] = None
    code: Optional[str] = None
    proficiency_level: Optional[str] = None
    is_primary: Optional[bool] = None


class DoctorServiceInfo(_Out):
    id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_primary: Optional[bool] = None
    proficiency_level: Optional[str] = None
    years_experience: Optional[int] = None


class DoctorHospitalInfo(_Out):
    id: Optional[str] = None
    hospital_name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_primary: Optional[bool] = None
    department: Optional[str] = None
    position: Optional[str] = None


class HospitalResult(_Out):
    id: str
    name: str
    location: str
    city: str = ""
    country: str = ""
    specialties: List[str] = Field(default_factory=list)
    more_specialties: int = Field(0, alias="moreSpecialties")
    doctors_available: int = Field(0, alias="doctorsAvailable")
    price_range: str = Field(..., alias="priceRange")
    type: Literal["hospital"] = "hospital"
    rating: float = 0.0
    website: Optional[str] = None
    phone: Optional[str] = None
    is_halal: Optional[bool] = Field(None, alias="isHalal")
    facilities: List[FacilityInfo] = Field(default_factory=list)
    services: List[HospitalServiceInfo] = Field(default_factory=list)
    similarity: int = Field(0, ge=0, le=100)
    description: Optional[str] = None
    address: Optional[str] = None
    state_province: Optional[str] = Field(None, alias="stateProvince")


class DoctorResult(_Out):
    id: str
    name: str
    specialty: str
    hospital: str
    location: str
    experience: str
    experience_years: int = Field(0, ge=0, alias="experienceYears")
    available: bool = True
    type: Literal["doctor"] = "doctor"
    rating: float = 0.0
    bio: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    license_number: Optional[str] = Field(None, alias="licenseNumber")
    certifications: List[CertificationInfo] = Field(default_factory=list)
    languages: List[LanguageInfo] = Field(default_factory=list)
    services: List[DoctorServiceInfo] = Field(default_factory=list)
    hospitals: List[DoctorHospitalInfo] = Field(default_factory=list)
    similarity: int = Field(0, ge=0, le=100)
    phone: Optional[str] = None
    email: Optional[str] = None


SearchResult = Annotated[Union[HospitalResult, DoctorResult], Field(discriminator="type")]


# ---------- HTTP contract ----------

class SearchRequest(BaseModel):
    # query/type are checked by the service so the 400 messages stay exact
    model_config = ConfigDict(populate_by_name=True)

    query: Optional[Any] = None
    entity_type: Optional[Any] = Field(None, alias="type")
    filters: Optional[SearchFilters] = None


class SearchResponse(BaseModel):
    success: bool = True
    results: List[SearchResult]
    count: int


class AssistRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, validation_alias=AliasChoices("message", "query"))
    previous_query: Optional[str] = Field(None, alias="previousQuery")
    previous_results: Optional[List[Dict[str, Any]]] = Field(None, alias="previousResults")


class AssistResponse(BaseModel):
    intent: SearchIntent
    results: List[SearchResult]
    count: int
