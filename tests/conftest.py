from typing import Any, Dict, List

import pytest

from medifly.errors import EmbeddingFailure
from medifly.services.dispatcher import VectorSearchDispatcher


class StubEmbedder:
    def __init__(self, vector=None, fail: Exception | None = None):
        self.vector = vector if vector is not None else [0.1, 0.2, 0.3]
        self.fail = fail
        self.calls: List[str] = []

    def embed_texts(self, texts):
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.fail is not None:
            raise self.fail
        return list(self.vector)


class StubIndex:
    def __init__(self, hospitals=None, doctors=None, fail: Exception | None = None):
        self.hospitals = hospitals or []
        self.doctors = doctors or []
        self.fail = fail
        self.calls: List[tuple] = []

    def search_hospitals(self, params: Dict[str, Any]):
        self.calls.append(("hospital", params))
        if self.fail is not None:
            raise self.fail
        return self.hospitals

    def search_doctors(self, params: Dict[str, Any]):
        self.calls.append(("doctor", params))
        if self.fail is not None:
            raise self.fail
        return self.doctors


class StubLLM:
    def __init__(self, reply: str = "", fail: Exception | None = None):
        self.reply = reply
        self.fail = fail
        self.prompts: List[str] = []

    def chat(self, system: str, user: str, temperature: float, max_tokens: int):
        self.prompts.append(user)
        if self.fail is not None:
            raise self.fail
        return self.reply, {"prompt_tokens": 10, "completion_tokens": 20}


HOSPITAL_ROW = {
    "id": "h-1",
    "hospital_name": "Heart Centre KL",
    "description": "Tertiary cardiac centre",
    "city": "Kuala Lumpur",
    "country": "Malaysia",
    "website": "https://heart.example",
    "contact_number": "+60 3 1234 5678",
    "rating": "4.6",
    "is_halal": True,
    "address": "1 Jalan Jantung",
    "state_province": "Wilayah Persekutuan",
    "doctor_count": "14",
    "facilities": [{"id": "f-1", "name": "ICU", "code": "ICU", "category": "critical", "icon": "bed"}],
    "services": [
        {"id": "s-1", "name": "Angioplasty", "category": "Cardiology", "base_price": 100, "is_available": True},
        {"id": "s-2", "name": "Chemo", "category": "Oncology", "base_price": None, "is_available": True},
        {"id": "s-3", "name": "Bypass", "category": "Cardiology", "base_price": 50, "is_available": False},
    ],
    "similarity": 0.873,
}

DOCTOR_ROW = {
    "id": "d-1",
    "name": "Dr. Aisha Rahman",
    "bio": "Interventional cardiologist",
    "experience_years": 15,
    "rating": 4.8,
    "phone_number": "+60 12 345 6789",
    "email_address": "aisha@example.com",
    "image_url": None,
    "license_number": "MMC-1234",
    "certifications": [{"id": "c-1", "certification_name": "FACC", "issuing_organization": "ACC", "is_verified": True}],
    "languages": [{"id": "l-1", "name": "English", "code": "en", "proficiency_level": "native", "is_primary": True}],
    "services": [
        {"id": "ds-1", "name": "Echocardiography", "category": "Cardiology", "is_primary": False},
        {"id": "ds-2", "name": "Interventional Cardiology", "category": "Cardiology", "is_primary": True},
    ],
    "hospitals": [
        {"id": "dh-1", "hospital_name": "Penang General", "city": "Penang", "country": "Malaysia", "is_primary": False},
        {"id": "dh-2", "hospital_name": "Heart Centre KL", "city": "Kuala Lumpur", "country": "Malaysia", "is_primary": True},
    ],
    "similarity": 0.912,
}


@pytest.fixture()
def hospital_row():
    return {**HOSPITAL_ROW, "services": [dict(s) for s in HOSPITAL_ROW["services"]]}


@pytest.fixture()
def doctor_row():
    return {**DOCTOR_ROW, "hospitals": [dict(h) for h in DOCTOR_ROW["hospitals"]]}


@pytest.fixture()
def embedder():
    return StubEmbedder()


@pytest.fixture()
def index(hospital_row, doctor_row):
    second_doctor = {
        "id": "d-2",
        "name": "Dr. Lim",
        "experience_years": None,
        "services": None,
        "hospitals": "not-a-list",
        "similarity": 0.61,
    }
    return StubIndex(hospitals=[hospital_row], doctors=[doctor_row, second_doctor])


@pytest.fixture()
def dispatcher(embedder, index):
    return VectorSearchDispatcher(embedder, index)


@pytest.fixture()
def failing_embedder():
    return StubEmbedder(fail=EmbeddingFailure("Failed to generate embedding for search query", detail="quota"))
