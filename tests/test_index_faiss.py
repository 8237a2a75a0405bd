import pytest

np = pytest.importorskip("numpy")
pytest.importorskip("faiss")

from medifly.adapters.index_faiss import (  # noqa: E402
    FaissVectorIndex,
    build_snapshot,
    doctor_document,
    hospital_document,
)


HOSPITALS = [
    {"id": "h-1", "hospital_name": "KL Heart", "country": "Malaysia", "city": "Kuala Lumpur", "is_halal": True,
     "rating": 4.5, "services": [{"name": "Angioplasty", "category": "Cardiology"}]},
    {"id": "h-2", "hospital_name": "Bangkok Skin", "country": "Thailand", "city": "Bangkok", "is_halal": False,
     "rating": 4.9, "services": [{"name": "Laser", "category": "Dermatology"}]},
    {"id": "h-3", "hospital_name": "Bumrungrad Cardiac", "country": "Thailand", "city": "Bangkok", "is_halal": True,
     "rating": 3.8, "services": [{"name": "Bypass", "category": "Cardiology"}]},
]
HOSPITAL_VECS = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.9, 0.1, 0.0]]

DOCTORS = [
    {"id": "d-1", "name": "Dr. A", "experience_years": 20, "rating": 4.7,
     "services": [{"name": "Interventional Cardiology", "is_primary": True}],
     "hospitals": [{"hospital_name": "KL Heart", "city": "Kuala Lumpur", "country": "Malaysia"}]},
    {"id": "d-2", "name": "Dr. B", "experience_years": 4, "rating": 4.1,
     "services": [{"name": "Cardiology"}],
     "hospitals": [{"hospital_name": "Bumrungrad Cardiac", "city": "Bangkok", "country": "Thailand"}]},
]
DOCTOR_VECS = [[1.0, 0.0, 0.0], [0.8, 0.2, 0.0]]


@pytest.fixture()
def faiss_index(tmp_path):
    build_snapshot(HOSPITALS, np.array(HOSPITAL_VECS), tmp_path, "hospitals")
    build_snapshot(DOCTORS, np.array(DOCTOR_VECS), tmp_path, "doctors")
    return FaissVectorIndex(tmp_path)


def params(**overrides):
    base = {
        "query_embedding": [1.0, 0.0, 0.0],
        "match_threshold": 0.5,
        "match_count": 12,
        "filter_specialty": None,
        "filter_country": None,
        "filter_city": None,
        "filter_min_rating": None,
    }
    base.update(overrides)
    return base


def test_threshold_and_ranking(faiss_index):
    rows = faiss_index.search_hospitals(params(filter_is_halal=None))
    assert [r["id"] for r in rows] == ["h-1", "h-3"]
    assert rows[0]["similarity"] == pytest.approx(1.0, abs=1e-5)
    assert 0.5 < rows[1]["similarity"] < 1.0


def test_hospital_filters(faiss_index):
    assert [r["id"] for r in faiss_index.search_hospitals(params(filter_country="thailand", filter_is_halal=None))] == ["h-3"]
    assert [r["id"] for r in faiss_index.search_hospitals(params(filter_min_rating=4.0, filter_is_halal=None))] == ["h-1"]
    assert faiss_index.search_hospitals(params(filter_specialty="dermatology", filter_is_halal=None)) == []
    low = params(match_threshold=0.01, filter_is_halal=True)
    assert [r["id"] for r in faiss_index.search_hospitals(low)] == ["h-1", "h-3"]


def test_match_count_caps_results(faiss_index):
    rows = faiss_index.search_hospitals(params(match_threshold=0.0, match_count=1, filter_is_halal=None))
    assert [r["id"] for r in rows] == ["h-1"]


def test_doctor_filters_use_affiliated_hospitals(faiss_index):
    by_country = faiss_index.search_doctors(params(filter_country="Thailand", filter_min_experience=None))
    assert [r["id"] for r in by_country] == ["d-2"]

    seniors = faiss_index.search_doctors(params(filter_specialty="cardiology", filter_min_experience=10))
    assert [r["id"] for r in seniors] == ["d-1"]


def test_missing_snapshot_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        FaissVectorIndex(tmp_path / "nowhere").search_doctors(params())


def test_build_snapshot_rejects_mismatched_vectors(tmp_path):
    with pytest.raises(ValueError):
        build_snapshot(HOSPITALS, np.zeros((2, 3)), tmp_path, "hospitals")


def test_documents_mention_searchable_fields():
    h = hospital_document(HOSPITALS[0])
    assert "KL Heart" in h and "Cardiology" in h and "Halal: Yes" in h
    d = doctor_document(DOCTORS[1])
    assert "Bumrungrad Cardiac" in d and "Bangkok, Thailand" in d and "4 years" in d
