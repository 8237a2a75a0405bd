import pytest
from fastapi.testclient import TestClient

from conftest import StubEmbedder, StubIndex
from medifly.main import app
from medifly.routers import deps
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.intent import QueryUnderstanding


@pytest.fixture()
def client(dispatcher):
    app.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[deps.get_understanding] = lambda: QueryUnderstanding()
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def use_dispatcher(dispatcher):
    app.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher


def test_ping():
    r = TestClient(app).get("/api/ping")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_health_reports_runtime(tmp_path, monkeypatch):
    cfg = tmp_path / "runtime.yaml"
    cfg.write_text("embedder:\n  adapter: bge\nvector_index:\n  adapter: faiss\nllm:\n  adapter: none\n")
    monkeypatch.setenv("MEDIFLY_RUNTIME", str(cfg))

    r = TestClient(app).get("/api/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "embedder": "bge", "index": "faiss", "llm": "none"}


@pytest.mark.parametrize("body", [{"type": "doctor"}, {"query": "heart"}, {"query": "", "type": "doctor"}, {}])
def test_missing_parameters(client, body):
    r = client.post("/api/search", json=body)
    assert r.status_code == 400
    assert r.json() == {"message": "Missing required parameters: query and type"}


def test_invalid_type_never_embeds(client, embedder, index):
    r = client.post("/api/search", json={"query": "heart", "type": "nurse"})
    assert r.status_code == 400
    assert r.json() == {"message": 'Invalid search type. Must be "hospital" or "doctor"'}
    assert embedder.calls == []
    assert index.calls == []


@pytest.mark.parametrize("bad_type", [5, ["doctor"], {"kind": "doctor"}, True])
def test_non_string_type_is_invalid_type(client, embedder, bad_type):
    r = client.post("/api/search", json={"query": "heart", "type": bad_type})
    assert r.status_code == 400
    assert r.json() == {"message": 'Invalid search type. Must be "hospital" or "doctor"'}
    assert embedder.calls == []


def test_non_string_query_is_missing_parameters(client, embedder):
    r = client.post("/api/search", json={"query": 42, "type": "doctor"})
    assert r.status_code == 400
    assert r.json() == {"message": "Missing required parameters: query and type"}
    assert embedder.calls == []


def test_experienced_heart_doctors_in_malaysia(client, index):
    r = client.post(
        "/api/search",
        json={
            "query": "experienced heart doctors in Malaysia",
            "type": "doctor",
            "filters": {"specialty": "cardiology", "country": "Malaysia", "minExperience": 10},
        },
    )
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["count"] == 2 == len(body["results"])

    first, second = body["results"]
    assert first["type"] == "doctor"
    assert first["specialty"] == "Interventional Cardiology"
    assert first["hospital"] == "Heart Centre KL"
    assert first["location"] == "Kuala Lumpur, Malaysia"
    assert first["experience"] == "15 Years"
    assert first["similarity"] == 91
    assert second["hospital"] == "Independent Practice"
    assert second["experienceYears"] == 0
    for result in body["results"]:
        assert isinstance(result["experienceYears"], int) and result["experienceYears"] >= 0
        assert 0 <= result["similarity"] <= 100

    params = index.calls[0][1]
    assert params["filter_min_experience"] == 10
    assert params["filter_country"] == "Malaysia"


def test_hospital_search_wire_shape(client):
    r = client.post("/api/search", json={"query": "heart surgery", "type": "hospital"})
    assert r.status_code == 200
    (hospital,) = r.json()["results"]
    assert hospital["priceRange"] == "Starting from $50"
    assert hospital["doctorsAvailable"] == 14
    assert hospital["specialties"] == ["Cardiology", "Oncology"]
    assert hospital["isHalal"] is True


def test_no_matches(client, embedder):
    use_dispatcher(VectorSearchDispatcher(embedder, StubIndex()))
    r = client.post("/api/search", json={"query": "rare disease", "type": "hospital"})
    assert r.status_code == 200
    assert r.json() == {"success": True, "results": [], "count": 0}


def test_embedding_failure_is_500(client, failing_embedder, index):
    use_dispatcher(VectorSearchDispatcher(failing_embedder, index))
    r = client.post("/api/search", json={"query": "heart", "type": "doctor"})
    assert r.status_code == 500
    assert r.json() == {
        "message": "Internal server error",
        "error": "Failed to generate embedding for search query",
    }
    assert index.calls == []


def test_index_failure_is_500(client):
    use_dispatcher(VectorSearchDispatcher(StubEmbedder(), StubIndex(fail=RuntimeError("timeout"))))
    r = client.post("/api/search", json={"query": "heart", "type": "hospital"})
    assert r.status_code == 500
    assert r.json()["message"] == "Internal server error"
    assert r.json()["error"] == "Hospital search failed: timeout"


def test_assist_returns_intent_and_results(client, index):
    r = client.post("/api/assist", json={"message": "Find me a cardiologist in Singapore"})
    assert r.status_code == 200
    body = r.json()

    assert body["intent"]["searchType"] == "doctor"
    assert body["intent"]["filters"] == {"specialty": "cardiology", "country": "Singapore", "city": "Singapore"}
    assert len(body["intent"]["actions"]) == 3
    assert body["count"] == 2
    assert index.calls[0][0] == "doctor"


def test_assist_rejects_blank_message(client):
    r = client.post("/api/assist", json={"message": "   "})
    assert r.status_code == 400
