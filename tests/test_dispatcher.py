import pytest

from conftest import StubEmbedder, StubIndex
from medifly.errors import EmbeddingFailure, IndexQueryFailure, InvalidRequest
from medifly.schemas import SearchFilters
from medifly.services.dispatcher import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    INVALID_TYPE_MESSAGE,
    VectorSearchDispatcher,
)
from medifly.services.intent_rules import RuleBasedIntentClassifier


def test_hospital_params_use_defaults(dispatcher, embedder, index):
    rows = dispatcher.search("hospital", "heart surgery", SearchFilters(country="Malaysia", isHalal=True))

    assert [r["id"] for r in rows] == ["h-1"]
    assert embedder.calls == ["heart surgery"]
    ((kind, params),) = index.calls
    assert kind == "hospital"
    assert params == {
        "query_embedding": [0.1, 0.2, 0.3],
        "match_threshold": DEFAULT_THRESHOLD,
        "match_count": DEFAULT_LIMIT,
        "filter_specialty": None,
        "filter_country": "Malaysia",
        "filter_city": None,
        "filter_min_rating": None,
        "filter_is_halal": True,
    }


def test_doctor_params_carry_experience_and_overrides(dispatcher, index):
    filters = SearchFilters(specialty="cardiology", minExperience=0, minRating=4, threshold=0.7, limit=5)
    rows = dispatcher.search("doctor", "cardiologist", filters)

    assert len(rows) == 2
    ((kind, params),) = index.calls
    assert kind == "doctor"
    assert params["filter_min_experience"] == 0
    assert params["filter_min_rating"] == 4
    assert params["match_threshold"] == 0.7
    assert params["match_count"] == 5
    assert "filter_is_halal" not in params


def test_halal_false_is_no_constraint(dispatcher, index):
    dispatcher.search("hospital", "clinic", SearchFilters(isHalal=False))
    assert index.calls[0][1]["filter_is_halal"] is None


@pytest.mark.parametrize("bad_type", ["nurse", "", "Hospital", None])
def test_invalid_type_rejected_before_embedding(dispatcher, embedder, index, bad_type):
    with pytest.raises(InvalidRequest) as exc:
        dispatcher.search(bad_type, "anything")
    assert exc.value.message == INVALID_TYPE_MESSAGE
    assert embedder.calls == []
    assert index.calls == []


def test_embedding_failure_stops_search(failing_embedder, index):
    dispatcher = VectorSearchDispatcher(failing_embedder, index)
    with pytest.raises(EmbeddingFailure) as exc:
        dispatcher.search("doctor", "cardiologist")
    assert exc.value.message == "Failed to generate embedding for search query"
    assert index.calls == []


@pytest.mark.parametrize("embedder", [StubEmbedder(fail=ConnectionError("reset")), StubEmbedder(vector=[])])
def test_unexpected_embedder_errors_are_wrapped(embedder, index):
    dispatcher = VectorSearchDispatcher(embedder, index)
    with pytest.raises(EmbeddingFailure):
        dispatcher.search("hospital", "heart")
    assert index.calls == []


def test_index_failure_names_entity_type(embedder):
    dispatcher = VectorSearchDispatcher(embedder, StubIndex(fail=RuntimeError("function does not exist")))
    with pytest.raises(IndexQueryFailure) as exc:
        dispatcher.search("hospital", "heart")
    assert exc.value.message == "Hospital search failed: function does not exist"

    with pytest.raises(IndexQueryFailure) as exc:
        dispatcher.search("doctor", "heart")
    assert exc.value.message.startswith("Doctor search failed:")


def test_zero_rows_is_not_an_error(embedder):
    dispatcher = VectorSearchDispatcher(embedder, StubIndex(hospitals=None))
    assert dispatcher.search("hospital", "rare disease") == []


def test_configured_defaults_apply(embedder, index):
    dispatcher = VectorSearchDispatcher(embedder, index, default_threshold=0.3, default_limit=20)
    dispatcher.search("doctor", "heart")
    params = index.calls[0][1]
    assert (params["match_threshold"], params["match_count"]) == (0.3, 20)


def test_search_intent_routes_by_intent(dispatcher, embedder, index):
    intent = RuleBasedIntentClassifier().classify("experienced heart doctors in Malaysia")
    rows = dispatcher.search_intent(intent)

    assert len(rows) == 2
    assert embedder.calls == ["experienced heart doctors in Malaysia"]
    kind, params = index.calls[0]
    assert kind == "doctor"
    assert params["filter_specialty"] == "cardiology"
    assert params["filter_country"] == "Malaysia"
    assert params["filter_min_experience"] == 10
