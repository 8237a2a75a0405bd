"""
Vector search dispatch: intent -> embedding -> entity-specific similarity function -> raw rows.
Rows are returned untouched; normalisation happens in services/normalizer.py.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from medifly.errors import EmbeddingFailure, IndexQueryFailure, InvalidRequest
from medifly.ports import EmbedderPort, VectorIndexPort
from medifly.schemas import ENTITY_TYPES, SearchFilters, SearchIntent

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.5
DEFAULT_LIMIT = 12

INVALID_TYPE_MESSAGE = 'Invalid search type. Must be "hospital" or "doctor"'


def build_index_params(
    entity_type: str,
    embedding: List[float],
    filters: SearchFilters,
    threshold: float,
    limit: int,
) -> Dict[str, Any]:
    """Translate a FilterSet into the index's native arguments. None means "no constraint"."""
    params: Dict[str, Any] = {
        "query_embedding": embedding,
        "match_threshold": threshold,
        "match_count": limit,
        "filter_specialty": filters.specialty,
        "filter_country": filters.country,
        "filter_city": filters.city,
        "filter_min_rating": filters.min_rating,
    }
    if entity_type == "hospital":
        # only True constrains; False is sent as "no constraint"
        params["filter_is_halal"] = True if filters.is_halal else None
    else:
        params["filter_min_experience"] = filters.min_experience
    return params


class VectorSearchDispatcher:
    def __init__(
        self,
        embedder: EmbedderPort,
        index: VectorIndexPort,
        default_threshold: float = DEFAULT_THRESHOLD,
        default_limit: int = DEFAULT_LIMIT,
    ):
        self.embedder = embedder
        self.index = index
        self.default_threshold = default_threshold
        self.default_limit = default_limit

    def search(
        self,
        entity_type: str,
        query_text: str,
        filters: Optional[SearchFilters] = None,
    ) -> List[Dict[str, Any]]:
        if entity_type not in ENTITY_TYPES:
            raise InvalidRequest(INVALID_TYPE_MESSAGE)
        filters = filters or SearchFilters()

        # 1) embed
        try:
            embedding = self.embedder.embed_query(query_text)
        except EmbeddingFailure:
            raise
        except Exception as e:
            logger.error("embedding error: %r", e)
            raise EmbeddingFailure("Failed to generate embedding for search query", detail=str(e)) from e
        if not embedding:
            raise EmbeddingFailure("Failed to generate embedding for search query", detail="empty embedding")

        # 2) similarity function for the entity type
        threshold = filters.threshold if filters.threshold is not None else self.default_threshold
        limit = filters.limit if filters.limit is not None else self.default_limit
        params = build_index_params(entity_type, embedding, filters, threshold, limit)

        label = entity_type.capitalize()
        try:
            if entity_type == "hospital":
                rows = self.index.search_hospitals(params)
            else:
                rows = self.index.search_doctors(params)
        except Exception as e:
            logger.error("%s search error: %r", label, e)
            raise IndexQueryFailure(f"{label} search failed: {e}", detail=str(e)) from e

        rows = list(rows or [])
        logger.info("%s search returned %d rows (threshold=%s, limit=%s)", entity_type, len(rows), threshold, limit)
        return rows

    def search_intent(self, intent: SearchIntent) -> List[Dict[str, Any]]:
        return self.search(intent.entity_type, intent.query_text, intent.filters)
