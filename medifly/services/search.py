# medifly/services/search.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from medifly.errors import InvalidRequest
from medifly.schemas import SearchFilters, SearchIntent
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.intent import QueryUnderstanding
from medifly.services.normalizer import normalize_results

logger = logging.getLogger(__name__)

MISSING_PARAMS_MESSAGE = "Missing required parameters: query and type"


def search_service(
    dispatcher: VectorSearchDispatcher,
    query: Any,
    entity_type: Any,
    filters: Optional[SearchFilters] = None,
) -> Dict[str, Any]:
    """Validate, dispatch, normalise. Returns the {success, results, count} payload."""
    if not isinstance(query, str) or not query.strip() or not entity_type:
        raise InvalidRequest(MISSING_PARAMS_MESSAGE)

    rows = dispatcher.search(entity_type, query, filters or SearchFilters())
    results = normalize_results(entity_type, rows)

    return {
        "success": True,
        "results": results,
        "count": len(results),
    }


def assist_service(
    understanding: QueryUnderstanding,
    dispatcher: VectorSearchDispatcher,
    message: str,
    previous_query: Optional[str] = None,
    previous_results: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Chat flow: understand the message, then run the search it describes."""
    intent: SearchIntent = understanding.understand(
        message,
        previous_query=previous_query,
        previous_results=previous_results,
    )
    logger.info(
        "assist intent type=%s query=%r filters=%s",
        intent.entity_type,
        intent.query_text,
        intent.filters.model_dump(exclude_none=True),
    )

    rows = dispatcher.search_intent(intent)
    results = normalize_results(intent.entity_type, rows)

    return {
        "intent": intent,
        "results": results,
        "count": len(results),
    }
