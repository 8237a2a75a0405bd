# medifly/routers/search.py
# Purpose: Defines the /api/search endpoint.
# - Accepts {query, type, filters?} and returns {success, results, count}.
# - Delegates to services.search.search_service; error kinds map to status codes in main.py.

import logging

from fastapi import APIRouter, Depends

from medifly.routers.deps import get_dispatcher
from medifly.schemas import SearchRequest, SearchResponse
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.search import search_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])


@router.post("/search", response_model=SearchResponse, response_model_exclude_none=True)
def search(req: SearchRequest, dispatcher: VectorSearchDispatcher = Depends(get_dispatcher)):
    return search_service(
        dispatcher,
        query=req.query,
        entity_type=req.entity_type,
        filters=req.filters,
    )
