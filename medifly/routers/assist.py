"""
/api/assist endpoint: chat-style search.
Takes a free-text message (plus optional previous search context), works out what the
user is looking for, runs that search and returns the intent alongside the results.
Query understanding never fails the request; it falls back to keyword rules.
"""

from fastapi import APIRouter, Depends

from medifly.routers.deps import get_dispatcher, get_understanding
from medifly.schemas import AssistRequest, AssistResponse
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.intent import QueryUnderstanding
from medifly.services.search import assist_service

router = APIRouter(tags=["assist"])


@router.post("/assist", response_model=AssistResponse, response_model_exclude_none=True)
def assist(
    req: AssistRequest,
    understanding: QueryUnderstanding = Depends(get_understanding),
    dispatcher: VectorSearchDispatcher = Depends(get_dispatcher),
):
    return assist_service(
        understanding,
        dispatcher,
        message=req.message,
        previous_query=req.previous_query,
        previous_results=req.previous_results,
    )
