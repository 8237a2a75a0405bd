# medifly/routers/deps.py
# Purpose: FastAPI dependencies that hand routers the process-wide search stack.
# Construction failures (missing keys, bad runtime.yaml) surface as a 500 SearchError payload.

import logging

from medifly import factory
from medifly.errors import SearchError
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.intent import QueryUnderstanding

logger = logging.getLogger(__name__)


def get_dispatcher() -> VectorSearchDispatcher:
    try:
        return factory.get_dispatcher()
    except Exception as e:
        logger.exception("search stack could not be built")
        raise SearchError("Search backend unavailable", detail=str(e)) from e


def get_understanding() -> QueryUnderstanding:
    return factory.get_understanding()
