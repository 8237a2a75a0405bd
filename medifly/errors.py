# medifly/errors.py
# Purpose: error kinds the search core can surface to the HTTP layer.
# - InvalidRequest      -> 400, never retried
# - EmbeddingFailure    -> 500
# - IndexQueryFailure   -> 500, carries the index's own message

from typing import Optional


class SearchError(Exception):
    status_code: int = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or message


class InvalidRequest(SearchError):
    status_code = 400


class EmbeddingFailure(SearchError):
    pass


class IndexQueryFailure(SearchError):
    pass


class IntentParseError(Exception):
    """LLM reply could not be turned into a SearchIntent. Never leaves query understanding."""
