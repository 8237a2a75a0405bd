"""
Query understanding: free text -> SearchIntent.

Two IntentClassifier strategies:
- LLMIntentClassifier: asks the configured LLM for a JSON intent.
- RuleBasedIntentClassifier (intent_rules.py): keyword tables, no network.

QueryUnderstanding tries the LLM first and falls back to the rules on *any*
failure (network, HTTP, empty reply, bad JSON, missing fields). Callers never see
an error from this step except for blank input.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from pydantic import ValidationError

from medifly.errors import IntentParseError, InvalidRequest
from medifly.ports import IntentClassifier, LLMPort
from medifly.schemas import SearchIntent
from medifly.services.intent_rules import RuleBasedIntentClassifier
from medifly.services.prompting import SYSTEM, build_user_prompt

logger = logging.getLogger(__name__)

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


def parse_intent_reply(reply: str) -> SearchIntent:
    """Pull the JSON object out of an LLM reply (prose and code fences tolerated) and validate it."""
    match = _JSON_BLOCK.search(reply or "")
    if not match:
        raise IntentParseError("Invalid AI response format: no JSON object found")
    try:
        payload: Dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise IntentParseError(f"Invalid AI response JSON: {e}") from e
    try:
        return SearchIntent.model_validate(payload)
    except ValidationError as e:
        raise IntentParseError(f"AI response missing or invalid fields: {e.error_count()} errors") from e


class LLMIntentClassifier:
    def __init__(self, llm: LLMPort, temperature: float = 0.2, max_tokens: int = 1000):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    def classify(
        self,
        text: str,
        previous_query: Optional[str] = None,
        previous_count: Optional[int] = None,
    ) -> SearchIntent:
        user = build_user_prompt(text, previous_query=previous_query, previous_count=previous_count)
        reply, usage = self.llm.chat(SYSTEM, user, self.temperature, self.max_tokens)
        logger.debug("intent llm usage=%s", usage)
        return parse_intent_reply(reply)


class QueryUnderstanding:
    """Best-effort primary classifier with a deterministic fallback."""

    def __init__(
        self,
        primary: Optional[IntentClassifier] = None,
        fallback: Optional[IntentClassifier] = None,
    ):
        self.primary = primary
        self.fallback = fallback or RuleBasedIntentClassifier()

    def understand(
        self,
        text: str,
        previous_query: Optional[str] = None,
        previous_results: Optional[list] = None,
    ) -> SearchIntent:
        if not text or not text.strip():
            raise InvalidRequest("Missing required parameter: message")

        previous_count = len(previous_results) if previous_results is not None else None

        if self.primary is not None:
            try:
                return self.primary.classify(text, previous_query=previous_query, previous_count=previous_count)
            except Exception as e:
                logger.warning("intent classifier failed, using rule-based fallback: %r", e)

        return self.fallback.classify(text, previous_query=previous_query, previous_count=previous_count)
