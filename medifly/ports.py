"""
Interfaces ("ports") the search core depends on.
Adapters under medifly/adapters implement these so providers can be swapped by config.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from medifly.schemas import SearchIntent


class EmbedderPort(Protocol):
    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed a batch of texts into dense vectors."""

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query text into a dense vector."""


class LLMPort(Protocol):
    def chat(self, system: str, user: str, temperature: float, max_tokens: int) -> Tuple[str, Dict]:
        """Return (reply_text, usage)."""


class VectorIndexPort(Protocol):
    """The two similarity functions of the vector index, one per entity type."""

    def search_hospitals(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...

    def search_doctors(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        ...


class IntentClassifier(Protocol):
    def classify(
        self,
        text: str,
        previous_query: Optional[str] = None,
        previous_count: Optional[int] = None,
    ) -> SearchIntent:
        ...
