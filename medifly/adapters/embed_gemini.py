"""
Adapter for remote embeddings via Google's Gemini API (google-genai SDK).
Implements EmbedderPort; this is the embedder the Supabase vectors were built with.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from google import genai
from google.genai import types

from medifly.errors import EmbeddingFailure
from medifly.ports import EmbedderPort

logger = logging.getLogger(__name__)


class GeminiEmbeddingAdapter(EmbedderPort):
    def __init__(
        self,
        model: str = "text-embedding-004",
        api_key: Optional[str] = None,
        task_type: str = "RETRIEVAL_DOCUMENT",
        timeout: float = 30.0,
        client=None,
    ):
        self.model = model
        self.task_type = task_type
        # SDK timeout is in milliseconds
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def _embed(self, contents) -> List[List[float]]:
        try:
            response = self.client.models.embed_content(
                model=self.model,
                contents=contents,
                config=types.EmbedContentConfig(task_type=self.task_type),
            )
        except Exception as e:
            logger.error("Error generating embedding with Gemini: %r", e)
            raise EmbeddingFailure("Failed to generate embedding for search query", detail=str(e)) from e

        embeddings = getattr(response, "embeddings", None) or []
        vectors: List[List[float]] = []
        for emb in embeddings:
            values = getattr(emb, "values", None)
            if not values or not isinstance(values, (list, tuple)):
                raise EmbeddingFailure(
                    "Failed to generate embedding for search query",
                    detail="Invalid embedding response from Gemini",
                )
            vectors.append([float(v) for v in values])
        if not vectors:
            raise EmbeddingFailure(
                "Failed to generate embedding for search query",
                detail="Invalid embedding response from Gemini",
            )
        return vectors

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed a batch of texts into dense vectors."""
        return self._embed(list(texts))

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query text into a dense vector."""
        return self._embed(text)[0]
