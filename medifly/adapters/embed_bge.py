"""
Local sentence-transformers embedder (BAAI/bge-small-en-v1.5 by default).
Implements EmbedderPort for the offline FAISS index; vectors are L2-normalised so
inner product equals cosine similarity.
"""

from typing import List, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from medifly.errors import EmbeddingFailure
from medifly.ports import EmbedderPort


class BGEEmbeddingAdapter(EmbedderPort):
    def __init__(self, model_name: str = "BAAI/bge-small-en-v1.5", max_len: int = 512):
        self.model = SentenceTransformer(model_name)
        self.model.max_seq_length = max_len

    def encode(self, texts: Sequence[str], batch_size: int = 64) -> np.ndarray:
        return self.model.encode(
            list(texts),
            batch_size=batch_size,
            convert_to_numpy=True,
            normalize_embeddings=True,
            show_progress_bar=False,
        ).astype(np.float32)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed a batch of texts into dense vectors."""
        return self.encode(texts).tolist()

    def embed_query(self, text: str) -> List[float]:
        """Embed a single query text into a dense vector."""
        vecs = self.encode([text])
        if vecs.size == 0:
            raise EmbeddingFailure("Failed to generate embedding for search query", detail="empty embedding")
        return vecs[0].tolist()
