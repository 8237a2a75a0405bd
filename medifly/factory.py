"""
medifly/factory.py

Builds the search stack from the YAML runtime config.
- Swaps providers by config (no code edits):
    embedder.adapter      gemini | bge
    vector_index.adapter  supabase | faiss
    llm.adapter           anthropic | openai | ollama | none
- Credentials come from medifly.setting (env / .env), never from the YAML file.
- Heavy SDKs are imported lazily so a local setup only needs what it uses.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from medifly.ports import EmbedderPort, LLMPort, VectorIndexPort
from medifly.services.dispatcher import VectorSearchDispatcher
from medifly.services.intent import LLMIntentClassifier, QueryUnderstanding
from medifly.setting import Settings, settings as default_settings

load_dotenv()

logger = logging.getLogger(__name__)


def load_runtime_config(cfg_path: str | Path | None = None) -> Dict[str, Any]:
    """Read the runtime YAML; a missing file means "all defaults"."""
    p = Path(cfg_path or os.environ.get("MEDIFLY_RUNTIME") or default_settings.runtime_config).expanduser()
    if not p.exists():
        logger.warning("runtime config not found at %s, using defaults", p)
        return {}
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def build_embedder(cfg: Dict[str, Any], settings: Settings) -> EmbedderPort:
    emb_cfg = cfg.get("embedder", {}) or {}
    adapter = (emb_cfg.get("adapter") or "gemini").lower()

    if adapter == "gemini":
        from medifly.adapters.embed_gemini import GeminiEmbeddingAdapter

        if not settings.google_api_key:
            raise RuntimeError("Missing GOOGLE_API_KEY environment variable")
        return GeminiEmbeddingAdapter(
            model=emb_cfg.get("model", "text-embedding-004"),
            api_key=settings.google_api_key,
            task_type=emb_cfg.get("task_type", "RETRIEVAL_DOCUMENT"),
            timeout=settings.embed_timeout,
        )
    if adapter in ("bge", "sentence-transformers"):
        from medifly.adapters.embed_bge import BGEEmbeddingAdapter

        return BGEEmbeddingAdapter(emb_cfg.get("model", "BAAI/bge-small-en-v1.5"))
    raise ValueError(f"Unknown embedder.adapter: {adapter}")


def build_index(cfg: Dict[str, Any], settings: Settings) -> VectorIndexPort:
    vi_cfg = cfg.get("vector_index", {}) or {}
    adapter = (vi_cfg.get("adapter") or "supabase").lower()

    if adapter == "supabase":
        from medifly.adapters.index_supabase import SupabaseVectorIndex

        return SupabaseVectorIndex(
            url=settings.supabase_url,
            key=settings.supabase_service_role_key,
            hospital_rpc=vi_cfg.get("hospital_rpc", "search_hospitals_vector"),
            doctor_rpc=vi_cfg.get("doctor_rpc", "search_doctors_vector"),
        )
    if adapter == "faiss":
        from medifly.adapters.index_faiss import FaissVectorIndex

        return FaissVectorIndex(vi_cfg.get("path") or settings.snapshot_dir)
    raise ValueError(f"Unknown vector_index.adapter: {adapter}")


def build_llm(cfg: Dict[str, Any], settings: Settings) -> Optional[LLMPort]:
    llm_cfg = cfg.get("llm", {}) or {}
    adapter = (llm_cfg.get("adapter") or "anthropic").lower()

    if adapter == "none":
        return None
    if adapter == "anthropic":
        from medifly.adapters.llm_anthropic import AnthropicAdapter

        return AnthropicAdapter(
            model=llm_cfg.get("model", "claude-sonnet-4-20250514"),
            api_key=settings.anthropic_api_key,
            timeout=settings.llm_timeout,
        )
    if adapter == "openai":
        from medifly.adapters.llm_openai import OpenAIAdapter

        return OpenAIAdapter(
            model=llm_cfg.get("model", "gpt-4o-mini"),
            api_key=settings.openai_api_key,
            timeout=settings.llm_timeout,
        )
    if adapter == "ollama":
        from medifly.adapters.llm_ollama import OllamaAdapter

        return OllamaAdapter(
            model=llm_cfg.get("model", "llama3.1"),
            host=llm_cfg.get("host"),
            timeout=int(settings.llm_timeout),
        )
    raise ValueError(f"Unknown llm.adapter: {adapter}")


def build_dispatcher(cfg_path: str | Path | None = None, settings: Settings = default_settings) -> VectorSearchDispatcher:
    cfg = load_runtime_config(cfg_path)
    search_cfg = cfg.get("search", {}) or {}
    return VectorSearchDispatcher(
        embedder=build_embedder(cfg, settings),
        index=build_index(cfg, settings),
        default_threshold=float(search_cfg.get("threshold", settings.match_threshold)),
        default_limit=int(search_cfg.get("limit", settings.match_count)),
    )


def build_understanding(cfg_path: str | Path | None = None, settings: Settings = default_settings) -> QueryUnderstanding:
    """LLM classifier when configured, rule-based fallback always. Construction errors also fall back."""
    cfg = load_runtime_config(cfg_path)
    llm_cfg = cfg.get("llm", {}) or {}
    try:
        llm = build_llm(cfg, settings)
    except Exception as e:
        logger.warning("LLM adapter unavailable, query understanding will use rules only: %r", e)
        llm = None
    primary = None
    if llm is not None:
        primary = LLMIntentClassifier(
            llm,
            temperature=float(llm_cfg.get("temperature", 0.2)),
            max_tokens=int(llm_cfg.get("max_tokens", 1000)),
        )
    return QueryUnderstanding(primary=primary)


def describe_runtime(cfg_path: str | Path | None = None) -> Dict[str, str]:
    cfg = load_runtime_config(cfg_path)
    return {
        "embedder": ((cfg.get("embedder") or {}).get("adapter") or "gemini").lower(),
        "index": ((cfg.get("vector_index") or {}).get("adapter") or "supabase").lower(),
        "llm": ((cfg.get("llm") or {}).get("adapter") or "anthropic").lower(),
    }


# FastAPI dependencies: one stack per process
@lru_cache(maxsize=1)
def get_dispatcher() -> VectorSearchDispatcher:
    return build_dispatcher()


@lru_cache(maxsize=1)
def get_understanding() -> QueryUnderstanding:
    return build_understanding()
