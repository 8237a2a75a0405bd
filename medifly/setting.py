"""
medifly/setting.py

Central configuration for the Medifly search API.
- Secrets and endpoints come from environment variables or a `.env` file.
- Provider *choices* (which embedder / index / LLM) live in configs/runtime.yaml, see factory.py.
- Import `from medifly.setting import settings` anywhere in the project to access shared config.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings model holding credentials, the runtime config location and search defaults.
    Values can be customized by setting environment variables or editing `.env`.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---------- Runtime config ----------
    runtime_config: Path = Field(Path("configs/runtime.yaml"), validation_alias="MEDIFLY_RUNTIME")

    # ---------- Credentials ----------
    supabase_url: Optional[str] = None                  # SUPABASE_URL
    supabase_service_role_key: Optional[str] = None     # SUPABASE_SERVICE_ROLE_KEY
    google_api_key: Optional[str] = None                # GOOGLE_API_KEY (Gemini embeddings)
    anthropic_api_key: Optional[str] = None             # ANTHROPIC_API_KEY
    openai_api_key: Optional[str] = None                # OPENAI_API_KEY

    # ---------- Search defaults ----------
    match_threshold: float = 0.5    # minimum similarity for an index match
    match_count: int = 12           # result cap per search

    # ---------- Outbound call timeouts (seconds) ----------
    embed_timeout: float = 15.0
    llm_timeout: float = 30.0

    # ---------- Local index ----------
    snapshot_dir: Path = Path("data/index")


# Singleton settings instance used across the app
settings = Settings()
