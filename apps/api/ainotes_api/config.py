from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    db_path: Path
    ollama_base_url: str
    embed_provider: str
    embed_model: str
    embed_dim: int
    llm_model: str
    context_limit: int
    ai_timeout_s: float
    qdrant_url: str | None
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool


@dataclass(frozen=True)
class ClientSettings:
    api_url: str
    api_token: str | None
    request_timeout_s: float
    ask_timeout_s: float
    load_retries: int
    delete_retries: int
    retry_backoff_s: float


def load_settings() -> Settings:
    db_path = Path(os.environ.get("DB_PATH", "./data/notes.db")).resolve()
    ollama_base_url = os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    embed_provider = os.environ.get("EMBED_PROVIDER", "ollama").lower()
    embed_model = os.environ.get("EMBED_MODEL", "nomic-embed-text:latest")
    embed_dim = int(os.environ.get("EMBED_DIM", "384"))
    llm_model = os.environ.get("LLM_MODEL", "llama3.2:3b")
    context_limit = int(os.environ.get("CONTEXT_LIMIT", "10"))
    ai_timeout_s = float(os.environ.get("AI_TIMEOUT_S", "120"))
    qdrant_url = os.environ.get("QDRANT_URL")
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = os.environ.get("API_DEBUG_LOG", "false").lower() == "true"
    return Settings(
        db_path=db_path,
        ollama_base_url=ollama_base_url,
        embed_provider=embed_provider,
        embed_model=embed_model,
        embed_dim=embed_dim,
        llm_model=llm_model,
        context_limit=context_limit,
        ai_timeout_s=ai_timeout_s,
        qdrant_url=qdrant_url,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
    )


def load_client_settings() -> ClientSettings:
    api_url = os.environ.get("NOTES_API_URL", "http://127.0.0.1:8000")
    api_token = os.environ.get("NOTES_API_TOKEN")
    request_timeout_s = float(os.environ.get("REQUEST_TIMEOUT_S", "30"))
    ask_timeout_s = float(os.environ.get("ASK_TIMEOUT_S", "120"))
    load_retries = int(os.environ.get("LOAD_RETRIES", "2"))
    delete_retries = int(os.environ.get("DELETE_RETRIES", "2"))
    retry_backoff_s = float(os.environ.get("RETRY_BACKOFF_S", "0.5"))
    return ClientSettings(
        api_url=api_url,
        api_token=api_token,
        request_timeout_s=request_timeout_s,
        ask_timeout_s=ask_timeout_s,
        load_retries=load_retries,
        delete_retries=delete_retries,
        retry_backoff_s=retry_backoff_s,
    )
