from functools import lru_cache

from ainotes_api.ai.providers import (
    EmbeddingProvider,
    LocalHashedBowEmbedding,
    OllamaAnswerer,
    OllamaEmbedding,
)
from ainotes_api.config import load_settings
from ainotes_api.indexing.indexer import Indexer
from ainotes_api.indexing.vector import QdrantIndex
from ainotes_api.store import NoteStore

@lru_cache()
def get_settings():
    return load_settings()

@lru_cache()
def get_store():
    settings = get_settings()
    store = NoteStore(settings.db_path)
    store.init_db()
    return store

@lru_cache()
def get_vectors():
    settings = get_settings()
    return QdrantIndex(settings.qdrant_url)

@lru_cache()
def get_embedder() -> EmbeddingProvider:
    settings = get_settings()
    if settings.embed_provider == "local":
        return LocalHashedBowEmbedding(dim=settings.embed_dim)
    return OllamaEmbedding(base_url=settings.ollama_base_url, model=settings.embed_model, timeout_s=settings.ai_timeout_s)

@lru_cache()
def get_answerer():
    settings = get_settings()
    return OllamaAnswerer(base_url=settings.ollama_base_url, model=settings.llm_model, timeout_s=settings.ai_timeout_s)

@lru_cache()
def get_indexer():
    settings = get_settings()
    return Indexer(
        store=get_store(),
        embedder=get_embedder(),
        answerer=get_answerer(),
        vectors=get_vectors(),
        context_limit=settings.context_limit,
    )


def clear_caches() -> None:
    for getter in (get_settings, get_store, get_vectors, get_embedder, get_answerer, get_indexer):
        getter.cache_clear()
