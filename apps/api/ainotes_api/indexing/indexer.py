from __future__ import annotations

import logging

from ..ai.providers import AnswerProvider, EmbeddingProvider, build_prompt
from ..domain.entities import Note, StoredNote
from ..domain.exceptions import NoteNotFoundError
from ..domain.ports import NoteRepository
from ..util import cosine_similarity
from .vector import QdrantIndex

logger = logging.getLogger("ainotes.indexer")


def rank_by_similarity(query: list[float], entries: list[StoredNote], limit: int) -> list[StoredNote]:
    """Most similar first; ties keep storage order."""
    scored = [(cosine_similarity(e.embedding, query), i, e) for i, e in enumerate(entries)]
    scored.sort(key=lambda t: (-t[0], t[1]))
    return [e for (_score, _i, e) in scored[:limit]]


def render_context(entries: list[StoredNote]) -> str:
    return "".join(f"{e}\n" for e in entries)


class Indexer:
    def __init__(
        self,
        store: NoteRepository,
        embedder: EmbeddingProvider,
        answerer: AnswerProvider,
        vectors: QdrantIndex,
        *,
        context_limit: int = 10,
    ) -> None:
        self.store = store
        self.embedder = embedder
        self.answerer = answerer
        self.vectors = vectors
        self.context_limit = context_limit

    def embed_and_save(self, title: str, note: str, all_text: str, note_id: int | None = None) -> Note:
        # The joined context is what gets embedded; a lone note falls back to its own text.
        source = all_text if all_text.strip() else f"{title}: {note}"
        embedding = self.embedder.embed(source)

        saved: Note | None = None
        if note_id is not None:
            saved = self.store.update_note(note_id, title, note, embedding)
        if saved is None:
            saved = self.store.insert_note(title, note, embedding)
        self.vectors.upsert_note(saved.id, saved.title, embedding)
        return saved

    def delete_note(self, note_id: int) -> None:
        if not self.store.delete_note(note_id):
            raise NoteNotFoundError(note_id)
        self.vectors.delete_note(note_id)

    def relevant_entries(self, question: str) -> list[StoredNote]:
        entries = self.store.list_stored()
        if not entries:
            return []
        q_embed = self.embedder.embed(question)
        if self.vectors.enabled():
            hits = self.vectors.search(q_embed, limit=self.context_limit)
            by_id = {e.id: e for e in entries}
            ranked = [by_id[nid] for (nid, _score) in hits if nid in by_id]
            if ranked:
                return ranked
            logger.warning("vector_search_empty", extra={"stored": len(entries)})
        return rank_by_similarity(q_embed, entries, self.context_limit)

    def answer(self, question: str, notes_context: str) -> str:
        entries = self.relevant_entries(question)
        context = render_context(entries) if entries else notes_context
        return self.answerer.answer(build_prompt(question, context))
