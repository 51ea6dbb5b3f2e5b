from __future__ import annotations

from typing import Protocol, runtime_checkable

from ainotes_api.domain.entities import Note, StoredNote


@runtime_checkable
class NoteRepository(Protocol):
    def list_notes(self) -> list[Note]:
        ...

    def list_stored(self) -> list[StoredNote]:
        ...

    def get_note(self, note_id: int) -> StoredNote | None:
        ...

    def insert_note(self, title: str, content: str, embedding: list[float]) -> Note:
        ...

    def update_note(self, note_id: int, title: str, content: str, embedding: list[float]) -> Note | None:
        ...

    def delete_note(self, note_id: int) -> bool:
        ...


@runtime_checkable
class NotesBackend(Protocol):
    """The four remote operations the client core is built on."""

    async def get_all_notes(self) -> list[Note]:
        ...

    async def delete_note(self, note_id: int) -> None:
        ...

    async def embed_and_save(self, title: str, note: str, all: str, note_id: int | None = None) -> Note:
        ...

    async def llm_req(self, question: str, notes_context: str) -> str:
        ...
