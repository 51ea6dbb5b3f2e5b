from __future__ import annotations

from typing import Iterable

from ainotes_api.config import ClientSettings, load_client_settings
from ainotes_api.domain.entities import Note
from ainotes_api.domain.ports import NotesBackend

from .backend import HttpNotesBackend
from .chat import ChatClient
from .notes import NoteStoreClient
from .state import AppState, Listener, StateStore

SAMPLE_NOTE = Note(id=1, title="Sample Note", content="This is a sample note. You can edit or delete it.")


class NotesAssistant:
    """Top-level controller: owns the state container and both clients."""

    def __init__(
        self,
        backend: NotesBackend,
        *,
        settings: ClientSettings | None = None,
        initial_notes: Iterable[Note] = (SAMPLE_NOTE,),
    ) -> None:
        settings = settings or load_client_settings()
        self.backend = backend
        self.store = StateStore(AppState(notes=list(initial_notes)))
        self.notes = NoteStoreClient(
            backend,
            self.store,
            load_retries=settings.load_retries,
            delete_retries=settings.delete_retries,
            retry_backoff_s=settings.retry_backoff_s,
        )
        self.chat = ChatClient(backend, self.store)

    @classmethod
    def connect(cls, settings: ClientSettings | None = None) -> "NotesAssistant":
        settings = settings or load_client_settings()
        return cls(HttpNotesBackend.from_settings(settings), settings=settings)

    @property
    def state(self) -> AppState:
        return self.store.state

    def subscribe(self, listener: Listener):
        return self.store.subscribe(listener)

    async def start(self) -> list[Note]:
        return await self.notes.load_all()

    async def close(self) -> None:
        await self.notes.drain()
        aclose = getattr(self.backend, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> "NotesAssistant":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
