from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable

from ainotes_api.domain.entities import (
    NEW_NOTE_CONTENT,
    NEW_NOTE_TITLE,
    EditSession,
    Note,
    SyncStatus,
)
from ainotes_api.domain.exceptions import (
    BackendError,
    DeleteFailure,
    LoadFailure,
    OperationBusy,
    SaveFailure,
)
from ainotes_api.domain.ports import NotesBackend
from ainotes_api.util import now_millis

from .context import build_notes_context
from .retry import retry_async
from .state import StateStore

logger = logging.getLogger("ainotes.client")

# (former index, note, sync status) used to put a note back after a failed delete.
_Restore = tuple[int, Note, SyncStatus]


class NoteStoreClient:
    """
    Local mirror of the persisted note list.

    Edits are applied optimistically and reconciled with the backend's
    answer: a save either commits the canonical record or reverts to the
    previous committed fields; a delete is retried and, if it still fails,
    compensated by putting the note back.
    """

    def __init__(
        self,
        backend: NotesBackend,
        store: StateStore,
        *,
        load_retries: int = 0,
        delete_retries: int = 0,
        retry_backoff_s: float = 0.5,
        clock: Callable[[], int] = now_millis,
    ) -> None:
        self._backend = backend
        self._store = store
        self._load_retries = load_retries
        self._delete_retries = delete_retries
        self._retry_backoff_s = retry_backoff_s
        self._clock = clock
        self._saving: set[int] = set()
        self._deleting: dict[int, asyncio.Task] = {}
        # Notes deleted locally while their save was still in flight.
        self._orphaned: set[int] = set()
        # Only notes acknowledged by the backend carry a durable id.
        for note in store.state.notes:
            store.state.sync.setdefault(note.id, SyncStatus.PROVISIONAL)

    @property
    def notes(self) -> list[Note]:
        return list(self._store.state.notes)

    @property
    def edit_session(self) -> EditSession | None:
        return self._store.state.edit_session

    def status(self, note_id: int) -> SyncStatus | None:
        return self._store.state.sync.get(note_id)

    def is_saving(self, note_id: int) -> bool:
        return note_id in self._saving

    async def load_all(self) -> list[Note]:
        state = self._store.state
        state.loading = True
        self._store.emit()

        failure: LoadFailure | None = None
        try:
            notes = await retry_async(
                self._backend.get_all_notes,
                attempts=self._load_retries + 1,
                backoff_s=self._retry_backoff_s,
                op="load_all",
            )
        except BackendError as e:
            logger.error("load_failed", extra={"error": str(e)})
            notes = []
            failure = LoadFailure(f"Failed to load notes: {e}", cause=e)

        state.notes = list(notes)
        state.sync = {n.id: SyncStatus.COMMITTED for n in notes}
        state.edit_session = None
        state.loading = False
        if failure is not None:
            self._store.fail(failure)
        else:
            logger.info("notes_loaded", extra={"count": len(notes)})
            self._store.emit()
        return list(notes)

    def _provisional_id(self) -> int:
        taken = {n.id for n in self._store.state.notes} | self._saving | set(self._deleting)
        candidate = self._clock()
        while candidate in taken:
            candidate += 1
        return candidate

    def create(self) -> Note:
        state = self._store.state
        note = Note(id=self._provisional_id(), title=NEW_NOTE_TITLE, content=NEW_NOTE_CONTENT)
        state.notes.append(note)
        state.sync[note.id] = SyncStatus.PROVISIONAL
        state.edit_session = EditSession(note_id=note.id, draft_title=note.title, draft_content=note.content)
        self._store.emit()
        return note

    def begin_edit(self, note: Note) -> EditSession | None:
        idx = self._store.index_of(note.id)
        if idx is None:
            logger.warning("edit_missing_note", extra={"id": note.id})
            return None
        committed = self._store.state.notes[idx]
        session = EditSession(note_id=committed.id, draft_title=committed.title, draft_content=committed.content)
        self._store.state.edit_session = session
        self._store.emit()
        return session

    def update_draft(self, *, title: str | None = None, content: str | None = None) -> EditSession | None:
        session = self._store.state.edit_session
        if session is None:
            return None
        changes = {}
        if title is not None:
            changes["draft_title"] = title
        if content is not None:
            changes["draft_content"] = content
        session = dataclasses.replace(session, **changes)
        self._store.state.edit_session = session
        self._store.emit()
        return session

    def cancel_edit(self) -> None:
        if self._store.state.edit_session is None:
            return
        self._store.state.edit_session = None
        self._store.emit()

    async def save(self, session: EditSession | None = None) -> Note | None:
        state = self._store.state
        session = session or state.edit_session
        if session is None:
            return None
        note_id = session.note_id
        idx = self._store.index_of(note_id)
        if idx is None:
            logger.warning("save_missing_note", extra={"id": note_id})
            return None
        if note_id in self._saving:
            self._store.fail(OperationBusy("A save for this note is already in progress."))
            return None

        previous = state.notes[idx]
        prev_status = state.sync.get(note_id, SyncStatus.PROVISIONAL)
        draft = Note(id=note_id, title=session.draft_title, content=session.draft_content)
        state.notes[idx] = draft
        state.sync[note_id] = SyncStatus.PENDING
        # Built after the draft is applied: the note's own embedding sees its new text.
        context = build_notes_context(state.notes)
        persisted_id = None if prev_status is SyncStatus.PROVISIONAL else note_id
        self._saving.add(note_id)
        self._store.emit()

        try:
            canonical = await self._backend.embed_and_save(draft.title, draft.content, context, note_id=persisted_id)
        except BackendError as e:
            self._saving.discard(note_id)
            logger.error("save_failed", extra={"id": note_id, "error": str(e)})
            if note_id in self._orphaned:
                self._orphaned.discard(note_id)
                if persisted_id is not None:
                    self._schedule_delete(persisted_id, None)
            else:
                self._revert(note_id, previous, prev_status)
            self._store.fail(SaveFailure(f"Failed to save note: {e}", cause=e))
            return None

        self._saving.discard(note_id)
        if note_id in self._orphaned:
            self._orphaned.discard(note_id)
            logger.info("save_after_delete", extra={"id": note_id, "canonical_id": canonical.id})
            self._schedule_delete(canonical.id, None)
            return canonical

        idx = self._store.index_of(note_id)
        if idx is not None:
            state.notes[idx] = canonical
        state.sync.pop(note_id, None)
        state.sync[canonical.id] = SyncStatus.COMMITTED
        current = state.edit_session
        if current is not None and current.note_id == note_id:
            if current == session:
                state.edit_session = None
            else:
                # The user kept typing while the save was in flight.
                state.edit_session = dataclasses.replace(current, note_id=canonical.id)
        logger.info("note_saved", extra={"id": note_id, "canonical_id": canonical.id})
        self._store.emit()
        return canonical

    def _revert(self, note_id: int, previous: Note, prev_status: SyncStatus) -> None:
        state = self._store.state
        idx = self._store.index_of(note_id)
        if idx is None:
            return
        state.notes[idx] = previous
        state.sync[note_id] = SyncStatus.PROVISIONAL if prev_status is SyncStatus.PROVISIONAL else SyncStatus.REVERTED

    def delete(self, note: Note) -> asyncio.Task | None:
        """
        Remove the note right away and schedule the remote delete.

        Returns the task carrying the remote call, or None when no call is
        needed (never persisted, already gone, or a save is still in flight).
        Must be called from a running event loop.
        """
        state = self._store.state
        idx = self._store.index_of(note.id)
        if idx is None:
            return self._deleting.get(note.id)
        removed = state.notes.pop(idx)
        status = state.sync.pop(removed.id, SyncStatus.PROVISIONAL)
        if state.edit_session is not None and state.edit_session.note_id == removed.id:
            state.edit_session = None
        self._store.emit()

        if removed.id in self._saving:
            self._orphaned.add(removed.id)
            return None
        if status is SyncStatus.PROVISIONAL:
            return None
        return self._schedule_delete(removed.id, (idx, removed, status))

    def _schedule_delete(self, note_id: int, restore: _Restore | None) -> asyncio.Task:
        existing = self._deleting.get(note_id)
        if existing is not None:
            return existing
        task = asyncio.get_running_loop().create_task(self._delete_remote(note_id, restore))
        self._deleting[note_id] = task
        task.add_done_callback(lambda _t: self._deleting.pop(note_id, None))
        return task

    async def _delete_remote(self, note_id: int, restore: _Restore | None) -> bool:
        try:
            await retry_async(
                lambda: self._backend.delete_note(note_id),
                attempts=self._delete_retries + 1,
                backoff_s=self._retry_backoff_s,
                op="delete",
            )
        except BackendError as e:
            logger.error("delete_failed", extra={"id": note_id, "error": str(e)})
            if restore is not None:
                index, note, status = restore
                state = self._store.state
                if self._store.index_of(note.id) is None:
                    state.notes.insert(min(index, len(state.notes)), note)
                    state.sync[note.id] = status
            self._store.fail(DeleteFailure(f"Failed to delete note: {e}", cause=e))
            return False
        logger.info("note_deleted", extra={"id": note_id})
        return True

    async def drain(self) -> None:
        """Wait for every remote delete still in flight."""
        while self._deleting:
            await asyncio.gather(*list(self._deleting.values()), return_exceptions=True)
