from __future__ import annotations

import logging
from enum import Enum

from ainotes_api.domain.entities import ChatMessage
from ainotes_api.domain.exceptions import AskFailure, BackendError, BackendTimeout, OperationBusy
from ainotes_api.domain.ports import NotesBackend

from .context import build_notes_context
from .state import StateStore

logger = logging.getLogger("ainotes.client")


class ChatPhase(str, Enum):
    IDLE = "idle"
    SUBMITTED = "question-submitted"
    AWAITING = "awaiting-answer"


def _error_reply(error: BackendError) -> ChatMessage:
    if isinstance(error, BackendTimeout):
        text = "[error]: request timed out"
    else:
        text = f"[error]: {error}"
    return ChatMessage(role="assistant", content=text, error=True)


class ChatClient:
    def __init__(self, backend: NotesBackend, store: StateStore) -> None:
        self._backend = backend
        self._store = store
        self.phase = ChatPhase.IDLE

    @property
    def transcript(self) -> list[ChatMessage]:
        return list(self._store.state.transcript)

    async def ask(self, question: str) -> ChatMessage | None:
        if not question or not question.strip():
            return None
        if self.phase is not ChatPhase.IDLE:
            self._store.fail(OperationBusy("Chat request already in progress."))
            return None

        state = self._store.state
        self.phase = ChatPhase.SUBMITTED
        state.transcript.append(ChatMessage(role="user", content=question))
        self._store.emit()

        context = build_notes_context(state.notes)
        self.phase = ChatPhase.AWAITING
        failure: AskFailure | None = None
        try:
            answer = await self._backend.llm_req(question, context)
            reply = ChatMessage(role="assistant", content=answer)
        except BackendError as e:
            logger.error("ask_failed", extra={"error": str(e)})
            reply = _error_reply(e)
            failure = AskFailure(f"Failed to get an answer: {e}", cause=e)
        finally:
            self.phase = ChatPhase.IDLE

        state.transcript.append(reply)
        if failure is not None:
            self._store.fail(failure)
        else:
            self._store.emit()
        return reply
