from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from ainotes_api.domain.entities import ChatMessage, EditSession, Note, Notification, SyncStatus
from ainotes_api.domain.exceptions import OperationFailure


Listener = Callable[["AppState"], None]


@dataclass
class AppState:
    notes: list[Note] = field(default_factory=list)
    edit_session: EditSession | None = None
    transcript: list[ChatMessage] = field(default_factory=list)
    loading: bool = False
    sync: dict[int, SyncStatus] = field(default_factory=dict)
    notifications: list[Notification] = field(default_factory=list)


class StateStore:
    """
    Single owner of the view state. Clients mutate `state` and then call
    `emit()`; views only subscribe and read.
    """

    def __init__(self, state: AppState | None = None) -> None:
        self.state = state or AppState()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    def index_of(self, note_id: int) -> int | None:
        for i, note in enumerate(self.state.notes):
            if note.id == note_id:
                return i
        return None

    def fail(self, failure: OperationFailure) -> Notification:
        notification = Notification(kind=failure.kind, message=str(failure), timed_out=failure.timed_out)
        self.state.notifications.append(notification)
        self.emit()
        return notification

    def dismiss(self, notification: Notification) -> None:
        if notification in self.state.notifications:
            self.state.notifications.remove(notification)
            self.emit()
