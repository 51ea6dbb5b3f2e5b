from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

Role = Literal["user", "assistant"]

NEW_NOTE_TITLE = "New Note"
NEW_NOTE_CONTENT = "Start writing your note here..."


@dataclass(frozen=True)
class Note:
    id: int
    title: str
    content: str


@dataclass(frozen=True)
class StoredNote:
    id: int
    title: str
    content: str
    embedding: list[float]

    def to_note(self) -> Note:
        return Note(id=self.id, title=self.title, content=self.content)

    def __str__(self) -> str:
        return f"Title: {self.title} \n\n Content: {self.content}"


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str
    error: bool = False


@dataclass(frozen=True)
class EditSession:
    note_id: int
    draft_title: str
    draft_content: str


class SyncStatus(str, Enum):
    PROVISIONAL = "provisional"
    PENDING = "pending"
    COMMITTED = "committed"
    REVERTED = "reverted"


@dataclass(frozen=True)
class Notification:
    kind: str
    message: str
    timed_out: bool = False
