from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NoteOut(BaseModel):
    id: int
    title: str
    content: str


class NoteListOut(BaseModel):
    items: list[NoteOut] = Field(default_factory=list)


class EmbedAndSaveIn(BaseModel):
    title: str
    note: str
    all: str = ""
    id: Optional[int] = None


class AskIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    notes_context: str = Field("", alias="notesContext")


class AskOut(BaseModel):
    answer: str
