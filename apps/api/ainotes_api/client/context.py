from __future__ import annotations

from typing import Iterable

from ainotes_api.domain.entities import Note


def build_notes_context(notes: Iterable[Note]) -> str:
    """Every note as "title: content", in list order, separated by a blank line."""
    return "\n\n".join(f"{n.title}: {n.content}" for n in notes)
