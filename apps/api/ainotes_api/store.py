from __future__ import annotations

import sqlite3
from contextlib import closing
from pathlib import Path

from .domain.entities import Note, StoredNote
from .util import embedding_to_json, json_to_embedding


_SCHEMA = """
CREATE TABLE IF NOT EXISTS embeddings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    content TEXT NOT NULL,
    embedding_json TEXT NOT NULL
)
"""


class NoteStore:
    """SQLite-backed note rows, each carrying the embedding computed at save time."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def init_db(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as con:
            con.execute(_SCHEMA)
            con.commit()

    def list_notes(self) -> list[Note]:
        with closing(self._connect()) as con:
            rows = con.execute("SELECT id, title, content FROM embeddings ORDER BY id").fetchall()
        return [Note(id=r["id"], title=r["title"], content=r["content"]) for r in rows]

    def list_stored(self) -> list[StoredNote]:
        with closing(self._connect()) as con:
            rows = con.execute("SELECT id, title, content, embedding_json FROM embeddings ORDER BY id").fetchall()
        out: list[StoredNote] = []
        for r in rows:
            # Rows with an unreadable embedding still count as notes, but can't be ranked.
            embedding = json_to_embedding(r["embedding_json"]) or []
            out.append(StoredNote(id=r["id"], title=r["title"], content=r["content"], embedding=embedding))
        return out

    def get_note(self, note_id: int) -> StoredNote | None:
        with closing(self._connect()) as con:
            r = con.execute(
                "SELECT id, title, content, embedding_json FROM embeddings WHERE id = ?",
                (note_id,),
            ).fetchone()
        if r is None:
            return None
        embedding = json_to_embedding(r["embedding_json"]) or []
        return StoredNote(id=r["id"], title=r["title"], content=r["content"], embedding=embedding)

    def insert_note(self, title: str, content: str, embedding: list[float]) -> Note:
        with closing(self._connect()) as con:
            cur = con.execute(
                "INSERT INTO embeddings (title, content, embedding_json) VALUES (?, ?, ?)",
                (title, content, embedding_to_json(embedding)),
            )
            con.commit()
            note_id = cur.lastrowid
        return Note(id=int(note_id), title=title, content=content)

    def update_note(self, note_id: int, title: str, content: str, embedding: list[float]) -> Note | None:
        with closing(self._connect()) as con:
            cur = con.execute(
                "UPDATE embeddings SET title = ?, content = ?, embedding_json = ? WHERE id = ?",
                (title, content, embedding_to_json(embedding), note_id),
            )
            con.commit()
            if cur.rowcount == 0:
                return None
        return Note(id=note_id, title=title, content=content)

    def delete_note(self, note_id: int) -> bool:
        with closing(self._connect()) as con:
            cur = con.execute("DELETE FROM embeddings WHERE id = ?", (note_id,))
            con.commit()
            return cur.rowcount > 0
