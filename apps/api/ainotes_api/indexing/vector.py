from __future__ import annotations

from qdrant_client import QdrantClient
from qdrant_client.http.models import Distance, PointIdsList, PointStruct, VectorParams


class QdrantIndex:
    """Optional mirror of stored note embeddings. Every method is a no-op without a URL."""

    def __init__(self, url: str | None, collection: str = "notes") -> None:
        self._client = QdrantClient(url=url) if url else None
        self.collection = collection

    def enabled(self) -> bool:
        return self._client is not None

    def ensure_collection(self, dim: int) -> None:
        if not self._client:
            return
        collections = self._client.get_collections().collections
        if any(c.name == self.collection for c in collections):
            return
        self._client.create_collection(
            collection_name=self.collection,
            vectors_config=VectorParams(size=dim, distance=Distance.COSINE),
        )

    def upsert_note(self, note_id: int, title: str, vector: list[float]) -> None:
        if not self._client or not vector:
            return
        self.ensure_collection(len(vector))
        self._client.upsert(
            collection_name=self.collection,
            points=[PointStruct(id=note_id, vector=vector, payload={"note_id": note_id, "title": title})],
        )

    def delete_note(self, note_id: int) -> None:
        if not self._client:
            return
        if not self._client.collection_exists(self.collection):
            return
        self._client.delete(
            collection_name=self.collection,
            points_selector=PointIdsList(points=[note_id]),
        )

    def search(self, vector: list[float], limit: int = 10) -> list[tuple[int, float]]:
        if not self._client or not vector:
            return []
        self.ensure_collection(len(vector))
        res = self._client.query_points(
            collection_name=self.collection,
            query=vector,
            limit=limit,
            with_payload=True,
        )
        items: list[tuple[int, float]] = []
        for r in res.points:
            payload = r.payload or {}
            items.append((int(payload.get("note_id") or r.id), float(r.score)))
        return items
