"""HTTP adapter over the notes service, used by the client core."""
from __future__ import annotations

from typing import Any

import httpx

from ainotes_api.config import ClientSettings
from ainotes_api.domain.entities import Note
from ainotes_api.domain.exceptions import BackendError, BackendTimeout


def _note_from_payload(item: Any) -> Note:
    try:
        return Note(id=int(item["id"]), title=str(item["title"]), content=str(item["content"]))
    except (KeyError, TypeError, ValueError) as e:
        raise BackendError("backend_bad_response") from e


class HttpNotesBackend:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout_s: float = 30.0,
        ask_timeout_s: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout_s, transport=transport)
        self.ask_timeout_s = ask_timeout_s

    @classmethod
    def from_settings(cls, settings: ClientSettings) -> "HttpNotesBackend":
        return cls(
            settings.api_url,
            token=settings.api_token,
            timeout_s=settings.request_timeout_s,
            ask_timeout_s=settings.ask_timeout_s,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict | None = None,
        timeout_s: float | None = None,
        ok_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if timeout_s is not None:
            kwargs["timeout"] = timeout_s
        try:
            resp = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise BackendTimeout("request timed out") from e
        except httpx.HTTPError as e:
            raise BackendError("backend_request_failed") from e

        if resp.status_code >= 400 and resp.status_code not in ok_statuses:
            raise BackendError(f"backend_http_{resp.status_code}")
        return resp

    @staticmethod
    def _json(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError("backend_bad_response") from e

    async def get_all_notes(self) -> list[Note]:
        data = self._json(await self._request("GET", "/notes"))
        items = data.get("items") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise BackendError("backend_bad_response")
        return [_note_from_payload(i) for i in items]

    async def delete_note(self, note_id: int) -> None:
        # 404 means the row is already gone, which is what the caller wanted.
        await self._request("DELETE", f"/notes/{note_id}", ok_statuses=(404,))

    async def embed_and_save(self, title: str, note: str, all: str, note_id: int | None = None) -> Note:
        payload: dict[str, Any] = {"title": title, "note": note, "all": all}
        if note_id is not None:
            payload["id"] = note_id
        return _note_from_payload(self._json(await self._request("POST", "/notes", json=payload)))

    async def llm_req(self, question: str, notes_context: str) -> str:
        resp = await self._request(
            "POST",
            "/ai/ask",
            json={"question": question, "notesContext": notes_context},
            timeout_s=self.ask_timeout_s,
        )
        data = self._json(resp)
        answer = data.get("answer") if isinstance(data, dict) else None
        if not isinstance(answer, str):
            raise BackendError("backend_bad_response")
        return answer
