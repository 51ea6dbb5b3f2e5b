from __future__ import annotations

import httpx

from ainotes_api.domain.exceptions import ProviderError, ProviderTimeout


def _join_base(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + "/" + path.lstrip("/")


def _post(url: str, payload: dict, timeout_s: float) -> dict:
    try:
        with httpx.Client(timeout=timeout_s) as client:
            resp = client.post(url, json=payload)
    except httpx.TimeoutException as e:
        raise ProviderTimeout("provider_timeout") from e
    except httpx.HTTPError as e:
        raise ProviderError("provider_request_failed") from e

    if resp.status_code >= 400:
        raise ProviderError(f"provider_http_{resp.status_code}")

    try:
        data = resp.json()
    except ValueError as e:
        raise ProviderError("provider_bad_response") from e
    if not isinstance(data, dict):
        raise ProviderError("provider_bad_response")
    return data


def ollama_embed(*, base_url: str, model: str, text: str, timeout_s: float = 120.0) -> list[float]:
    data = _post(_join_base(base_url, "/api/embed"), {"model": model, "input": text}, timeout_s)
    try:
        vec = data["embeddings"][0]
        return [float(v) for v in vec]
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise ProviderError("provider_bad_response") from e


def ollama_generate(*, base_url: str, model: str, prompt: str, timeout_s: float = 120.0) -> str:
    data = _post(
        _join_base(base_url, "/api/generate"),
        {"model": model, "prompt": prompt, "stream": False},
        timeout_s,
    )
    content = data.get("response")
    if not isinstance(content, str):
        raise ProviderError("provider_bad_response")
    return content
