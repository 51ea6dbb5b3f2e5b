from __future__ import annotations

import json
import math
import time


def embedding_to_json(embedding: list[float]) -> str:
    return json.dumps(embedding)


def json_to_embedding(raw: str | None) -> list[float] | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    try:
        return [float(v) for v in data]
    except (TypeError, ValueError):
        return None


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """
    Cosine of the angle between two vectors.
    Zero-length or mismatched vectors score 0.0 instead of dividing by zero.
    """
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def now_millis() -> int:
    return int(time.time() * 1000)
