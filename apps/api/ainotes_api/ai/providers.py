from __future__ import annotations

import hashlib
import math
import re

from .ollama import ollama_embed, ollama_generate


_TOKEN_RE = re.compile(r"[A-Za-z0-9_]+")

SYSTEM_PROMPT = (
    "You are an expert at reading comprehension.\n"
    "Only answer the question and ignore all information unrelated to the question.\n"
    "Answer short and concisely, skipping over unnecessary information.\n"
    "However, be aware that the information could be in multiple notes.\n"
    "Put in all information you can find in the notes. Use cold and professional tone.\n"
    "If the information is not present in the context, say 'There is no information on this in the notes'.\n"
    "Using the following context, answer the question."
)


def build_prompt(question: str, context: str) -> str:
    return f"{SYSTEM_PROMPT} \n\n Context:\n {context} \n\n\n Question:\n {question}"


class EmbeddingProvider:
    def embed(self, text: str) -> list[float]:
        raise NotImplementedError


class LocalHashedBowEmbedding(EmbeddingProvider):
    """
    Deterministic, offline embedding:
    hashed bag-of-words with L2 normalization.
    """

    def __init__(self, *, dim: int = 384) -> None:
        self.dim = dim

    def embed(self, text: str) -> list[float]:
        vec = [0.0] * self.dim
        for token in _TOKEN_RE.findall(text.lower()):
            h = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
            vec[int.from_bytes(h, "little") % self.dim] += 1.0
        norm = math.sqrt(sum(v * v for v in vec))
        if norm > 0:
            vec = [v / norm for v in vec]
        return vec


class OllamaEmbedding(EmbeddingProvider):
    def __init__(self, *, base_url: str, model: str, timeout_s: float = 120.0) -> None:
        self.base_url = base_url
        self.model = model
        self.timeout_s = timeout_s

    def embed(self, text: str) -> list[float]:
        return ollama_embed(base_url=self.base_url, model=self.model, text=text, timeout_s=self.timeout_s)


class AnswerProvider:
    def answer(self, prompt: str) -> str:
        raise NotImplementedError


class OllamaAnswerer(AnswerProvider):
    def __init__(self, *, base_url: str, model: str, timeout_s: float = 120.0) -> None:
        self.base_url = base_url
        self.model = model
        self.timeout_s = timeout_s

    def answer(self, prompt: str) -> str:
        return ollama_generate(base_url=self.base_url, model=self.model, prompt=prompt, timeout_s=self.timeout_s)
