from __future__ import annotations
from typing import Any

from ..services.http import Transport

DEFAULT_EMBEDDING_MODEL = "text-embedding-004"


class Embeddings:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def create(self, input: Any, model: str = DEFAULT_EMBEDDING_MODEL, **parameters: Any) -> Any:
        if isinstance(input, str):
            parts = [{"text": input}]
        elif isinstance(input, (list, tuple)):
            parts = [{"text": str(text)} for text in input]
        else:
            parts = [{"text": str(input)}]

        payload = {"content": {"parts": parts}}
        payload.update(parameters)
        return self._transport.json_post(f"models/{model}:embedContent", payload)
