from __future__ import annotations
from typing import Any

from ..services.http import Transport


class Models:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def list(self) -> Any:
        return self._transport.get("models")

    def retrieve(self, id: str) -> Any:
        return self._transport.get(id if id.startswith("models/") else f"models/{id}")

    def delete(self, id: str) -> Any:
        raise NotImplementedError("The Gemini API does not support deleting models")
