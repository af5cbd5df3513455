from __future__ import annotations
from typing import Any, Dict, Optional

from ..config import DEFAULT_MODEL
from ..errors import NotFoundError
from .store import ConversationStore, new_id, now


def _thread_not_found() -> NotFoundError:
    return NotFoundError("Thread not found", code="thread_not_found")


class Threads:
    def __init__(self, store: ConversationStore, default_model: str = DEFAULT_MODEL) -> None:
        self._store = store
        self._default_model = default_model

    @staticmethod
    def _view(thread: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "id": thread["id"],
            "object": "thread",
            "created_at": thread["created_at"],
            "metadata": dict(thread["metadata"]),
            "model": thread["model"],
        }

    def _get(self, id: str) -> Dict[str, Any]:
        thread = self._store.threads.get(id)
        if thread is None:
            raise _thread_not_found()
        return thread

    def create(self, metadata: Optional[Dict[str, Any]] = None, model: Optional[str] = None) -> Dict[str, Any]:
        thread = {
            "id": new_id(),
            "created_at": now(),
            "metadata": dict(metadata or {}),
            "model": model or self._default_model,
        }
        with self._store.lock:
            self._store.threads[thread["id"]] = thread
        return self._view(thread)

    def retrieve(self, id: str) -> Dict[str, Any]:
        return self._view(self._get(id))

    def modify(self, id: str, metadata: Optional[Dict[str, Any]] = None,
               model: Optional[str] = None) -> Dict[str, Any]:
        """Only metadata and model change; id and created_at never do."""
        with self._store.lock:
            thread = self._get(id)
            if metadata is not None:
                thread["metadata"] = dict(metadata)
            if model:
                thread["model"] = model
        return self._view(thread)

    def delete(self, id: str) -> Dict[str, Any]:
        with self._store.lock:
            if id not in self._store.threads:
                raise _thread_not_found()
            del self._store.threads[id]
        return {"id": id, "object": "thread.deleted", "deleted": True}

    def get_model(self, id: str) -> str:
        return self._get(id)["model"]

    def exists(self, id: str) -> bool:
        return id in self._store.threads
