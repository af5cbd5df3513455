from __future__ import annotations
import copy
from typing import Any, Dict, List, Optional

from ..errors import ArgumentError, NotFoundError
from ..services.content import format_message_content
from .store import ConversationStore, new_id, now
from .threads import Threads

ROLES = ("user", "model")


def normalize_role(role: Optional[str]) -> str:
    if not role:
        return "user"
    role = role.lower()
    if role == "assistant":
        return "model"
    if role not in ROLES:
        raise ArgumentError(f"Unsupported message role '{role}'. Expected one of {ROLES} or 'assistant'.",
                            code="invalid_role")
    return role


class Messages:
    """
    Messages belong to a thread and are kept in insertion order.
    Deleting a message only flags it; flagged messages drop out of ``list``.
    """

    def __init__(self, store: ConversationStore, threads: Threads) -> None:
        self._store = store
        self._threads = threads

    def _thread_messages(self, thread_id: str) -> List[Dict[str, Any]]:
        # raises thread_not_found before touching the message store
        self._threads.retrieve(thread_id)
        return self._store.messages.get(thread_id, [])

    def _find(self, thread_id: str, id: str, include_deleted: bool = False) -> Dict[str, Any]:
        for message in self._thread_messages(thread_id):
            if message["id"] == id and (include_deleted or not message.get("deleted")):
                return message
        raise NotFoundError("Message not found", code="message_not_found")

    def create(self, thread_id: str, content: Any = None, role: Optional[str] = "user",
               metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        self._threads.retrieve(thread_id)
        message = {
            "id": new_id(),
            "object": "thread.message",
            "created_at": now(),
            "thread_id": thread_id,
            "role": normalize_role(role),
            "content": format_message_content(content),
            "deleted": False,
            "metadata": dict(metadata or {}),
        }
        with self._store.lock:
            bucket = self._store.messages.setdefault(thread_id, [])
            bucket.append(message)
        return copy.deepcopy(message)

    def list(self, thread_id: str) -> Dict[str, Any]:
        data = [copy.deepcopy(m) for m in self._thread_messages(thread_id) if not m.get("deleted")]
        return {
            "object": "list",
            "data": data,
            "first_id": data[0]["id"] if data else None,
            "last_id": data[-1]["id"] if data else None,
            "has_more": False,
        }

    def retrieve(self, thread_id: str, id: str, include_deleted: bool = False) -> Dict[str, Any]:
        return copy.deepcopy(self._find(thread_id, id, include_deleted=include_deleted))

    def modify(self, thread_id: str, id: str, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        with self._store.lock:
            message = self._find(thread_id, id)
            if metadata is not None:
                message["metadata"] = dict(metadata)
        return copy.deepcopy(message)

    def delete(self, thread_id: str, id: str) -> Dict[str, Any]:
        with self._store.lock:
            message = self._find(thread_id, id, include_deleted=True)
            message["deleted"] = True
        return {"id": id, "object": "thread.message.deleted", "deleted": True}
