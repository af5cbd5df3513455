from __future__ import annotations
import copy
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from ..errors import ConflictError, NotFoundError
from ..services.content import message_item_to_part
from .messages import Messages
from .store import ConversationStore, new_id, now
from .threads import Threads

if TYPE_CHECKING:
    from ..client import Client

log = logging.getLogger(__name__)

# run parameters that shape the run itself rather than the request body
_RUN_KEYS = {"assistant_id", "instructions", "system_instruction", "model", "metadata"}


class Runs:
    """
    One run = one model call over the thread's history, whose reply is
    appended to the thread. Runs complete before ``create`` returns, so the
    only states are ``running`` and ``completed``.
    """

    def __init__(self, store: ConversationStore, threads: Threads, messages: Messages,
                 client: "Client") -> None:
        self._store = store
        self._threads = threads
        self._messages = messages
        self._client = client

    @staticmethod
    def _public(run: Dict[str, Any]) -> Dict[str, Any]:
        return copy.deepcopy({k: v for k, v in run.items() if k != "response"})

    def _contents(self, thread_id: str) -> List[Dict[str, Any]]:
        contents = []
        for message in self._messages.list(thread_id)["data"]:
            parts = [p for p in (message_item_to_part(item) for item in message["content"]) if p is not None]
            contents.append({"role": message["role"], "parts": parts})
        return contents

    def create(self, thread_id: str, parameters: Optional[Dict[str, Any]] = None,
               stream: Optional[Callable[[str], None]] = None) -> Dict[str, Any]:
        """
        Run the model over the thread.

        ``parameters`` may carry ``model`` (defaults to the thread's model),
        ``system_instruction`` (or ``instructions``) and ``metadata``; any other
        key goes into the request body as-is. With ``stream``, each text delta
        is passed to it as it arrives.

        A reply without candidates or text parts (or an empty streamed reply)
        adds no message. If the model call fails the error propagates and no
        run is stored.
        """
        params = dict(parameters or {})
        self._threads.retrieve(thread_id)

        model = params.get("model") or self._threads.get_model(thread_id)
        body: Dict[str, Any] = {"contents": self._contents(thread_id), "model": model}

        system_instruction = params.get("system_instruction") or params.get("instructions")
        if system_instruction:
            body["system_instruction"] = {"parts": [{"text": str(system_instruction)}]}
        body.update({k: v for k, v in params.items() if k not in _RUN_KEYS})

        run = {
            "id": new_id(),
            "object": "thread.run",
            "created_at": now(),
            "thread_id": thread_id,
            "status": "running",
            "model": model,
            "metadata": dict(params.get("metadata") or {}),
            "response": None,
        }
        with self._store.lock:
            self._store.runs[run["id"]] = run

        try:
            if stream is not None:
                pieces: List[str] = []

                def on_delta(text: str, raw: Dict[str, Any]) -> None:
                    stream(text)
                    pieces.append(text)

                response = self._client.chat(parameters=body, stream=on_delta)
                reply: Optional[str] = "".join(pieces) or None
            else:
                response = self._client.chat(parameters=body)
                reply = self._first_text(response)
        except Exception:
            # a failed call leaves no run behind
            with self._store.lock:
                self._store.runs.pop(run["id"], None)
            raise

        if reply is not None:
            self._messages.create(thread_id, content=reply, role="model")
        else:
            log.debug("Run %s on thread %s produced no reply text", run["id"], thread_id)

        with self._store.lock:
            run["status"] = "completed"
            run["response"] = response
        return self._public(run)

    @staticmethod
    def _first_text(response: Any) -> Optional[str]:
        try:
            parts = response["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            return None
        for part in parts or ():
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                return part["text"]
        return None

    def _get(self, thread_id: str, id: str) -> Dict[str, Any]:
        run = self._store.runs.get(id)
        if run is None:
            raise NotFoundError("Run not found", code="run_not_found")
        if run["thread_id"] != thread_id:
            raise ConflictError("Run does not belong to thread", code="invalid_thread_run")
        return run

    def retrieve(self, thread_id: str, id: str) -> Dict[str, Any]:
        return self._public(self._get(thread_id, id))

    def cancel(self, thread_id: str, id: str) -> Dict[str, Any]:
        """No in-flight run is ever observable, so this only rejects completed runs."""
        run = self._get(thread_id, id)
        if run["status"] == "completed":
            raise ConflictError("Run is already completed", code="run_already_completed")
        return self._public(run)
