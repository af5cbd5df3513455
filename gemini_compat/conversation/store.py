from __future__ import annotations
import threading
import time
import uuid
from typing import Any, Dict, List, MutableMapping, Optional


def new_id() -> str:
    return str(uuid.uuid4())


def now() -> int:
    return int(time.time())


class ConversationStore:
    """
    Process-local state behind the threads/messages/runs emulation.

    The three mappings are injectable so a persistent backend can stand in
    for the default dicts. Mutations go through ``lock``.
    """

    def __init__(
        self,
        threads: Optional[MutableMapping[str, Dict[str, Any]]] = None,
        messages: Optional[MutableMapping[str, List[Dict[str, Any]]]] = None,
        runs: Optional[MutableMapping[str, Dict[str, Any]]] = None,
    ) -> None:
        self.threads = threads if threads is not None else {}
        self.messages = messages if messages is not None else {}
        self.runs = runs if runs is not None else {}
        self.lock = threading.RLock()
