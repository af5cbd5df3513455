from __future__ import annotations
import codecs
import json
import logging
from typing import Any, Dict, Iterator, List, Union

from ..errors import DecodeError

log = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """
    Turns raw chunks of a ``text/event-stream`` body into parsed JSON payloads.

    One decoder per stream. A line cut in half by a chunk boundary is held
    back until the rest arrives, so only complete lines are parsed. Call
    :meth:`flush` once the body is exhausted.

    Malformed ``data:`` lines are recorded in :attr:`errors` and skipped.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.errors: List[DecodeError] = []

    def feed(self, chunk: Union[bytes, str]) -> Iterator[Dict[str, Any]]:
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split("\n")
        for line in lines:
            yield from self._decode_line(line.rstrip("\r"))

    def flush(self) -> Iterator[Dict[str, Any]]:
        rest = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        for line in rest.split("\n"):
            yield from self._decode_line(line.rstrip("\r"))

    def _decode_line(self, line: str) -> Iterator[Dict[str, Any]]:
        if not line.startswith(DATA_PREFIX):
            return
        data = line[len(DATA_PREFIX):].strip()
        if not data or data == DONE_SENTINEL:
            return
        try:
            parsed = json.loads(data)
        except ValueError as e:
            log.debug("Bad SSE chunk: %s, data: %s...", e, data[:100])
            self.errors.append(DecodeError(f"Bad chunk: {e}", data=data))
            return
        yield parsed


def decode_chunk(chunk: Union[bytes, str]) -> Iterator[Dict[str, Any]]:
    """Decode one self-contained chunk; a trailing unterminated line is still parsed."""
    decoder = SSEDecoder()
    yield from decoder.feed(chunk)
    yield from decoder.flush()
