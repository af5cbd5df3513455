from __future__ import annotations
import copy
from typing import Any, Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional

Payload = Dict[str, Any]
DeltaCallback = Callable[[str, Payload], None]


class StreamDelta(NamedTuple):
    """One streamed event: the text it adds and the raw event it came from."""
    text: str
    raw: Payload


def extract_delta(payload: Any) -> str:
    """
    Text carried by one streaming event.

    Reads ``candidates[0].content.parts[0].text``. Metadata-only events and
    shapes we don't recognise give an empty string instead of raising.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


class StreamAccumulator:
    """Running state of one streamed response."""

    def __init__(self) -> None:
        self._pieces: List[str] = []
        self.first: Optional[Payload] = None
        self.last: Optional[Payload] = None
        self.count = 0

    def add(self, payload: Payload) -> StreamDelta:
        delta = extract_delta(payload)
        self._pieces.append(delta)
        if self.first is None:
            self.first = payload
        self.last = payload
        self.count += 1
        return StreamDelta(delta, payload)

    @property
    def text(self) -> str:
        return "".join(self._pieces)

    def final_payload(self) -> Payload:
        """
        The closing event with its first candidate rewritten to hold the
        whole accumulated text. Finish reason and usage come from that event.
        """
        if self.last is None:
            return {}
        final = copy.deepcopy(self.last)
        if not isinstance(final, dict):
            return {"raw": final}

        candidates = final.get("candidates")
        if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
            candidates = [{}]
            final["candidates"] = candidates
        content = candidates[0].get("content")
        if not isinstance(content, dict):
            content = {"role": "model"}
            candidates[0]["content"] = content
        content["parts"] = [{"text": self.text}]
        return final


def iter_deltas(events: Iterable[Payload],
                accumulator: Optional[StreamAccumulator] = None) -> Iterator[StreamDelta]:
    """Lazily map decoded events to deltas, in arrival order."""
    acc = accumulator if accumulator is not None else StreamAccumulator()
    for event in events:
        yield acc.add(event)


def run_streaming(events: Iterable[Payload], on_delta: DeltaCallback) -> Payload:
    """
    Drive a stream to completion, calling ``on_delta(text, raw)`` once per
    event (empty deltas included) and returning the final payload.

    Errors raised while iterating ``events`` propagate as-is and stop the
    callbacks.
    """
    acc = StreamAccumulator()
    for delta in iter_deltas(events, acc):
        on_delta(delta.text, delta.raw)
    return acc.final_payload()
