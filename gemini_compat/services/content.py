from __future__ import annotations
import base64
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import urlparse

import requests

from ..errors import ArgumentError, MediaError

log = logging.getLogger(__name__)

Part = Dict[str, Any]
Fetcher = Callable[[str], bytes]
Reader = Callable[[str], bytes]

DEFAULT_IMAGE_MIME = "image/jpeg"

_EXTENSION_MIME = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


# -- prompt item variants ----------------------------------------------------

@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class RemoteImage:
    url: str


@dataclass(frozen=True)
class LocalImage:
    path: str


@dataclass(frozen=True)
class InlineImage:
    data: str
    mime_type: str = DEFAULT_IMAGE_MIME


@dataclass(frozen=True)
class RawPart:
    """Anything we don't model; sent to the API as given."""
    part: Dict[str, Any] = field(default_factory=dict)


PromptItem = Union[Text, RemoteImage, LocalImage, InlineImage, RawPart]


# -- media helpers -------------------------------------------------------------

def sniff_image_mime(source: str, data: bytes) -> str:
    """Image MIME type from the file extension, then the magic bytes, else JPEG."""
    ext = os.path.splitext(urlparse(source).path if "://" in source else source)[1].lower()
    if ext in _EXTENSION_MIME:
        return _EXTENSION_MIME[ext]

    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_IMAGE_MIME


def fetch_url(url: str, timeout: float = 30) -> bytes:
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise MediaError(f"Failed to fetch image from {url}: {e}", source=url) from e
    return resp.content


def read_file(path: str) -> bytes:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as e:
        raise MediaError(f"Failed to read image file {path}: {e.strerror or e}", source=path) from e


def inline_part(data: bytes, mime_type: str) -> Part:
    return {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(data).decode("ascii")}}


# -- loose input -> variants -------------------------------------------------

def to_item(item: Any) -> PromptItem:
    """Map one caller-supplied list element onto a prompt variant."""
    if isinstance(item, (Text, RemoteImage, LocalImage, InlineImage, RawPart)):
        return item
    if not isinstance(item, dict):
        return Text(str(item))

    kind = item.get("type")
    if kind is None:
        if "text" in item and len(item) == 1:
            return Text(str(item["text"]))
        return RawPart(item)

    if kind == "text":
        text = item.get("text")
        if isinstance(text, dict):
            text = text.get("value", "")
        return Text("" if text is None else str(text))

    if kind == "image_url":
        ref = item.get("image_url")
        url = ref.get("url") if isinstance(ref, dict) else ref
        if not url:
            raise ArgumentError("image_url item needs a url", code="missing_image_url")
        return RemoteImage(str(url))

    if kind == "image_file":
        ref = item.get("image_file")
        path = ref.get("file_path") if isinstance(ref, dict) else ref
        if not path:
            raise ArgumentError("image_file item needs a file_path", code="missing_image_path")
        return LocalImage(str(path))

    if kind == "image_base64":
        ref = item.get("image_base64") or {}
        data = ref.get("data") if isinstance(ref, dict) else None
        if not data:
            raise ArgumentError("image_base64 item needs base64 data", code="missing_image_data")
        return InlineImage(data, ref.get("mime_type") or DEFAULT_IMAGE_MIME)

    return RawPart(item)


def to_part(item: PromptItem, fetch: Fetcher = fetch_url, read: Reader = read_file) -> Part:
    """Render a prompt variant as an API part."""
    if isinstance(item, Text):
        return {"text": item.text}
    if isinstance(item, RemoteImage):
        data = fetch(item.url)
        return inline_part(data, sniff_image_mime(item.url, data))
    if isinstance(item, LocalImage):
        data = read(item.path)
        return inline_part(data, sniff_image_mime(item.path, data))
    if isinstance(item, InlineImage):
        return {"inline_data": {"mime_type": item.mime_type, "data": item.data}}
    if isinstance(item, RawPart):
        return item.part
    raise ArgumentError(f"Unsupported prompt item: {item!r}")


def format_parts(items: List[Any], fetch: Fetcher = fetch_url, read: Reader = read_file) -> List[Part]:
    return [to_part(to_item(item), fetch=fetch, read=read) for item in items]


def format_content(value: Any, fetch: Fetcher = fetch_url, read: Reader = read_file) -> Dict[str, Any]:
    """
    Normalise a prompt into ``{"parts": [...]}``.

    Accepts a string, a dict already holding ``parts``, a list of typed items
    (``text``, ``image_url``, ``image_file``, ``image_base64``), a list of plain
    values, or anything else (stringified).
    """
    if isinstance(value, str):
        return {"parts": [{"text": value}]}
    if isinstance(value, dict):
        if "parts" in value:
            return value
        return {"parts": format_parts([value], fetch=fetch, read=read)}
    if isinstance(value, (list, tuple)):
        return {"parts": format_parts(list(value), fetch=fetch, read=read)}
    if isinstance(value, (Text, RemoteImage, LocalImage, InlineImage, RawPart)):
        return {"parts": [to_part(value, fetch=fetch, read=read)]}
    return {"parts": [{"text": str(value)}]}


# -- thread message content ----------------------------------------------------

def format_message_content(content: Any) -> List[Dict[str, Any]]:
    """
    Normalise message content into typed items, e.g.
    ``[{"type": "text", "text": {"value": "hi"}}]``.
    """
    def text_item(value: Any) -> Dict[str, Any]:
        return {"type": "text", "text": {"value": "" if value is None else str(value)}}

    if isinstance(content, str):
        return [text_item(content)]
    if isinstance(content, (list, tuple)):
        return [dict(item) if isinstance(item, dict) else text_item(item) for item in content]
    if isinstance(content, dict):
        return [dict(content)]
    return [text_item(content)]


def message_item_to_part(item: Dict[str, Any], fetch: Fetcher = fetch_url,
                         read: Reader = read_file) -> Optional[Part]:
    """Stored message item -> API part; ``None`` for items with nothing to send."""
    if item.get("type") == "text":
        text = item.get("text")
        value = text.get("value") if isinstance(text, dict) else text
        return {"text": "" if value is None else str(value)}
    try:
        return to_part(to_item(item), fetch=fetch, read=read)
    except ArgumentError:
        log.debug("Dropping message item without usable content: %r", item)
        return None
