from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Optional

from ..errors import ArgumentError
from ..response import Response
from ..services.http import Transport
from .files import guess_mime_type

if TYPE_CHECKING:
    from .files import Files

DEFAULT_CACHE_MODEL = "gemini-1.5-flash"


class CachedContent:
    """Context caching: keep an uploaded document server-side for reuse across calls."""

    def __init__(self, transport: Transport, files: "Files") -> None:
        self._transport = transport
        self._files = files

    def create(
        self,
        file_path: Optional[str] = None,
        file_uri: Optional[str] = None,
        system_instruction: Optional[str] = None,
        mime_type: Optional[str] = None,
        model: str = DEFAULT_CACHE_MODEL,
        ttl: str = "86400s",
        **parameters: Any,
    ) -> Response:
        if file_path and not file_uri:
            file_uri = self._files.upload_path(file_path)["file_uri"]
        if not file_uri:
            raise ArgumentError("file_uri or file_path is required", code="missing_file")

        request: Dict[str, Any] = {
            "model": model if model.startswith("models/") else f"models/{model}",
            "contents": [{
                "role": "user",
                "parts": [{"file_data": {"mime_type": mime_type or guess_mime_type(file_path),
                                         "file_uri": file_uri}}],
            }],
            "ttl": ttl,
        }
        if system_instruction:
            request["system_instruction"] = {"role": "system", "parts": [{"text": system_instruction}]}
        request.update(parameters)
        return Response(self._transport.json_post("cachedContents", request))

    def list(self, **parameters: Any) -> Response:
        return Response(self._transport.get("cachedContents", params=parameters))

    def update(self, name: str, ttl: str = "86400s") -> Response:
        return Response(self._transport.patch(name, {"ttl": ttl}, {"updateMask": "ttl"}))

    def delete(self, name: str) -> Response:
        return Response(self._transport.delete(name))
