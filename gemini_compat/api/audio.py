from __future__ import annotations
import base64
from typing import IO, Any, Dict, Optional

from ..errors import ArgumentError
from ..response import Response
from ..services.http import Transport
from .files import guess_mime_type

DEFAULT_AUDIO_MODEL = "gemini-1.5-flash"


class Audio:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def transcribe(
        self,
        file: Optional[IO[bytes]] = None,
        file_uri: Optional[str] = None,
        model: str = DEFAULT_AUDIO_MODEL,
        language: Optional[str] = None,
        content_text: str = "Transcribe this audio clip",
        mime_type: Optional[str] = None,
        **parameters: Any,
    ) -> Response:
        """Transcribe inline audio bytes or a previously uploaded file URI."""
        if file is None and not file_uri:
            raise ArgumentError("No audio file specified", code="missing_audio")

        if language:
            content_text = f"{content_text} in {language}"

        if file_uri:
            # URIs carry no extension to go on
            media: Dict[str, Any] = {"file_data": {"mime_type": mime_type or "audio/mp3", "file_uri": file_uri}}
        else:
            name = getattr(file, "name", None)
            if not mime_type:
                guessed = guess_mime_type(name if isinstance(name, str) else None)
                mime_type = guessed if guessed.startswith("audio/") else "audio/mp3"
            file.seek(0)
            media = {"inline_data": {"mime_type": mime_type,
                                     "data": base64.b64encode(file.read()).decode("ascii")}}

        payload: Dict[str, Any] = {"contents": [{"parts": [{"text": content_text}, media]}]}
        payload.update({k: v for k, v in parameters.items() if k != "contents"})
        return Response(self._transport.json_post(f"models/{model}:generateContent", payload))
