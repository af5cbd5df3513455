from __future__ import annotations
from typing import Any, Dict, Optional

from ..errors import ArgumentError
from ..response import Response
from ..services.http import Transport

DEFAULT_IMAGE_MODEL = "gemini-2.0-flash-exp-image-generation"

_ASPECT_RATIOS = {
    "1:1": ("256x256", "512x512", "1024x1024"),
    "3:4": ("256x384", "512x768", "1024x1536"),
    "4:3": ("384x256", "768x512", "1536x1024"),
    "9:16": ("256x448", "512x896", "1024x1792"),
    "16:9": ("448x256", "896x512", "1792x1024"),
}


def aspect_ratio(size: Optional[str]) -> Optional[str]:
    """OpenAI-style ``WxH`` size (or a ratio) -> Imagen aspect ratio."""
    if not size:
        return None
    size = str(size)
    if size in _ASPECT_RATIOS:
        return size
    for ratio, sizes in _ASPECT_RATIOS.items():
        if size in sizes:
            return ratio
    return "1:1"


class Images:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def generate(
        self,
        prompt: str,
        model: str = DEFAULT_IMAGE_MODEL,
        size: Optional[str] = None,
        n: int = 1,
        person_generation: str = "ALLOW_ADULT",
    ) -> Response:
        if not prompt:
            raise ArgumentError("prompt parameter is required", code="missing_prompt")

        if model.startswith("imagen"):
            params: Dict[str, Any] = {
                "sampleCount": min(max(int(n), 1), 4),
                "personGeneration": person_generation,
            }
            ratio = aspect_ratio(size)
            if ratio:
                params["aspectRatio"] = ratio
            body = {"instances": [{"prompt": prompt}], "parameters": params}
            return Response(self._transport.json_post(f"models/{model}:predict", body))

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["Text", "Image"]},
        }
        return Response(self._transport.json_post(f"models/{model}:generateContent", body))
