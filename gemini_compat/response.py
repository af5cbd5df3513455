from __future__ import annotations
import json
from typing import Any, Dict, List, Optional


def _dig(data: Any, *keys: Any) -> Any:
    for key in keys:
        try:
            data = data[key]
        except (KeyError, IndexError, TypeError):
            return None
    return data


class Response:
    """
    Read-only view over one parsed generateContent (or similar) response.

    Accessors never raise on missing fields; they return ``None``, ``[]``,
    ``{}`` or ``0`` instead.
    """

    def __init__(self, raw_data: Any) -> None:
        self._raw = raw_data

    @property
    def raw_data(self) -> Any:
        return self._raw

    # -- classification ------------------------------------------------------

    @property
    def valid(self) -> bool:
        candidates = _dig(self._raw, "candidates")
        return isinstance(candidates, list) and len(candidates) > 0

    @property
    def success(self) -> bool:
        return self.valid and "error" not in self._raw

    @property
    def error(self) -> Optional[str]:
        if self.valid:
            return None
        # empty responses have no error so str() can fall back to "Empty response"
        if not self._raw:
            return None
        message = _dig(self._raw, "error", "message")
        return message if message else "Unknown error"

    # -- content -------------------------------------------------------------

    @property
    def candidates(self) -> List[Dict[str, Any]]:
        candidates = _dig(self._raw, "candidates")
        return candidates if isinstance(candidates, list) else []

    @property
    def first_candidate(self) -> Optional[Dict[str, Any]]:
        return _dig(self._raw, "candidates", 0)

    @property
    def parts(self) -> List[Dict[str, Any]]:
        if not self.valid:
            return []
        parts = _dig(self.first_candidate, "content", "parts")
        return [p for p in parts if isinstance(p, dict)] if isinstance(parts, list) else []

    @property
    def text_parts(self) -> List[str]:
        return [p["text"] for p in self.parts if "text" in p]

    @property
    def text(self) -> Optional[str]:
        if not self.valid:
            return None
        return "\n".join(self.text_parts)

    @property
    def image_parts(self) -> List[Dict[str, Any]]:
        return [
            p for p in self.parts
            if str(_dig(p, "inline_data", "mime_type") or _dig(p, "inlineData", "mimeType") or "").startswith("image/")
        ]

    @property
    def images(self) -> List[Dict[str, str]]:
        """Generated images as ``{"mime_type", "data"}`` (inline parts or Imagen predictions)."""
        images = []
        for part in self.image_parts:
            inline = part.get("inline_data") or part.get("inlineData") or {}
            images.append({
                "mime_type": inline.get("mime_type") or inline.get("mimeType"),
                "data": inline.get("data"),
            })
        predictions = _dig(self._raw, "predictions")
        if isinstance(predictions, list):
            for pred in predictions:
                if isinstance(pred, dict) and pred.get("bytesBase64Encoded"):
                    images.append({
                        "mime_type": pred.get("mimeType", "image/png"),
                        "data": pred["bytesBase64Encoded"],
                    })
        return images

    @property
    def function_calls(self) -> List[Dict[str, Any]]:
        return [p["functionCall"] for p in self.parts if "functionCall" in p]

    @property
    def full_content(self) -> str:
        rendered = []
        for part in self.parts:
            if "text" in part:
                rendered.append(part["text"])
            elif part in self.image_parts:
                inline = part.get("inline_data") or part.get("inlineData")
                rendered.append(f"[IMAGE: {inline.get('mime_type') or inline.get('mimeType')}]")
            else:
                rendered.append("[UNKNOWN CONTENT]")
        return "\n".join(rendered)

    @property
    def json(self) -> Any:
        """Structured output: the response text parsed as JSON, or ``None``."""
        text = self.text
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None

    @property
    def is_json(self) -> bool:
        return self.json is not None

    @property
    def role(self) -> Optional[str]:
        return _dig(self.first_candidate, "content", "role")

    # -- metadata ------------------------------------------------------------

    @property
    def finish_reason(self) -> Optional[str]:
        return _dig(self.first_candidate, "finishReason")

    @property
    def safety_blocked(self) -> bool:
        return self.finish_reason == "SAFETY"

    @property
    def safety_ratings(self) -> List[Dict[str, Any]]:
        return _dig(self.first_candidate, "safetyRatings") or []

    @property
    def usage(self) -> Dict[str, Any]:
        usage = _dig(self._raw, "usageMetadata") or _dig(self._raw, "usage")
        return usage if isinstance(usage, dict) else {}

    def _usage_count(self, *names: str) -> int:
        usage = self.usage
        for name in names:
            if usage.get(name) is not None:
                return usage[name]
        return 0

    @property
    def prompt_tokens(self) -> int:
        return self._usage_count("promptTokenCount", "promptTokens")

    @property
    def completion_tokens(self) -> int:
        return self._usage_count("candidatesTokenCount", "candidateTokens")

    @property
    def total_tokens(self) -> int:
        return self._usage_count("totalTokenCount", "totalTokens")

    def __str__(self) -> str:
        return self.text or self.error or "Empty response"

    def __repr__(self) -> str:
        text = self.text
        preview = "None" if text is None else repr(text[:30] + ("..." if len(text) > 30 else ""))
        return f"<Response text={preview} success={self.success}>"
