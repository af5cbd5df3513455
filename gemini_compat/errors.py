from __future__ import annotations
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    ARGUMENT = "argument"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    DECODE = "decode"
    MEDIA = "media"


class GeminiError(Exception):
    """Base class for every error raised by this package.

    ``kind`` is the coarse category callers branch on; ``code`` is the
    machine-checkable tag for the specific failure (e.g. ``thread_not_found``).
    """
    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, code={self.code!r})"


class ConfigurationError(GeminiError):
    kind = ErrorKind.CONFIGURATION


class TransportError(GeminiError):
    """Non-2xx response, connection failure or timeout."""
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None,
                 code: Optional[str] = None) -> None:
        super().__init__(message, code=code)
        self.status = status
        self.body = body


class ArgumentError(GeminiError, ValueError):
    kind = ErrorKind.ARGUMENT


class NotFoundError(GeminiError, LookupError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(GeminiError):
    kind = ErrorKind.CONFLICT


class DecodeError(GeminiError):
    """A single SSE event that could not be parsed. Recorded, not raised."""
    kind = ErrorKind.DECODE

    def __init__(self, message: str, data: str = "") -> None:
        super().__init__(message, code="decode_error")
        self.data = data


class MediaError(GeminiError):
    """An image/file reference could not be fetched or read."""
    kind = ErrorKind.MEDIA

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message, code="media_unavailable")
        self.source = source
