"""
gemini_compat - OpenAI-style ergonomics over the Gemini REST API.

Chat/completions, embeddings, streaming, structured output, file upload and an
in-memory threads/messages/runs emulation on top of ``generateContent``.
"""

from .version import __version__
from .client import Client
from .config import Config, setup_logging
from .errors import (
    ErrorKind,
    GeminiError,
    ConfigurationError,
    TransportError,
    ArgumentError,
    NotFoundError,
    ConflictError,
    DecodeError,
    MediaError,
)
from .response import Response
from .services.streaming import StreamAccumulator, StreamDelta

__all__ = [
    "__version__",
    "Client",
    "Config",
    "setup_logging",
    "Response",
    "StreamAccumulator",
    "StreamDelta",
    # Errors
    "ErrorKind",
    "GeminiError",
    "ConfigurationError",
    "TransportError",
    "ArgumentError",
    "NotFoundError",
    "ConflictError",
    "DecodeError",
    "MediaError",
]
