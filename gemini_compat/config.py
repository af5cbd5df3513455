from __future__ import annotations
import os
import sys
import logging
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_URI_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_UPLOAD_URI_BASE = "https://generativelanguage.googleapis.com/upload/v1beta"
DEFAULT_MODEL = "gemini-2.0-flash-lite"
DEFAULT_TIMEOUT: Tuple[float, float] = (5, 300)


def _env_bool(value: Optional[str]) -> Optional[bool]:
    if value is None:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_timeout(value: Optional[str]) -> Optional[Tuple[float, float]]:
    # "30" -> (5, 30); "10,120" -> (10, 120)
    if not value:
        return None
    pieces = [p.strip() for p in value.split(",") if p.strip()]
    try:
        if len(pieces) == 1:
            return (DEFAULT_TIMEOUT[0], float(pieces[0]))
        if len(pieces) == 2:
            return (float(pieces[0]), float(pieces[1]))
    except ValueError:
        pass
    raise ConfigurationError(f"Invalid GEMINI_TIMEOUT: {value!r}", code="invalid_config")


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"Invalid {name}: {value!r}", code="invalid_config") from None


class Config:
    """
    Client settings.

    Required env (unless passed explicitly):
      - GEMINI_API_KEY

    Optional env:
      - GEMINI_API_BASE       (default: https://generativelanguage.googleapis.com/v1beta)
      - GEMINI_UPLOAD_BASE    (default: https://generativelanguage.googleapis.com/upload/v1beta)
      - GEMINI_MODEL          (fallback model when none is given at call time)
      - GEMINI_TIMEOUT        ("read" or "connect,read" seconds)
      - GEMINI_MAX_RETRIES    (default 0, retries are left to the caller)
      - GEMINI_LOG_ERRORS     (log transport/stream failures at WARNING)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        uri_base: str = DEFAULT_URI_BASE,
        upload_uri_base: str = DEFAULT_UPLOAD_URI_BASE,
        request_timeout: Tuple[float, float] = DEFAULT_TIMEOUT,
        max_retries: int = 0,
        extra_headers: Optional[Dict[str, str]] = None,
        log_errors: bool = False,
        default_model: str = DEFAULT_MODEL,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is required for the Gemini client",
                                     code="missing_api_key")
        self.api_key = api_key
        self.uri_base = uri_base.rstrip("/")
        self.upload_uri_base = upload_uri_base.rstrip("/")
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.extra_headers = dict(extra_headers or {})
        self.log_errors = log_errors
        self.default_model = default_model

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Explicit overrides win over the environment, which wins over defaults."""
        load_dotenv()
        env = {
            "api_key": os.environ.get("GEMINI_API_KEY"),
            "uri_base": os.environ.get("GEMINI_API_BASE"),
            "upload_uri_base": os.environ.get("GEMINI_UPLOAD_BASE"),
            "default_model": os.environ.get("GEMINI_MODEL"),
            "request_timeout": _env_timeout(os.environ.get("GEMINI_TIMEOUT")),
            "max_retries": _env_int("GEMINI_MAX_RETRIES"),
            "log_errors": _env_bool(os.environ.get("GEMINI_LOG_ERRORS")),
        }
        settings = {k: v for k, v in env.items() if v is not None}
        settings.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**settings)

    def __repr__(self) -> str:
        return (f"<Config uri_base={self.uri_base!r} default_model={self.default_model!r} "
                f"api_key=[REDACTED]>")


def setup_logging(level: Optional[str] = None) -> None:
    """Route library logs to stdout. Applications call this once at startup."""
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        handlers=[logging.StreamHandler(sys.stdout)],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
