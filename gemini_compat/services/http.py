from __future__ import annotations
import json
import logging
from typing import Any, Callable, Dict, Iterator, Optional

import requests
from requests.adapters import HTTPAdapter, Retry
from urllib3.exceptions import ReadTimeoutError

from ..version import __version__
from ..config import Config
from ..errors import TransportError
from .sse import SSEDecoder

log = logging.getLogger(__name__)

Payload = Dict[str, Any]
EventCallback = Callable[[Payload], None]


def parse_body(body: Any) -> Any:
    """
    Parse a response body the way the API tends to send it.

    Empty bodies give ``None``; non-JSON text comes back unchanged; bodies made
    of back-to-back objects (``{...}\\n{...}``) become a list.
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return body
    if not body.strip():
        return None

    original = body
    text = body.strip()
    if not text.startswith(("{", "[")):
        return original
    if "}\n{" in text:
        text = "[" + text.replace("}\n{", "},{") + "]"
    try:
        return json.loads(text)
    except ValueError:
        return original



def _is_read_timeout(error: requests.RequestException) -> bool:
    # iter_content re-raises urllib3's ReadTimeoutError wrapped in ConnectionError
    if isinstance(error, requests.Timeout):
        return True
    return any(isinstance(arg, ReadTimeoutError) for arg in error.args)


class Transport:
    """
    Thin wrapper over a ``requests.Session`` for the Gemini REST API.

    The API key always travels as the ``key`` query parameter. Non-2xx
    responses and connection failures raise :class:`TransportError`.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self._extra_headers: Dict[str, str] = dict(config.extra_headers)

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=config.max_retries,
                backoff_factor=0.5,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=frozenset(["GET", "POST", "DELETE"]),
                raise_on_status=False,
            )
            session.mount("https://", HTTPAdapter(max_retries=retries))
            session.mount("http://", HTTPAdapter(max_retries=retries))
        self._session = session

    # -- headers -----------------------------------------------------------

    def add_headers(self, headers: Dict[str, Any]) -> None:
        self._extra_headers.update({str(k): str(v) for k, v in headers.items()})

    def reset_headers(self) -> None:
        self._extra_headers = {}

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"gemini-compat-python/{__version__}",
        }
        headers.update(self._extra_headers)
        return headers

    def url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.config.uri_base}/{path.lstrip('/')}"

    def _params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        merged = dict(params or {})
        merged["key"] = self.config.api_key
        return merged

    # -- plain requests ----------------------------------------------------

    def raw_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        with_key: bool = True,
    ) -> requests.Response:
        """Send a request and return the ``requests.Response`` after the status check."""
        url = self.url(path)
        try:
            resp = self._session.request(
                method,
                url,
                params=self._params(params) if with_key else params,
                json=json_body,
                data=data,
                headers=headers if headers is not None else self._headers(),
                timeout=self.config.request_timeout,
            )
        except requests.Timeout as e:
            self._log_failure(method, url, e)
            raise TransportError(f"Gemini request timed out: {e}", code="timeout") from e
        except requests.RequestException as e:
            self._log_failure(method, url, e)
            raise TransportError(f"Gemini connectivity error: {e}", code="connection_error") from e

        if not 200 <= resp.status_code < 300:
            body = parse_body(resp.text)
            self._log_failure(method, url, f"HTTP {resp.status_code}")
            raise TransportError(
                f"Gemini request failed (HTTP {resp.status_code}): {str(resp.text)[:500]}",
                status=resp.status_code,
                body=body,
                code="http_error",
            )
        return resp

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                json_body: Any = None) -> Any:
        resp = self.raw_request(method, path, params=params, json_body=json_body)
        return parse_body(resp.text)

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str) -> Any:
        return self.request("POST", path)

    def delete(self, path: str) -> Any:
        return self.request("DELETE", path)

    def patch(self, path: str, body: Optional[Payload] = None,
              query_parameters: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("PATCH", path, params=query_parameters, json_body=body)

    def json_post(
        self,
        path: str,
        body: Optional[Payload] = None,
        query_parameters: Optional[Dict[str, Any]] = None,
        on_event: Optional[EventCallback] = None,
    ) -> Any:
        """
        POST a JSON body.

        A callable under ``body["stream"]`` (or ``on_event``) switches to SSE
        mode: the callable is kept out of the serialized body, ``alt=sse`` is
        added and every decoded event is handed to it in arrival order. In
        that mode the return value is the list of decoded events.
        """
        payload = dict(body or {})
        stream = payload.get("stream")
        if callable(stream):
            payload.pop("stream")
            on_event = on_event or stream

        if on_event is None:
            return self.request("POST", path, params=query_parameters, json_body=payload)

        events = []
        for event in self.stream(path, payload, query_parameters):
            on_event(event)
            events.append(event)
        return events

    # -- streaming ---------------------------------------------------------

    def stream(self, path: str, body: Optional[Payload] = None,
               query_parameters: Optional[Dict[str, Any]] = None) -> Iterator[Payload]:
        """
        POST with ``alt=sse`` and yield decoded JSON events as they arrive.

        The request is only sent once iteration starts. Malformed events are
        skipped; a non-200 status raises before any event is yielded.
        """
        params = dict(query_parameters or {})
        params["alt"] = "sse"
        url = self.url(path)
        decoder = SSEDecoder()

        try:
            resp = self._session.request(
                "POST",
                url,
                params=self._params(params),
                json=body,
                headers=self._headers(),
                timeout=self.config.request_timeout,
                stream=True,
            )
        except requests.Timeout as e:
            self._log_failure("POST", url, e)
            raise TransportError(f"Gemini request timed out: {e}", code="timeout") from e
        except requests.RequestException as e:
            self._log_failure("POST", url, e)
            raise TransportError(f"Gemini connectivity error: {e}", code="connection_error") from e

        with resp:
            if resp.status_code != 200:
                text = resp.text
                self._log_failure("POST", url, f"HTTP {resp.status_code}")
                raise TransportError(
                    f"Gemini stream failed (HTTP {resp.status_code}): {str(text)[:500]}",
                    status=resp.status_code,
                    body=parse_body(text),
                    code="http_error",
                )
            try:
                for chunk in resp.iter_content(chunk_size=None):
                    if not chunk:
                        continue
                    yield from decoder.feed(chunk)
                yield from decoder.flush()
            except requests.RequestException as e:
                self._log_failure("POST", url, e)
                if _is_read_timeout(e):
                    raise TransportError(f"Gemini stream timed out: {e}", code="timeout") from e
                raise TransportError(f"Gemini stream interrupted: {e}", code="stream_interrupted") from e

        if decoder.errors:
            log.debug("Skipped %d malformed SSE events from %s", len(decoder.errors), path)

    def _log_failure(self, method: str, url: str, reason: Any) -> None:
        if self.config.log_errors:
            log.warning("Gemini %s %s failed: %s", method, url.split("?")[0], reason)
