import json

import pytest
from requests.structures import CaseInsensitiveDict

import gemini_compat.config as config_mod
from gemini_compat import Client


class DummyResponse:
    def __init__(self, status_code=200, body=None, chunks=None, headers=None):
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)
        self.status_code = status_code
        self.text = body if body is not None else "".join(
            c.decode("utf-8") if isinstance(c, bytes) else c for c in (chunks or [])
        )
        self.content = self.text.encode("utf-8")
        self.headers = CaseInsensitiveDict(headers or {})
        self._chunks = chunks or []
        self.closed = False

    def iter_content(self, chunk_size=None):
        for chunk in self._chunks:
            yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class DummySession:
    """Stands in for requests.Session: records calls, replays queued responses."""

    def __init__(self):
        self.calls = []
        self.responses = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    @property
    def last(self):
        return self.calls[-1]


def sse(*events, done=True):
    lines = [f"data: {json.dumps(e)}\n" for e in events]
    if done:
        lines.append("data: [DONE]\n")
    return "".join(lines)


def text_event(text, **extra):
    event = {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}
    event.update(extra)
    return event


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    monkeypatch.setattr(config_mod, "load_dotenv", lambda *a, **kw: None)
    for name in ("GEMINI_API_KEY", "GEMINI_API_BASE", "GEMINI_UPLOAD_BASE", "GEMINI_MODEL",
                 "GEMINI_TIMEOUT", "GEMINI_MAX_RETRIES", "GEMINI_LOG_ERRORS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def session():
    return DummySession()


@pytest.fixture
def client(session):
    return Client(api_key="test-api-key", session=session, uri_base="https://api.gemini.test/v1beta")
