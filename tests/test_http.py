import pytest
import requests
from urllib3.exceptions import ReadTimeoutError

from conftest import DummyResponse, sse, text_event
from gemini_compat.config import Config
from gemini_compat.errors import ErrorKind, TransportError
from gemini_compat.services.http import Transport, parse_body

BASE = "https://api.gemini.test/v1beta"


@pytest.fixture
def transport(session):
    return Transport(Config(api_key="test-api-key", uri_base=BASE), session=session)


class TestParseBody:
    def test_plain_text_is_returned_unchanged(self):
        assert parse_body("plain text") == "plain text"

    def test_back_to_back_objects_become_a_list(self):
        assert parse_body("{}\n{}") == [{}, {}]

    def test_empty_body(self):
        assert parse_body(None) is None
        assert parse_body("") is None

    def test_json_object_and_array(self):
        assert parse_body('{"result": "success"}') == {"result": "success"}
        assert parse_body("[1, 2]") == [1, 2]

    def test_broken_json_falls_back_to_original_string(self):
        assert parse_body('{"a": ') == '{"a": '
        assert parse_body("{}\n{oops") == "{}\n{oops"


def test_get_puts_api_key_in_query(transport, session):
    session.queue(DummyResponse(body={"result": "success"}))
    assert transport.get("test", params={"param": "value"}) == {"result": "success"}
    call = session.last
    assert call["method"] == "GET"
    assert call["url"] == f"{BASE}/test"
    assert call["params"] == {"param": "value", "key": "test-api-key"}
    assert call["json"] is None
    assert "key" not in call["headers"]


def test_post_and_delete(transport, session):
    session.queue(DummyResponse(body={"ok": 1}), DummyResponse(body=""))
    assert transport.post("test") == {"ok": 1}
    assert transport.delete("files/abc") is None
    assert session.calls[0]["method"] == "POST"
    assert session.calls[1]["method"] == "DELETE"
    assert session.calls[1]["params"] == {"key": "test-api-key"}


def test_json_post_sends_body_and_query(transport, session):
    session.queue(DummyResponse(body={"result": "success"}))
    transport.json_post("test", {"data": "value"}, query_parameters={"query": "value"})
    call = session.last
    assert call["json"] == {"data": "value"}
    assert call["params"] == {"query": "value", "key": "test-api-key"}
    assert call["headers"]["Content-Type"] == "application/json"


def test_non_2xx_raises_transport_error_with_status_and_body(transport, session):
    session.queue(DummyResponse(status_code=400, body={"error": {"message": "bad"}}))
    with pytest.raises(TransportError) as exc:
        transport.get("models")
    assert exc.value.status == 400
    assert exc.value.body == {"error": {"message": "bad"}}
    assert exc.value.kind is ErrorKind.TRANSPORT


def test_connection_failures_become_transport_errors(transport, session):
    session.queue(requests.ConnectionError("refused"), requests.Timeout("slow"))
    with pytest.raises(TransportError) as exc:
        transport.get("models")
    assert exc.value.code == "connection_error"
    with pytest.raises(TransportError) as exc:
        transport.get("models")
    assert exc.value.code == "timeout"


def test_callable_stream_switches_to_sse(transport, session):
    session.queue(DummyResponse(chunks=[sse(text_event("a"), text_event("b"))]))
    seen = []
    events = transport.json_post("models/m:streamGenerateContent", {"contents": [], "stream": seen.append})
    call = session.last
    assert call["params"] == {"alt": "sse", "key": "test-api-key"}
    assert call["json"] == {"contents": []}
    assert call["stream"] is True
    assert seen == events == [text_event("a"), text_event("b")]


def test_stream_non_200_raises_before_any_event(transport, session):
    session.queue(DummyResponse(status_code=429, body={"error": {"message": "quota"}}))
    seen = []
    with pytest.raises(TransportError) as exc:
        transport.json_post("models/m:streamGenerateContent", {}, on_event=seen.append)
    assert exc.value.status == 429
    assert exc.value.body == {"error": {"message": "quota"}}
    assert seen == []


def test_stream_is_lazy(transport, session):
    events = transport.stream("models/m:streamGenerateContent", {})
    assert session.calls == []
    session.queue(DummyResponse(chunks=[sse(text_event("x"))]))
    assert list(events) == [text_event("x")]


def test_stream_interrupted_mid_body(transport, session):
    class Broken(DummyResponse):
        def iter_content(self, chunk_size=None):
            yield sse(text_event("a"), done=False).encode()
            raise requests.ConnectionError("reset")

    session.queue(Broken())
    seen = []
    with pytest.raises(TransportError) as exc:
        for event in transport.stream("models/m:streamGenerateContent", {}):
            seen.append(event)
    assert exc.value.code == "stream_interrupted"
    assert seen == [text_event("a")]


def test_stream_read_timeout_mid_body_is_a_timeout(transport, session):
    class Stalled(DummyResponse):
        def iter_content(self, chunk_size=None):
            yield sse(text_event("a"), done=False).encode()
            raise requests.ConnectionError(ReadTimeoutError(None, None, "Read timed out."))

    session.queue(Stalled())
    with pytest.raises(TransportError) as exc:
        list(transport.stream("models/m:streamGenerateContent", {}))
    assert exc.value.code == "timeout"


def test_extra_headers_and_absolute_urls(transport, session):
    transport.add_headers({"X-Test": 1})
    session.queue(DummyResponse(body={}), DummyResponse(body={}))
    transport.get("https://other.test/path")
    assert session.last["url"] == "https://other.test/path"
    assert session.last["headers"]["X-Test"] == "1"
    assert session.last["headers"]["User-Agent"].startswith("gemini-compat-python/")
    transport.reset_headers()
    transport.get("models")
    assert "X-Test" not in session.last["headers"]
