import pytest

from gemini_compat.conversation.store import ConversationStore
from gemini_compat.conversation.threads import Threads
from gemini_compat.errors import ErrorKind, NotFoundError


@pytest.fixture
def threads():
    return Threads(ConversationStore(), default_model="gemini-test")


def test_create_and_retrieve(threads):
    thread = threads.create(metadata={"user": "u1"})
    assert thread["object"] == "thread"
    assert thread["metadata"] == {"user": "u1"}
    assert thread["model"] == "gemini-test"
    assert isinstance(thread["created_at"], int)
    assert threads.retrieve(thread["id"]) == thread


def test_retrieve_is_idempotent(threads):
    thread = threads.create(metadata={"a": 1})
    first = threads.retrieve(thread["id"])
    second = threads.retrieve(thread["id"])
    assert first == second
    first["metadata"]["a"] = 2
    assert threads.retrieve(thread["id"])["metadata"] == {"a": 1}


def test_ids_are_unique(threads):
    assert len({threads.create()["id"] for _ in range(20)}) == 20


def test_modify_changes_only_metadata_and_model(threads):
    thread = threads.create(model="gemini-a")
    modified = threads.modify(thread["id"], metadata={"topic": "sse"}, model="gemini-b")
    assert modified["id"] == thread["id"]
    assert modified["created_at"] == thread["created_at"]
    assert modified["metadata"] == {"topic": "sse"}
    assert threads.get_model(thread["id"]) == "gemini-b"

    untouched = threads.modify(thread["id"])
    assert untouched["metadata"] == {"topic": "sse"}
    assert untouched["model"] == "gemini-b"


def test_delete(threads):
    thread = threads.create()
    assert threads.delete(thread["id"]) == {"id": thread["id"], "object": "thread.deleted", "deleted": True}
    assert not threads.exists(thread["id"])
    with pytest.raises(NotFoundError):
        threads.retrieve(thread["id"])


@pytest.mark.parametrize("op", ["retrieve", "delete", "modify", "get_model"])
def test_missing_thread(threads, op):
    with pytest.raises(NotFoundError) as exc:
        getattr(threads, op)("missing-id")
    assert exc.value.code == "thread_not_found"
    assert exc.value.kind is ErrorKind.NOT_FOUND


def test_injected_storage_is_used():
    backing = {}
    threads = Threads(ConversationStore(threads=backing))
    thread = threads.create()
    assert list(backing) == [thread["id"]]
