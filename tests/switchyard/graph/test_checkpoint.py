import pytest

from switchyard.graph.checkpoint import Checkpoint, InMemoryCheckpointer, decode_bytes_values, encode_bytes_values
from switchyard.interrupt import Interrupt


@pytest.fixture
def checkpointer():
    return InMemoryCheckpointer()


@pytest.fixture
def checkpoint():
    return Checkpoint(
        thread_id="t1",
        step=2,
        state={"messages": [{"role": "user", "content": [{"text": "hi"}]}], "blob": b"\x00\x01"},
        next_node="tools",
        source="agent",
        interrupt=Interrupt.create("tools", "before", 3),
        metadata={"run_id": "r1"},
    )


def test_encode_decode_bytes_values():
    value = {"a": b"raw", "b": [b"x", {"c": 1}]}

    encoded = encode_bytes_values(value)

    assert encoded["a"] == {"__bytes_encoded__": True, "data": "cmF3"}
    assert decode_bytes_values(encoded) == value


def test_checkpoint_to_dict(checkpoint):
    data = checkpoint.to_dict()

    assert data["state"]["blob"] == {"__bytes_encoded__": True, "data": "AAE="}
    assert data["interrupt"] == {"id": "v1:before:tools:3", "node": "tools", "kind": "before", "value": None}
    assert data["next_node"] == "tools"


def test_checkpoint_from_dict(checkpoint):
    data = checkpoint.to_dict()
    data["unknown_field"] = "ignored"

    assert Checkpoint.from_dict(data) == checkpoint


def test_checkpoint_defaults():
    checkpoint = Checkpoint(thread_id="t", step=0, state={}, next_node="a", source="input")

    assert checkpoint.interrupt is None
    assert checkpoint.checkpoint_id
    assert checkpoint.created_at
    assert checkpoint.metadata == {}


@pytest.mark.asyncio
async def test_in_memory_put_and_get_latest(checkpointer, checkpoint):
    assert await checkpointer.get_latest("t1") is None

    await checkpointer.put(checkpoint)
    newer = Checkpoint(thread_id="t1", step=3, state={}, next_node=None, source="tools")
    await checkpointer.put(newer)

    assert await checkpointer.get_latest("t1") == newer
    assert await checkpointer.list("t1") == [checkpoint, newer]


@pytest.mark.asyncio
async def test_in_memory_isolates_stored_copies(checkpointer, checkpoint):
    await checkpointer.put(checkpoint)
    checkpoint.state["messages"].append({"role": "user", "content": []})

    latest = await checkpointer.get_latest("t1")
    latest.state["extra"] = True

    assert (await checkpointer.get_latest("t1")).state == {
        "messages": [{"role": "user", "content": [{"text": "hi"}]}],
        "blob": b"\x00\x01",
    }


@pytest.mark.asyncio
async def test_in_memory_threads_are_independent(checkpointer, checkpoint):
    await checkpointer.put(checkpoint)

    assert await checkpointer.list("other") == []


@pytest.mark.asyncio
async def test_in_memory_delete_thread(checkpointer, checkpoint):
    await checkpointer.put(checkpoint)

    await checkpointer.delete_thread("t1")
    await checkpointer.delete_thread("missing")

    assert await checkpointer.get_latest("t1") is None


def test_checkpoint_to_dict_encodes_bytes_in_interrupt_and_metadata():
    checkpoint = Checkpoint(
        thread_id="t1",
        step=1,
        state={},
        next_node=None,
        source="review",
        interrupt=Interrupt.create("review", "node", 1, value={"draft": b"\x89PNG"}),
        metadata={"signature": b"\x01\x02"},
    )

    data = checkpoint.to_dict()

    assert data["interrupt"]["value"] == {"draft": {"__bytes_encoded__": True, "data": "iVBORw=="}}
    assert data["metadata"] == {"signature": {"__bytes_encoded__": True, "data": "AQI="}}
    assert Checkpoint.from_dict(data) == checkpoint
