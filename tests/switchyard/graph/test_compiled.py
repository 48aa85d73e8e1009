import asyncio
import unittest.mock
from typing import Annotated

import pytest
from typing_extensions import NotRequired, TypedDict

from switchyard.graph import (
    END,
    CachePolicy,
    Continue,
    End,
    Goto,
    InMemoryCheckpointer,
    Interrupt,
    MessagesState,
    StateGraph,
    Status,
    append,
    get_run_context,
)
from switchyard.hooks import (
    HookProvider,
    RecordingHookProvider,
    RunFailedEvent,
    RunFinishedEvent,
    RunStartedEvent,
    RunStepEvent,
)
from switchyard.store import InMemoryStore
from switchyard.types.content import assistant_message, user_message
from switchyard.types.exceptions import CheckpointError, GraphRecursionError, GraphRoutingError, NodeExecutionError


class TrailState(TypedDict):
    visited: Annotated[list[str], append]
    approved: NotRequired[bool]


def visit(name):
    def node(state):
        return {"visited": [name]}

    return node


def build_chain(*names, **compile_kwargs):
    builder = StateGraph(TrailState)
    for name in names:
        builder.add_node(name, visit(name))
    builder.set_entry_point(names[0])
    for source, target in zip(names, names[1:]):
        builder.add_edge(source, target)
    return builder.compile(**compile_kwargs)


@pytest.fixture
def checkpointer():
    return InMemoryCheckpointer()


@pytest.fixture
def config():
    return {"thread_id": "thread-1"}


@pytest.mark.asyncio
async def test_invoke_linear_graph():
    graph = build_chain("a", "b", "c")

    result = await graph.invoke_async({"visited": []})

    assert result.status == Status.COMPLETED
    assert not result.interrupted
    assert result.state == {"visited": ["a", "b", "c"]}
    assert result.execution_order == ["a", "b", "c"]
    assert result.step == 3
    assert result.next_node == END
    assert result.thread_id is None
    assert result.to_dict()["status"] == "completed"


def test_invoke_sync():
    graph = build_chain("a", "b")

    result = graph.invoke({"visited": ["start"]})

    assert result.state == {"visited": ["start", "a", "b"]}


@pytest.mark.asyncio
async def test_invoke_node_without_edge_routes_to_end():
    builder = StateGraph(TrailState)
    builder.add_node("a", visit("a")).add_node("b", visit("b"), destinations=[])
    builder.add_node("jump", lambda state: Goto("b", {"visited": ["jump"]}), destinations=["b"])
    builder.set_entry_point("jump")
    builder.add_edge("jump", "a")

    result = await builder.compile().invoke_async({})

    assert result.execution_order == ["jump", "b"]
    assert result.state == {"visited": ["jump", "b"]}


@pytest.mark.asyncio
async def test_invoke_end_outcome_stops_run():
    builder = StateGraph(TrailState)
    builder.add_node("a", lambda state: End({"visited": ["a"]})).add_node("b", visit("b"))
    builder.set_entry_point("a").add_edge("a", "b")

    result = await builder.compile().invoke_async({})

    assert result.execution_order == ["a"]
    assert result.next_node == END


@pytest.mark.asyncio
async def test_invoke_conditional_edge():
    builder = StateGraph(TrailState)
    builder.add_node("router", lambda state: None).add_node("yes", visit("yes")).add_node("no", visit("no"))
    builder.set_entry_point("router")
    builder.add_conditional_edges("router", lambda state: bool(state.get("approved")), {True: "yes", False: "no"})
    graph = builder.compile()

    assert (await graph.invoke_async({"approved": True})).execution_order == ["router", "yes"]
    assert (await graph.invoke_async({"approved": False})).execution_order == ["router", "no"]


@pytest.mark.asyncio
async def test_invoke_nodes_receive_a_copy_of_the_state():
    def mutate(state):
        state["visited"].append("sneaky")
        return {"visited": ["mutate"]}

    builder = StateGraph(TrailState)
    builder.add_node("mutate", mutate).set_entry_point("mutate")

    result = await builder.compile().invoke_async({"visited": []})

    assert result.state == {"visited": ["mutate"]}


@pytest.mark.asyncio
async def test_invoke_recursion_limit_default():
    calls = []
    builder = StateGraph(TrailState)
    builder.add_node("loop", lambda state: calls.append(1)).set_entry_point("loop").add_edge("loop", "loop")

    with pytest.raises(GraphRecursionError, match=r"max iterations \(100\) exceeded"):
        await builder.compile().invoke_async({})

    assert len(calls) == 100


@pytest.mark.asyncio
async def test_invoke_recursion_limit_from_config():
    builder = StateGraph(TrailState)
    builder.add_node("loop", visit("loop")).set_entry_point("loop").add_edge("loop", "loop")

    with pytest.raises(GraphRecursionError) as exc_info:
        await builder.compile().invoke_async({}, {"recursion_limit": 3})

    assert exc_info.value.recursion_limit == 3


@pytest.mark.asyncio
async def test_invoke_node_failure():
    def explode(state):
        raise RuntimeError("boom")

    builder = StateGraph(TrailState)
    builder.add_node("a", visit("a")).add_node("explode", explode)
    builder.set_entry_point("a").add_edge("a", "explode")

    with pytest.raises(NodeExecutionError, match=r"node=<explode>, step=<2> \| boom") as exc_info:
        await builder.compile().invoke_async({})

    assert exc_info.value.node == "explode"
    assert exc_info.value.step == 2
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert exc_info.value.original_exception is exc_info.value.__cause__


@pytest.mark.asyncio
async def test_invoke_node_returning_unsupported_type():
    builder = StateGraph(TrailState)
    builder.add_node("bad", lambda state: 42).set_entry_point("bad")

    with pytest.raises(NodeExecutionError) as exc_info:
        await builder.compile().invoke_async({})

    assert isinstance(exc_info.value.__cause__, TypeError)


@pytest.mark.asyncio
async def test_invoke_routes_to_unknown_node():
    builder = StateGraph(TrailState)
    builder.add_node("a", visit("a")).set_entry_point("a")
    builder.add_conditional_edges("a", lambda state: "nowhere")

    with pytest.raises(GraphRoutingError, match="route targets unknown node") as exc_info:
        await builder.compile().invoke_async({})

    assert exc_info.value.node == "a"
    assert exc_info.value.target == "nowhere"


@pytest.mark.asyncio
async def test_invoke_goto_unknown_node():
    builder = StateGraph(TrailState)
    builder.add_node("a", lambda state: Goto("ghost")).set_entry_point("a")

    with pytest.raises(GraphRoutingError):
        await builder.compile().invoke_async({})


@pytest.mark.asyncio
async def test_invoke_checkpointer_requires_thread_id(checkpointer):
    graph = build_chain("a", checkpointer=checkpointer)

    with pytest.raises(ValueError, match="thread_id is required"):
        await graph.invoke_async({})


@pytest.mark.asyncio
async def test_invoke_interrupt_before_and_resume(checkpointer, config):
    graph = build_chain("a", "b", "c", checkpointer=checkpointer, interrupt_before=["b"])

    paused = await graph.invoke_async({"visited": []}, config)

    assert paused.status == Status.INTERRUPTED
    assert paused.interrupted
    assert paused.next_node == "b"
    assert paused.interrupt.node == "b"
    assert paused.interrupt.kind == "before"
    assert paused.state == {"visited": ["a"]}
    assert paused.execution_order == ["a"]

    resumed = await graph.invoke_async(None, config)

    assert resumed.status == Status.COMPLETED
    assert resumed.execution_order == ["b", "c"]
    assert resumed.state == {"visited": ["a", "b", "c"]}
    assert resumed.step == 3


@pytest.mark.asyncio
async def test_invoke_interrupt_after_and_resume(checkpointer, config):
    graph = build_chain("a", "b", "c", checkpointer=checkpointer, interrupt_after=["b"])

    paused = await graph.invoke_async({}, config)

    assert paused.status == Status.INTERRUPTED
    assert paused.next_node == "c"
    assert paused.interrupt.kind == "after"
    assert paused.state == {"visited": ["a", "b"]}

    resumed = await graph.invoke_async(None, config)

    assert resumed.execution_order == ["c"]
    assert resumed.state == {"visited": ["a", "b", "c"]}


@pytest.mark.asyncio
async def test_invoke_interrupt_after_last_node(checkpointer, config):
    graph = build_chain("a", checkpointer=checkpointer, interrupt_after=["a"])

    paused = await graph.invoke_async({}, config)
    assert paused.next_node == END
    assert paused.interrupted

    resumed = await graph.invoke_async(None, config)
    assert resumed.status == Status.COMPLETED
    assert resumed.execution_order == []
    assert (await graph.get_state_async("thread-1")).interrupt is None

    rerun = await graph.invoke_async({"visited": ["again"]}, config)
    assert rerun.state == {"visited": ["a", "again", "a"]}


@pytest.mark.asyncio
async def test_invoke_interrupts_are_transparent(checkpointer):
    straight = await build_chain("a", "b", "c", "d").invoke_async({"visited": ["input"]})

    paused_graph = build_chain(
        "a", "b", "c", "d", checkpointer=checkpointer, interrupt_before=["b", "d"], interrupt_after=["c"]
    )
    config = {"thread_id": "paused"}
    result = await paused_graph.invoke_async({"visited": ["input"]}, config)
    pauses = 0
    while result.interrupted:
        pauses += 1
        result = await paused_graph.invoke_async(None, config)

    assert pauses == 3
    assert result.state == straight.state
    assert result.step == straight.step


@pytest.mark.asyncio
async def test_invoke_explicit_interrupt_resumes_past_node(checkpointer, config):
    def review(state):
        return Interrupt({"question": "approve?"})

    builder = StateGraph(TrailState)
    builder.add_node("a", visit("a")).add_node("review", review).add_node("c", visit("c"))
    builder.set_entry_point("a").add_edge("a", "review")
    builder.add_conditional_edges("review", lambda state: "c" if state.get("approved") else END, ["c", END])
    graph = builder.compile(checkpointer)

    paused = await graph.invoke_async({}, config)

    assert paused.interrupted
    assert paused.next_node is None
    assert paused.interrupt.kind == "node"
    assert paused.interrupt.value == {"question": "approve?"}
    assert paused.interrupt.id == "v1:node:review:2"

    await graph.update_state_async("thread-1", {"approved": True})
    resumed = await graph.invoke_async(None, config)

    assert resumed.status == Status.COMPLETED
    assert resumed.execution_order == ["c"]
    assert resumed.state == {"visited": ["a", "c"], "approved": True}


@pytest.mark.asyncio
async def test_invoke_explicit_interrupt_resuming_to_end(checkpointer, config):
    builder = StateGraph(TrailState)
    builder.add_node("ask", lambda state: Interrupt("why?")).set_entry_point("ask")
    graph = builder.compile(checkpointer)

    await graph.invoke_async({}, config)
    resumed = await graph.invoke_async(None, config)

    assert resumed.status == Status.COMPLETED
    snapshot = await graph.get_state_async("thread-1")
    assert snapshot.next_node == END
    assert snapshot.interrupt is None


@pytest.mark.asyncio
async def test_invoke_completed_thread_starts_new_run(checkpointer, config):
    graph = build_chain("a", "b", checkpointer=checkpointer)

    await graph.invoke_async({"visited": ["first"]}, config)
    result = await graph.invoke_async({"visited": ["second"]}, config)

    assert result.execution_order == ["a", "b"]
    assert result.state == {"visited": ["first", "a", "b", "second", "a", "b"]}
    assert result.step == 4


@pytest.mark.asyncio
async def test_invoke_same_thread_concurrently(checkpointer, config):
    started = asyncio.Event()
    release = asyncio.Event()

    async def wait(state):
        started.set()
        await release.wait()
        return {"visited": ["wait"]}

    builder = StateGraph(TrailState)
    builder.add_node("wait", wait).set_entry_point("wait")
    graph = builder.compile(checkpointer)

    first = asyncio.create_task(graph.invoke_async({}, config))
    await started.wait()

    with pytest.raises(RuntimeError, match="thread is already running"):
        await graph.invoke_async({}, config)

    other = asyncio.create_task(graph.invoke_async({}, {"thread_id": "thread-2"}))
    release.set()

    assert (await first).state == {"visited": ["wait"]}
    assert (await other).state == {"visited": ["wait"]}


@pytest.mark.asyncio
async def test_invoke_thread_released_after_failure(checkpointer, config):
    fail = unittest.mock.Mock(side_effect=[RuntimeError("boom"), {"visited": ["ok"]}])
    builder = StateGraph(TrailState)
    builder.add_node("flaky", lambda state: fail()).set_entry_point("flaky")
    graph = builder.compile(checkpointer)

    with pytest.raises(NodeExecutionError):
        await graph.invoke_async({}, config)

    result = await graph.invoke_async(None, config)
    assert result.state == {"visited": ["ok"]}


@pytest.mark.asyncio
async def test_invoke_exposes_run_context(checkpointer):
    store = InMemoryStore()

    async def inspect_context(state):
        context = get_run_context()
        await context.store.put(("runs",), context.run_id, {"node": context.node})
        return {"visited": [f"{context.node}:{context.step}:{context.thread_id}:{context.metadata['user']}"]}

    builder = StateGraph(TrailState)
    builder.add_node("inspect", inspect_context).set_entry_point("inspect")
    graph = builder.compile(checkpointer, store=store)

    result = await graph.invoke_async({}, {"thread_id": "t", "run_id": "run-1", "metadata": {"user": "kim"}})

    assert result.run_id == "run-1"
    assert result.state == {"visited": ["inspect:1:t:kim"]}
    assert (await store.get(("runs",), "run-1")).value == {"node": "inspect"}
    assert get_run_context() is None


@pytest.mark.asyncio
async def test_stream_async_events(alist):
    graph = build_chain("a", "b")

    events = await alist(graph.stream_async({}))

    assert [event["type"] for event in events] == [
        "graph_node_start",
        "graph_node_stop",
        "graph_node_start",
        "graph_node_stop",
        "graph_result",
    ]
    assert events[0] == {"type": "graph_node_start", "node": "a", "step": 1}
    assert events[1] == {
        "type": "graph_node_stop",
        "node": "a",
        "step": 1,
        "outcome": "continue",
        "delta": {"visited": ["a"]},
        "next_node": "b",
    }
    assert events[-1]["result"].state == {"visited": ["a", "b"]}


@pytest.mark.asyncio
async def test_stream_async_interrupt_events(alist, checkpointer, config):
    graph = build_chain("a", "b", checkpointer=checkpointer, interrupt_before=["b"])

    events = await alist(graph.stream_async({}, config))

    assert [event["type"] for event in events] == [
        "graph_node_start",
        "graph_node_stop",
        "graph_interrupt",
        "graph_result",
    ]
    assert events[2]["interrupt"].id == "v1:before:b:2"


@pytest.mark.asyncio
async def test_hooks_receive_events_in_order():
    recorder = RecordingHookProvider()
    graph = build_chain("a", "b", hooks=[recorder])

    result = await graph.invoke_async({})

    assert recorder.event_types_received == [RunStartedEvent, RunStepEvent, RunStepEvent, RunFinishedEvent]
    assert [(event.step, event.node, event.next_node) for event in recorder.events[1:3]] == [
        (1, "a", "b"),
        (2, "b", END),
    ]
    assert recorder.events[-1].result is result
    assert all(event.run_id == result.run_id for event in recorder.events)


@pytest.mark.asyncio
async def test_hooks_receive_failure():
    recorder = RecordingHookProvider()
    builder = StateGraph(TrailState)
    builder.add_node("explode", unittest.mock.Mock(side_effect=ValueError("bad"))).set_entry_point("explode")
    graph = builder.compile(hooks=[recorder])

    with pytest.raises(NodeExecutionError):
        await graph.invoke_async({})

    assert recorder.event_types_received == [RunStartedEvent, RunFailedEvent]
    assert isinstance(recorder.events[-1].exception, NodeExecutionError)


@pytest.mark.asyncio
async def test_hooks_failing_callback_does_not_fail_run():
    class FailingHook(HookProvider):
        def register_hooks(self, registry, **kwargs):
            registry.add_callback(RunStepEvent, self.fail)

        def fail(self, event):
            raise RuntimeError("hook failed")

    recorder = RecordingHookProvider()
    graph = build_chain("a", hooks=[FailingHook(), recorder])

    result = await graph.invoke_async({})

    assert result.status == Status.COMPLETED
    assert recorder.event_types_received == [RunStartedEvent, RunFinishedEvent]


@pytest.mark.asyncio
async def test_get_state(checkpointer, config):
    graph = build_chain("a", "b", checkpointer=checkpointer)

    assert await graph.get_state_async("thread-1") is None

    await graph.invoke_async({}, config)
    snapshot = await graph.get_state_async("thread-1")

    assert snapshot.state == {"visited": ["a", "b"]}
    assert snapshot.next_node == END
    assert snapshot.step == 2
    assert snapshot.source == "b"
    assert snapshot.interrupt is None


def test_get_state_sync(checkpointer, config):
    graph = build_chain("a", checkpointer=checkpointer)
    graph.invoke({}, config)

    assert graph.get_state("thread-1").state == {"visited": ["a"]}


@pytest.mark.asyncio
async def test_get_state_without_checkpointer():
    graph = build_chain("a")

    with pytest.raises(ValueError, match="graph has no checkpointer"):
        await graph.get_state_async("thread-1")


@pytest.mark.asyncio
async def test_get_state_history(checkpointer, config):
    graph = build_chain("a", "b", checkpointer=checkpointer, interrupt_before=["b"])

    await graph.invoke_async({}, config)
    await graph.invoke_async(None, config)
    history = await graph.get_state_history_async("thread-1")

    assert [(snapshot.source, snapshot.next_node, snapshot.step) for snapshot in history] == [
        ("input", "a", 0),
        ("a", "b", 1),
        ("a", "b", 1),
        ("b", END, 2),
    ]
    assert history[2].interrupt.kind == "before"


@pytest.mark.asyncio
async def test_update_state_keeps_resume_position(checkpointer, config):
    graph = build_chain("a", "b", checkpointer=checkpointer, interrupt_before=["b"])
    paused = await graph.invoke_async({}, config)

    snapshot = await graph.update_state_async("thread-1", {"visited": ["edited"], "approved": True})

    assert snapshot.source == "update"
    assert snapshot.next_node == "b"
    assert snapshot.interrupt == paused.interrupt
    assert snapshot.state == {"visited": ["a", "edited"], "approved": True}

    resumed = await graph.invoke_async(None, config)
    assert resumed.execution_order == ["b"]
    assert resumed.state == {"visited": ["a", "edited", "b"], "approved": True}


def test_update_state_sync(checkpointer, config):
    graph = build_chain("a", checkpointer=checkpointer)
    graph.invoke({}, config)

    snapshot = graph.update_state("thread-1", {"approved": False})

    assert snapshot.state == {"visited": ["a"], "approved": False}
    assert graph.get_state_history("thread-1")[-1].source == "update"


@pytest.mark.asyncio
async def test_update_state_unknown_thread(checkpointer):
    graph = build_chain("a", checkpointer=checkpointer)

    with pytest.raises(ValueError, match="thread has no checkpoint to update"):
        await graph.update_state_async("missing", {"approved": True})


@pytest.mark.asyncio
async def test_checkpoint_metadata_records_run(checkpointer):
    graph = build_chain("a", checkpointer=checkpointer)

    await graph.invoke_async({}, {"thread_id": "t", "run_id": "run-9", "metadata": {"tenant": "acme"}})
    checkpoint = await checkpointer.get_latest("t")

    assert checkpoint.metadata == {"tenant": "acme", "run_id": "run-9"}


@pytest.mark.asyncio
async def test_continue_outcome_routes_through_edges():
    builder = StateGraph(TrailState)
    builder.add_node("a", lambda state: Continue({"visited": ["a"]})).add_node("b", visit("b"))
    builder.set_entry_point("a").add_edge("a", "b")

    result = await builder.compile().invoke_async({})

    assert result.execution_order == ["a", "b"]


class FailingCheckpointer(InMemoryCheckpointer):
    def __init__(self, fail_on_put=None, fail_on_load=False):
        super().__init__()
        self.fail_on_put = fail_on_put
        self.fail_on_load = fail_on_load
        self.put_count = 0

    async def put(self, checkpoint):
        self.put_count += 1
        if self.put_count == self.fail_on_put:
            raise OSError("disk full")
        await super().put(checkpoint)

    async def get_latest(self, thread_id):
        if self.fail_on_load:
            raise OSError("connection lost")
        return await super().get_latest(thread_id)


@pytest.mark.asyncio
async def test_invoke_first_checkpoint_save_fails(config):
    checkpointer = FailingCheckpointer(fail_on_put=1)
    recorder = RecordingHookProvider()
    node = unittest.mock.Mock(return_value={"visited": ["a"]})
    builder = StateGraph(TrailState)
    builder.add_node("a", node).set_entry_point("a")
    graph = builder.compile(checkpointer, hooks=[recorder])

    with pytest.raises(CheckpointError, match=r"thread_id=<thread-1>, step=<0> \| failed to save checkpoint") as e:
        await graph.invoke_async({"visited": []}, config)

    assert isinstance(e.value.__cause__, OSError)
    node.assert_not_called()
    assert recorder.event_types_received == [RunStartedEvent, RunFailedEvent]
    assert recorder.events[-1].exception is e.value
    assert await checkpointer.get_latest("thread-1") is None

    result = await graph.invoke_async({"visited": []}, config)

    assert result.status == Status.COMPLETED


@pytest.mark.asyncio
async def test_invoke_checkpoint_save_fails_mid_run(config):
    checkpointer = FailingCheckpointer(fail_on_put=3)
    recorder = RecordingHookProvider()
    graph = build_chain("a", "b", checkpointer=checkpointer, hooks=[recorder])

    with pytest.raises(CheckpointError, match=r"thread_id=<thread-1>, step=<2> \| failed to save checkpoint"):
        await graph.invoke_async({"visited": []}, config)

    assert recorder.event_types_received == [RunStartedEvent, RunStepEvent, RunFailedEvent]
    assert isinstance(recorder.events[-1].exception, CheckpointError)
    latest = await checkpointer.get_latest("thread-1")
    assert (latest.step, latest.next_node, latest.state) == (1, "b", {"visited": ["a"]})


@pytest.mark.asyncio
async def test_invoke_checkpoint_load_fails(config):
    recorder = RecordingHookProvider()
    graph = build_chain("a", checkpointer=FailingCheckpointer(fail_on_load=True), hooks=[recorder])

    with pytest.raises(CheckpointError, match=r"thread_id=<thread-1> \| failed to load checkpoint") as e:
        await graph.invoke_async({"visited": []}, config)

    assert isinstance(e.value.__cause__, OSError)
    assert recorder.event_types_received == [RunStartedEvent, RunFailedEvent]


@pytest.mark.asyncio
async def test_stream_async_values_and_updates(alist):
    graph = build_chain("a", "b")

    events = await alist(graph.stream_async({"visited": []}, stream_mode=["updates", "values", "updates"]))

    assert [event["type"] for event in events] == [
        "graph_node_start",
        "graph_node_stop",
        "graph_updates",
        "graph_values",
        "graph_node_start",
        "graph_node_stop",
        "graph_updates",
        "graph_values",
        "graph_result",
    ]
    assert events[2] == {"type": "graph_updates", "node": "a", "step": 1, "update": {"visited": ["a"]}}
    assert events[3] == {"type": "graph_values", "node": "a", "step": 1, "state": {"visited": ["a"]}}
    assert events[7] == {"type": "graph_values", "node": "b", "step": 2, "state": {"visited": ["a", "b"]}}


@pytest.mark.asyncio
async def test_stream_async_messages_mode(alist):
    builder = StateGraph(MessagesState)
    builder.add_node("ask", lambda state: {"messages": [user_message("ping")]})
    builder.add_node("reply", lambda state: {"messages": [assistant_message("pong")]})
    builder.set_entry_point("ask").add_edge("ask", "reply")
    graph = builder.compile()

    events = await alist(graph.stream_async({"messages": []}, stream_mode="messages"))

    views = [event for event in events if event["type"] == "graph_messages"]
    assert views == [{"type": "graph_messages", "node": "reply", "step": 2, "messages": [assistant_message("pong")]}]
    assert events[-1]["type"] == "graph_result"


@pytest.mark.asyncio
async def test_stream_async_unknown_stream_mode(alist):
    graph = build_chain("a")

    with pytest.raises(ValueError, match="unknown stream mode"):
        await alist(graph.stream_async({}, stream_mode="debug"))


@pytest.mark.asyncio
async def test_cached_node_reuses_outcome_for_same_state():
    calls = []

    def lookup(state):
        calls.append(state["query"])
        return {"answer": f"{state['query']}-{len(calls)}"}

    builder = StateGraph()
    builder.add_node("lookup", lookup, cache_policy=CachePolicy(ttl=60)).set_entry_point("lookup")
    graph = builder.compile()

    first = await graph.invoke_async({"query": "weather"})
    second = await graph.invoke_async({"query": "weather"})
    third = await graph.invoke_async({"query": "news"})

    assert calls == ["weather", "news"]
    assert first.state == second.state == {"query": "weather", "answer": "weather-1"}
    assert second.execution_order == ["lookup"]
    assert third.state == {"query": "news", "answer": "news-2"}


@pytest.mark.asyncio
async def test_uncached_node_runs_every_time():
    node = unittest.mock.Mock(return_value={"visited": ["a"]})
    builder = StateGraph(TrailState)
    builder.add_node("a", node).set_entry_point("a")
    graph = builder.compile()

    await graph.invoke_async({"visited": []})
    await graph.invoke_async({"visited": []})

    assert node.call_count == 2
