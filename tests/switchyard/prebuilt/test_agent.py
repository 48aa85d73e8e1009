import pytest

from switchyard.graph import END, InMemoryCheckpointer, Status
from switchyard.hooks import LlmCalledEvent, RecordingHookProvider
from switchyard.models import ScriptedModel
from switchyard.prebuilt import ChatModelNode, create_agent, create_react_agent
from switchyard.tools import tool
from switchyard.types.content import assistant_message, get_text, tool_result_message, user_message


def tool_use(tool_use_id, name, tool_input=None):
    return {"toolUseId": tool_use_id, "name": name, "input": tool_input or {}}


@pytest.fixture
def deleted():
    return []


@pytest.fixture
def delete_records(deleted):
    @tool
    def delete_records(table: str) -> str:
        """Delete every record of a table."""
        deleted.append(table)
        return f"deleted {table}"

    return delete_records


@pytest.fixture
def config():
    return {"thread_id": "approvals"}


def test_create_react_agent_alias():
    assert create_react_agent is create_agent


@pytest.mark.asyncio
async def test_agent_without_tools():
    model = ScriptedModel([assistant_message("Hello!")])
    graph = create_agent(model, system_prompt="Be brief.")

    result = await graph.invoke_async({"messages": [user_message("hi")]})

    assert list(graph.nodes) == ["agent"]
    assert result.execution_order == ["agent"]
    assert get_text(result.state["messages"][-1]) == "Hello!"
    assert model.requests == [{"messages": [user_message("hi")], "tool_specs": [], "system_prompt": "Be brief."}]


@pytest.mark.asyncio
async def test_agent_tool_loop(delete_records, deleted):
    model = ScriptedModel(
        [
            assistant_message("Cleaning.", [tool_use("t1", "delete_records", {"table": "logs"})]),
            assistant_message("Done."),
        ]
    )
    graph = create_agent(model, [delete_records])

    result = await graph.invoke_async({"messages": [user_message("clean logs")]})

    assert result.status == Status.COMPLETED
    assert result.execution_order == ["agent", "tools", "agent"]
    assert deleted == ["logs"]
    assert result.state["messages"] == [
        user_message("clean logs"),
        assistant_message("Cleaning.", [tool_use("t1", "delete_records", {"table": "logs"})]),
        tool_result_message("t1", [{"text": "deleted logs"}]),
        assistant_message("Done."),
    ]
    assert [spec["name"] for spec in model.requests[0]["tool_specs"]] == ["delete_records"]


@pytest.mark.asyncio
async def test_agent_interrupt_before_tools_with_approval(delete_records, deleted, config):
    model = ScriptedModel(
        [
            assistant_message(None, [tool_use("t1", "delete_records", {"table": "users"})]),
            assistant_message("Deleted the users table."),
        ]
    )
    graph = create_agent(model, [delete_records], checkpointer=InMemoryCheckpointer(), interrupt_before=["tools"])

    paused = await graph.invoke_async({"messages": [user_message("delete users")]}, config)

    assert paused.status == Status.INTERRUPTED
    assert paused.next_node == "tools"
    assert paused.interrupt.kind == "before"
    assert deleted == []

    await graph.update_state_async("approvals", {"messages": [user_message("approved")]})
    resumed = await graph.invoke_async(None, config)

    assert resumed.status == Status.COMPLETED
    assert resumed.next_node == END
    assert resumed.execution_order == ["tools", "agent"]
    assert deleted == ["users"]
    assert resumed.state["messages"] == [
        user_message("delete users"),
        assistant_message(None, [tool_use("t1", "delete_records", {"table": "users"})]),
        user_message("approved"),
        tool_result_message("t1", [{"text": "deleted users"}]),
        assistant_message("Deleted the users table."),
    ]


@pytest.mark.asyncio
async def test_agent_conversation_continues_on_thread(config):
    model = ScriptedModel([assistant_message("Hi."), assistant_message("Still here.")])
    graph = create_agent(model, checkpointer=InMemoryCheckpointer())

    await graph.invoke_async({"messages": [user_message("hello")]}, config)
    result = await graph.invoke_async({"messages": [user_message("are you there?")]}, config)

    assert [message["role"] for message in result.state["messages"]] == ["user", "assistant", "user", "assistant"]
    assert len(model.requests[1]["messages"]) == 3


@pytest.mark.asyncio
async def test_chat_model_node_stamps_name_and_emits_llm_event():
    recorder = RecordingHookProvider([LlmCalledEvent])
    usage = {"inputTokens": 5, "outputTokens": 2, "totalTokens": 7}
    model = ScriptedModel([{"message": assistant_message("ok"), "usage": usage}])
    graph = create_agent(model, hooks=[recorder])
    graph.nodes["agent"].name = "helper"

    result = await graph.invoke_async({"messages": [user_message("hi")]})

    assert result.state["messages"][-1]["name"] == "helper"
    (event,) = recorder.events
    assert event.node == "agent"
    assert event.message_count == 1
    assert event.usage == usage


@pytest.mark.asyncio
async def test_chat_model_node_process():
    node = ChatModelNode(ScriptedModel([assistant_message("ok")]), name="solo")

    outcome = await node.process({"messages": [user_message("hi")]})

    assert outcome.delta == {"messages": [assistant_message("ok", name="solo")]}
    assert repr(node) == "ChatModelNode(name='solo', tools=[])"


@pytest.mark.asyncio
async def test_agent_model_failure_is_wrapped():
    graph = create_agent(ScriptedModel([RuntimeError("model down")]))

    with pytest.raises(Exception, match="model down") as exc_info:
        await graph.invoke_async({"messages": [user_message("hi")]})

    assert exc_info.value.node == "agent"
