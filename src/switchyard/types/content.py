"""Conversation content types.

A transcript is a list of `Message` dicts. Assistant messages may carry `toolUse` blocks; each tool result is
delivered as its own message with role "tool" holding one `toolResult` block.
"""

from typing import Any, Literal, Optional, Sequence

from typing_extensions import NotRequired, TypedDict

from .tools import ToolResult, ToolResultContent, ToolResultStatus, ToolUse

Role = Literal["system", "user", "assistant", "tool"]
"""Author of a message."""


class ContentBlock(TypedDict, total=False):
    """A block of content within a message.

    Attributes:
        text: Plain text.
        json: Structured data.
        toolUse: A tool invocation requested by the model.
        toolResult: The result of a tool invocation.
    """

    text: str
    json: Any
    toolUse: ToolUse
    toolResult: ToolResult


class Message(TypedDict):
    """A message in a conversation.

    Attributes:
        role: The author of the message.
        content: Ordered content blocks.
        name: Optional name of the agent that authored the message.
    """

    role: Role
    content: list[ContentBlock]
    name: NotRequired[str]


Messages = list[Message]
"""A list of messages representing a conversation."""


def user_message(text: str) -> Message:
    """Create a user message holding a single text block."""
    return {"role": "user", "content": [{"text": text}]}


def system_message(text: str) -> Message:
    """Create a system message holding a single text block."""
    return {"role": "system", "content": [{"text": text}]}


def assistant_message(
    text: Optional[str] = None, tool_uses: Sequence[ToolUse] = (), name: Optional[str] = None
) -> Message:
    """Create an assistant message with optional text and tool invocation blocks.

    Args:
        text: Text of the reply, if any.
        tool_uses: Tool invocations requested in this turn, in order.
        name: Name of the agent producing the message.
    """
    content: list[ContentBlock] = []
    if text:
        content.append({"text": text})
    content.extend({"toolUse": tool_use} for tool_use in tool_uses)

    message: Message = {"role": "assistant", "content": content}
    if name:
        message["name"] = name
    return message


def tool_result_message(
    tool_use_id: str, content: list[ToolResultContent], status: ToolResultStatus = "success"
) -> Message:
    """Create a tool message carrying the result of one invocation."""
    return {
        "role": "tool",
        "content": [{"toolResult": {"toolUseId": tool_use_id, "status": status, "content": content}}],
    }


def get_tool_uses(message: Optional[Message]) -> list[ToolUse]:
    """Return the tool invocations requested in a message, in order."""
    if not message:
        return []
    return [block["toolUse"] for block in message.get("content", []) if "toolUse" in block]


def get_tool_results(message: Optional[Message]) -> list[ToolResult]:
    """Return the tool results carried by a message."""
    if not message:
        return []
    return [block["toolResult"] for block in message.get("content", []) if "toolResult" in block]


def get_text(message: Optional[Message]) -> str:
    """Concatenate the text blocks of a message."""
    if not message:
        return ""
    return "\n".join(block["text"] for block in message.get("content", []) if "text" in block)


def last_message(messages: Sequence[Message], role: Optional[Role] = None) -> Optional[Message]:
    """Return the last message, optionally the last one authored by a given role."""
    for message in reversed(messages):
        if role is None or message["role"] == role:
            return message
    return None


def pending_tool_uses(messages: Sequence[Message]) -> list[ToolUse]:
    """Return the tool invocations of the latest assistant message that have no result yet.

    Messages added after that assistant message, such as a human approval, do not hide its invocations. Results
    already present are skipped, so answering the same turn twice never duplicates them.
    """
    for index in range(len(messages) - 1, -1, -1):
        if messages[index]["role"] != "assistant":
            continue

        answered = {result["toolUseId"] for message in messages[index + 1 :] for result in get_tool_results(message)}
        return [tool_use for tool_use in get_tool_uses(messages[index]) if tool_use["toolUseId"] not in answered]
    return []
