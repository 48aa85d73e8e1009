"""Scripted model that replays canned replies.

Useful for tests, examples, and offline runs where graph control flow matters but model output does not.
"""

import copy
import logging
from typing import Any, Optional, Sequence, Union, cast

from typing_extensions import TypedDict, Unpack, override

from ..types.content import Message, Messages
from ..types.tools import ToolSpec
from ._validation import validate_config_keys
from .model import Model, ModelResponse, Usage

logger = logging.getLogger(__name__)

ScriptedReply = Union[Message, ModelResponse, Exception]


class ScriptedModel(Model):
    """Model that returns pre-recorded replies in order.

    Each reply is an assistant message, a full `ModelResponse`, or an exception to raise. Every call is recorded
    in `requests` so tests can assert on what the model was sent.
    """

    class ScriptedConfig(TypedDict, total=False):
        """Configuration options for scripted models.

        Attributes:
            model_id: Identifier reported by the model.
            repeat_last: Keep returning the last reply once the script is exhausted instead of raising.
        """

        model_id: str
        repeat_last: bool

    def __init__(self, replies: Sequence[ScriptedReply], **model_config: Unpack[ScriptedConfig]) -> None:
        """Initialize the model.

        Args:
            replies: Replies returned by successive calls.
            **model_config: Configuration options.
        """
        validate_config_keys(model_config, self.ScriptedConfig)
        self.config = ScriptedModel.ScriptedConfig(model_id="scripted", repeat_last=False)
        self.config.update(model_config)

        self.replies = list(replies)
        self.requests: list[dict[str, Any]] = []
        self._index = 0

    @override
    def update_config(self, **model_config: Unpack[ScriptedConfig]) -> None:  # type: ignore[override]
        """Update the scripted model configuration with the provided arguments.

        Args:
            **model_config: Configuration overrides.
        """
        validate_config_keys(model_config, self.ScriptedConfig)
        self.config.update(model_config)

    @override
    def get_config(self) -> ScriptedConfig:
        """Get the scripted model configuration.

        Returns:
            The scripted model configuration.
        """
        return cast(ScriptedModel.ScriptedConfig, self.config)

    @property
    def remaining(self) -> int:
        """Number of replies not yet returned."""
        return len(self.replies) - self._index

    @override
    async def complete(
        self,
        messages: Messages,
        tool_specs: Optional[list[ToolSpec]] = None,
        system_prompt: Optional[str] = None,
    ) -> ModelResponse:
        """Return the next scripted reply.

        Raises:
            RuntimeError: If the script is exhausted and `repeat_last` is off.
            Exception: A scripted exception reply.
        """
        self.requests.append(
            {
                "messages": copy.deepcopy(messages),
                "tool_specs": copy.deepcopy(tool_specs or []),
                "system_prompt": system_prompt,
            }
        )

        if self._index < len(self.replies):
            reply = self.replies[self._index]
            self._index += 1
        elif self.config.get("repeat_last") and self.replies:
            reply = self.replies[-1]
        else:
            raise RuntimeError(f"model_id=<{self.config.get('model_id')}> | scripted model has no replies left")

        logger.debug(
            "model_id=<%s>, remaining=<%s> | returning scripted reply", self.config.get("model_id"), self.remaining
        )

        if isinstance(reply, Exception):
            raise reply
        if "message" in reply:
            return cast(ModelResponse, copy.deepcopy(reply))

        message = cast(Message, copy.deepcopy(reply))
        usage: Usage = {"inputTokens": 0, "outputTokens": 0, "totalTokens": 0}
        return {"message": message, "usage": usage}
