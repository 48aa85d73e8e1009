"""Abstract base class for chat model providers."""

import abc
import logging
from typing import Any, Optional

from typing_extensions import TypedDict

from ..types.content import Message, Messages
from ..types.tools import ToolSpec

logger = logging.getLogger(__name__)


class Usage(TypedDict, total=False):
    """Token usage reported for one model call.

    Attributes:
        inputTokens: Tokens sent to the model.
        outputTokens: Tokens generated by the model.
        totalTokens: Sum of input and output tokens.
    """

    inputTokens: int
    outputTokens: int
    totalTokens: int


class ModelResponse(TypedDict):
    """A complete model reply.

    Attributes:
        message: The assistant message, possibly requesting tool invocations.
        usage: Token usage of the call.
    """

    message: Message
    usage: Usage


class Model(abc.ABC):
    """Interface every chat model provider implements.

    Graph nodes only depend on `complete`; provider-specific settings live in the model's config.
    """

    @abc.abstractmethod
    def update_config(self, **model_config: Any) -> None:
        """Update the model configuration with the provided arguments.

        Args:
            **model_config: Configuration overrides.
        """
        pass

    @abc.abstractmethod
    def get_config(self) -> Any:
        """Return the model configuration.

        Returns:
            The model's configuration.
        """
        pass

    @abc.abstractmethod
    async def complete(
        self,
        messages: Messages,
        tool_specs: Optional[list[ToolSpec]] = None,
        system_prompt: Optional[str] = None,
    ) -> ModelResponse:
        """Generate the next assistant message for a conversation.

        Args:
            messages: The conversation so far.
            tool_specs: Tools the model may request.
            system_prompt: System prompt for the call.

        Returns:
            The assistant message and token usage.
        """
        pass
