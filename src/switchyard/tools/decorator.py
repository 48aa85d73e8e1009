"""Turn plain Python functions into tools.

The decorator reads the function signature to build a pydantic model. That model provides the JSON schema
offered to the model and validates the arguments the model sends back.

Example:
    ```python
    from typing import Annotated

    from pydantic import Field

    from switchyard import tool

    @tool
    def get_weather(city: Annotated[str, Field(description="City to look up")]) -> str:
        \"\"\"Get the current weather for a city.\"\"\"
        return f"Sunny in {city}"
    ```
"""

import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, Generic, Optional, TypeVar, Union, overload

from pydantic import BaseModel, ConfigDict, create_model
from typing_extensions import ParamSpec, override

from ..types.tools import AgentTool, ToolSpec

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class FunctionToolMetadata:
    """Signature-derived metadata of a decorated function."""

    def __init__(self, func: Callable[..., Any], name: Optional[str] = None, description: Optional[str] = None):
        """Inspect the function.

        Args:
            func: The function to describe.
            name: Tool name override. Defaults to the function name.
            description: Description override. Defaults to the first paragraph of the docstring.
        """
        self.func = func
        self.signature = inspect.signature(func)
        self.name = name or func.__name__
        self.description = description or self._description_from_docstring() or self.name
        self.input_model = self._create_input_model()

    def _description_from_docstring(self) -> str:
        doc = inspect.getdoc(self.func) or ""
        return doc.split("\n\n", 1)[0].strip()

    def _create_input_model(self) -> type[BaseModel]:
        fields: dict[str, Any] = {}
        for param_name, param in self.signature.parameters.items():
            if param_name in ("self", "cls"):
                continue
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue

            annotation = param.annotation if param.annotation is not inspect.Parameter.empty else Any
            default = param.default if param.default is not inspect.Parameter.empty else ...
            fields[param_name] = (annotation, default)

        model_name = "".join(part.capitalize() for part in self.name.split("_")) + "Input"
        return create_model(model_name, __config__=ConfigDict(extra="forbid"), **fields)

    def extract_tool_spec(self) -> ToolSpec:
        """Build the tool spec from the input model's JSON schema."""
        schema = self.input_model.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)

        return {"name": self.name, "description": self.description, "inputSchema": {"json": schema}}

    def validate_input(self, tool_input: Any) -> dict[str, Any]:
        """Validate model-supplied arguments and return them as keyword arguments.

        Raises:
            pydantic.ValidationError: If the arguments do not match the signature.
        """
        validated = self.input_model.model_validate(tool_input or {})
        return {name: getattr(validated, name) for name in type(validated).model_fields}


class DecoratedFunctionTool(AgentTool, Generic[P, R]):
    """An `AgentTool` wrapping a decorated function.

    The instance stays callable like the original function.
    """

    def __init__(self, tool_func: Callable[P, R], metadata: FunctionToolMetadata) -> None:
        """Initialize the tool.

        Args:
            tool_func: The decorated function.
            metadata: Signature-derived metadata of the function.
        """
        super().__init__()
        self._tool_func = tool_func
        self._metadata = metadata
        self._tool_spec = metadata.extract_tool_spec()
        functools.update_wrapper(wrapper=self, wrapped=tool_func)

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> R:
        """Call the original function directly."""
        return self._tool_func(*args, **kwargs)

    @property
    @override
    def tool_name(self) -> str:
        return self._tool_spec["name"]

    @property
    @override
    def tool_spec(self) -> ToolSpec:
        return self._tool_spec

    @property
    @override
    def tool_type(self) -> str:
        return "function"

    @override
    async def call(self, tool_input: Any) -> Any:
        """Validate the arguments and run the function.

        Sync functions run on a worker thread.
        """
        kwargs = self._metadata.validate_input(tool_input)

        if inspect.iscoroutinefunction(self._tool_func):
            return await self._tool_func(**kwargs)  # type: ignore[misc]

        result = await asyncio.to_thread(self._tool_func, **kwargs)  # type: ignore[arg-type]
        if inspect.isawaitable(result):
            return await result
        return result


@overload
def tool(__func: Callable[P, R]) -> DecoratedFunctionTool[P, R]: ...


@overload
def tool(
    *, name: Optional[str] = None, description: Optional[str] = None
) -> Callable[[Callable[P, R]], DecoratedFunctionTool[P, R]]: ...


def tool(
    func: Optional[Callable[P, R]] = None,
    *,
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Union[DecoratedFunctionTool[P, R], Callable[[Callable[P, R]], DecoratedFunctionTool[P, R]]]:
    """Decorator that turns a function into a tool.

    Usable bare (`@tool`) or with arguments (`@tool(name="lookup")`).

    Args:
        func: The function to decorate.
        name: Tool name override.
        description: Description override.

    Returns:
        The tool, or a decorator producing it.
    """

    def decorator(f: Callable[P, R]) -> DecoratedFunctionTool[P, R]:
        return DecoratedFunctionTool(f, FunctionToolMetadata(f, name=name, description=description))

    if func is None:
        return decorator
    return decorator(func)
