"""Public entry point: configured agent with tool registry and schema-validated generation."""

import asyncio
from types import TracebackType
from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar, Union, overload

from pydantic import BaseModel

from ..base import GenerationBackend
from ..config import AgentConfig
from ..exceptions import AgentError, AgentExecutionError, LLMToolError
from ..logger import get_logger
from ..reconciliation import ExecuteResult, ReconciliationEngine
from ..tools.models import ParameterSpec, ToolDefinition
from ..tools.registry import ToolRegistry

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
ToolLike = Union[ToolDefinition, Callable[..., Any]]


class Agent:
    """
    Sends prompts to a local inference server, runs the tools the model asks for
    and retries until the answer matches the requested schema.

    Example:
        >>> agent = Agent(model_name="llama3.2:3b")
        >>> result = await agent.generate_with_schema(Person, prompt="Who wrote Dune?")
        >>> result.parsed_value
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        *,
        backend: Optional[GenerationBackend] = None,
        registry: Optional[ToolRegistry] = None,
        tools: Optional[Iterable[ToolLike]] = None,
        **overrides: Any,
    ) -> None:
        """
        Initializes the agent.

        Args:
            config: Base configuration; defaults to ``AgentConfig()``.
            backend: Generation backend. Built from ``config.provider`` when omitted.
            registry: Tool registry shared by every call of this agent.
            tools: Tools to register right away.
            **overrides: Configuration fields overriding ``config`` (e.g. ``model_name``,
                ``temperature``, ``max_retries``). Merged and validated once, here.
        """
        self.config: AgentConfig = (config or AgentConfig()).merged(**overrides)
        self.registry = registry if registry is not None else ToolRegistry(tool_timeout=self.config.tool_timeout)
        self._owns_backend = backend is None
        self.backend: GenerationBackend = backend if backend is not None else self._create_backend(self.config)
        if tools:
            self.add_tools(tools)

    @staticmethod
    def _create_backend(config: AgentConfig) -> GenerationBackend:
        from ...llm_impl import create_backend

        return create_backend(config)

    def add_tools(self, tools: Iterable[ToolLike]) -> None:
        """Register tools with the agent's registry.

        Raises:
            DuplicateToolError: If a tool name is already registered.
        """
        for tool in tools:
            self.registry.register(tool)

    def list_tools(self) -> List[ToolDefinition]:
        return self.registry.list_tools()

    def remove_tool(self, name: str) -> None:
        """Raises ToolNotFoundError if no tool has this name."""
        self.registry.unregister(name)

    @overload
    async def generate_with_schema(
        self,
        schema: Type[ModelT],
        prompt: str,
        *,
        tools: Optional[Iterable[ToolLike]] = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[ModelT]: ...

    @overload
    async def generate_with_schema(
        self,
        schema: Any,
        prompt: str,
        *,
        tools: Optional[Iterable[ToolLike]] = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[Any]: ...

    async def generate_with_schema(
        self,
        schema: Any,
        prompt: str,
        *,
        tools: Optional[Iterable[ToolLike]] = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[Any]:
        """
        Generates an answer that must validate against ``schema``.

        Args:
            schema: A pydantic model or any type accepted by ``pydantic.TypeAdapter``.
            prompt: The user's prompt.
            tools: Extra tools for this call only, on top of the registered ones.
            max_retries: Attempt budget for this call; defaults to ``config.max_retries``.
            cancel_event: Setting this event aborts the call.

        Returns:
            ExecuteResult with ``parsed_value`` on success, ``validation_error`` once
            the attempt budget is exhausted.
        """
        return await self.execute(
            prompt, tools=tools, schema=schema, max_retries=max_retries, cancel_event=cancel_event
        )

    async def generate_raw(
        self,
        prompt: str,
        *,
        tools: Optional[Iterable[ToolLike]] = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[Any]:
        """
        Generates a free-text answer without schema validation.

        Raises:
            AgentExecutionError: If every generation attempt failed.
        """
        return await self.execute(prompt, tools=tools, max_retries=max_retries, cancel_event=cancel_event)

    async def execute(
        self,
        prompt: str,
        *,
        tools: Optional[Iterable[ToolLike]] = None,
        schema: Any = None,
        max_retries: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[Any]:
        """Run one reconciliation loop.

        Misuse errors (duplicate tools) and cancellation propagate unchanged; any
        other unexpected failure is wrapped in ``AgentExecutionError``.
        """
        attempts = max_retries if max_retries is not None else self.config.max_retries
        if attempts < 1:
            raise ValueError("max_retries must be at least 1.")

        registry = self.registry.extended(tools) if tools else self.registry
        engine = ReconciliationEngine(self.backend, registry, self.config)
        try:
            return await engine.execute(prompt, schema=schema, max_attempts=attempts, cancel_event=cancel_event)
        except (AgentError, LLMToolError):
            raise
        except Exception as e:
            msg = f"Agent execution failed: {e}"
            logger.error(msg, exc_info=True)
            raise AgentExecutionError(msg) from e

    def as_tool(self, name: str, description: str) -> ToolDefinition:
        """Wrap this agent as a tool another agent can call with a ``prompt`` parameter."""

        async def run_agent(prompt: str) -> Any:
            result = await self.generate_raw(prompt)
            if result.tool_calls:
                return {
                    "response": result.response,
                    "tool_results": [
                        {
                            "tool": record.name,
                            "result": record.result.data if record.result.success else record.result.error,
                        }
                        for record in result.tool_calls
                    ],
                }
            return result.response

        return ToolDefinition(
            name=name,
            description=description,
            func=run_agent,
            parameters=[
                ParameterSpec(name="prompt", type="string", description="The prompt to send to the agent", required=True)
            ],
        )

    async def aclose(self) -> None:
        """Close the backend if this agent created it."""
        if self._owns_backend:
            await self.backend.aclose()

    async def __aenter__(self) -> "Agent":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
