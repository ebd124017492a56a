"""Tool registry: registration, lookup and guarded execution of tools."""

import asyncio
import inspect
import threading
import typing
from typing import Callable, Dict, Any, Iterable, List, Mapping, Optional, Sequence, Union, cast

from pydantic import BaseModel, ValidationError, create_model

from ..models import ToolDefinition, ParameterSpec, ToolInvocationResult
from ..schema import ToolParameterFactory
from ...exceptions import (
    DuplicateToolError,
    MissingParameterError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolValidationError,
)
from ...logger import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """
    A central registry to manage and execute the tools offered to the model.

    The registry maps tool names to their definitions. Mutation and lookup are
    guarded by a lock so one registry can be shared by concurrent agent calls;
    listing returns a snapshot.
    """

    def __init__(self, tool_timeout: float = 180.0) -> None:
        """Initialize the ToolRegistry.

        Args:
            tool_timeout: Timeout in seconds for a single tool execution.
        """
        self.tools: Dict[str, ToolDefinition] = {}
        self.tool_timeout = tool_timeout
        self._lock = threading.RLock()

    def register(
        self,
        name_or_tool: Union[str, ToolDefinition, Callable],
        description: Optional[str] = None,
        func: Optional[Callable] = None,
        parameters: Optional[Sequence[Union[ParameterSpec, Mapping[str, Any]]]] = None,
    ) -> ToolDefinition:
        """
        Register a new tool.

        A tool can be registered by providing a `ToolDefinition` object directly,
        by providing the individual components (name, description, function, parameters),
        or by providing a function (Callable) to automatically generate the definition.

        Args:
            name_or_tool: Either a `ToolDefinition` object, the name of the tool (str), or a Callable.
            description: A brief description of what the tool does. Required if `name_or_tool` is a string and parameters are provided.
            func: The callable implementing the tool's logic. Required if `name_or_tool` is a string.
            parameters: Parameter specs for the tool. If None, they are inferred from `func`.

        Returns:
            The registered tool definition.

        Raises:
            ToolRegistrationError: If individual arguments are missing or the name is empty.
            DuplicateToolError: If a tool with the same name already exists.
        """

        if isinstance(name_or_tool, ToolDefinition):
            tool = name_or_tool
        elif callable(name_or_tool):
            tool = self._generate_tool_definition(name_or_tool, description=description)
        else:
            if func is None:
                raise ToolRegistrationError("If passing name as string, func is required.")

            if parameters is None:
                tool = self._generate_tool_definition(func, name=name_or_tool, description=description)
            else:
                if description is None:
                    raise ToolRegistrationError("If passing name and parameters, description is required.")
                specs = [p if isinstance(p, ParameterSpec) else ParameterSpec(**p) for p in parameters]
                tool = ToolDefinition(name=name_or_tool, description=description, func=func, parameters=specs)

        if not tool.name or not tool.name.strip():
            msg = "Tool name must not be empty."
            logger.error(msg)
            raise ToolRegistrationError(msg)

        with self._lock:
            if tool.name in self.tools:
                msg = f"Tool '{tool.name}' is already registered."
                logger.error(msg)
                raise DuplicateToolError(msg)
            self.tools[tool.name] = tool

        logger.info(f"Successfully registered tool: '{tool.name}'")
        return tool

    def unregister(self, tool_name: str) -> None:
        """Unregister a tool from the registry.

        Args:
            tool_name: The name of the tool to remove.

        Raises:
            ToolNotFoundError: If the tool does not exist in the registry.
        """
        with self._lock:
            if tool_name not in self.tools:
                msg = f"Tool '{tool_name}' not found in the registry."
                logger.error(msg)
                raise ToolNotFoundError(msg)
            del self.tools[tool_name]
        logger.info(f"Successfully unregistered tool: '{tool_name}'")

    def tool(self, func: Callable) -> Callable:
        """A decorator to turn a function into a tool.

        Args:
            func: The function to decorate.

        Returns:
            The original function, after registering it as a tool.
        """
        self.register(func)
        return func

    def list_tools(self) -> List[ToolDefinition]:
        """Returns a snapshot of all registered tools in insertion order."""
        with self._lock:
            return list(self.tools.values())

    def extended(self, tools: Iterable[Union[ToolDefinition, Callable]]) -> "ToolRegistry":
        """Return a new registry holding a snapshot of this one plus ``tools``.

        The original registry is not modified, so per-call tools never leak into
        concurrent calls sharing it.

        Raises:
            DuplicateToolError: If one of ``tools`` clashes with an existing name.
        """
        registry = ToolRegistry(tool_timeout=self.tool_timeout)
        with self._lock:
            registry.tools = dict(self.tools)
        for tool in tools:
            registry.register(tool)
        return registry

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        with self._lock:
            return self.tools.get(tool_name)

    def __contains__(self, tool_name: object) -> bool:
        with self._lock:
            return tool_name in self.tools

    def __len__(self) -> int:
        with self._lock:
            return len(self.tools)

    async def execute(self, tool_name: str, parameters: Mapping[str, Any]) -> ToolInvocationResult:
        """Execute a registered tool and wrap the outcome.

        Lookup failures, missing required parameters and errors raised by the
        tool itself are reported as failed results; nothing but cancellation
        escapes this method.

        Args:
            tool_name: Name of the tool to run.
            parameters: Parameter mapping extracted from the model output.

        Returns:
            The invocation result.
        """
        tool = self.get(tool_name)
        if tool is None:
            msg = f"Tool '{tool_name}' not found"
            logger.warning(msg)
            return ToolInvocationResult.fail(msg, error_type=ToolNotFoundError.__name__)

        missing = [name for name in tool.required_parameters if name not in parameters]
        if missing:
            error = MissingParameterError(tool_name, missing)
            logger.warning(str(error))
            return ToolInvocationResult.fail(error)

        function_args: Dict[str, Any] = dict(parameters)
        if tool.args_model:
            try:
                validated = tool.args_model(**function_args)
            except ValidationError as validation_error:
                msg = f"Argument validation failed: {validation_error}"
                logger.warning(f"Validation error for '{tool_name}': {msg}")
                return ToolInvocationResult.fail(msg, error_type=ToolValidationError.__name__)
            function_args = dict(validated)

        try:
            logger.info(f"Executing tool '{tool_name}'...")
            data = await self._execute_tool(tool.func, function_args)
        except Exception as exc:
            msg = str(exc) or type(exc).__name__
            logger.warning(f"Error in tool '{tool_name}': {msg} ({type(exc).__name__})")
            return ToolInvocationResult.fail(msg, error_type=ToolExecutionError.__name__)

        logger.info(f"Tool '{tool_name}' executed successfully.")
        return ToolInvocationResult.ok(data)

    async def _execute_tool(self, tool_function: Callable, function_args: Dict[str, Any]) -> Any:
        """Execute the tool function, handling async/sync and timeouts.

        Raises:
            ToolExecutionError: If execution times out.
        """
        try:
            if inspect.iscoroutinefunction(tool_function):
                return await asyncio.wait_for(tool_function(**function_args), timeout=self.tool_timeout)

            result = await asyncio.wait_for(
                asyncio.to_thread(tool_function, **function_args),
                timeout=self.tool_timeout,
            )
            if inspect.isawaitable(result):
                return await asyncio.wait_for(result, timeout=self.tool_timeout)
            return result

        except asyncio.TimeoutError as exc:
            msg = f"Tool execution timed out after {self.tool_timeout} seconds."
            raise ToolExecutionError(msg) from exc

    def _generate_tool_definition(
        self, func: Callable, name: Optional[str] = None, description: Optional[str] = None
    ) -> ToolDefinition:
        """Generate a ToolDefinition from a callable function.

        Args:
            func: The function to generate a definition for.
            name: Optional name override for the tool.
            description: Optional description override for the tool.

        Returns:
            A ToolDefinition with parameter specs and an argument model.

        Raises:
            ToolValidationError: If the function is missing a docstring or parameter descriptions.
        """

        tool_name = name or func.__name__
        if description is None:
            description = self._get_docstring_from_func(func, tool_name)

        signature = self._resolved_signature(func)
        specs: List[ParameterSpec] = []
        fields: Dict[str, Any] = {}
        for param_name, param in signature.parameters.items():
            if param_name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            specs.append(ToolParameterFactory.build_parameter_spec(param_name, param, tool_name))
            ft = ToolParameterFactory.build_field_tuple(param_name=param_name, param=param, tool_name=tool_name)
            fields[param_name] = (ft.annotation, ft.field)

        # create_model expects **field_definitions: Any
        args_model: type[BaseModel] = create_model(f"{tool_name}Params", **cast(Dict[str, Any], fields))

        return ToolDefinition(
            name=tool_name,
            description=description,
            func=func,
            parameters=specs,
            args_model=args_model,
        )

    @staticmethod
    def _resolved_signature(func: Callable) -> inspect.Signature:
        """Signature with string annotations (``from __future__ import annotations``) resolved."""
        signature = inspect.signature(func)
        try:
            hints = typing.get_type_hints(func, include_extras=True)
        except (NameError, TypeError):
            return signature
        params = [p.replace(annotation=hints.get(n, p.annotation)) for n, p in signature.parameters.items()]
        return signature.replace(parameters=params)

    @staticmethod
    def _get_docstring_from_func(func: Callable, tool_name: str) -> str:
        doc = inspect.getdoc(func)
        if not doc:
            msg = f"Tool '{tool_name}' missing docstring. LLMs need a description of what the tool does."
            logger.error(msg)
            raise ToolValidationError(msg)
        return doc
