"""Local LLM Agent - tool calling and schema-validated answers for locally hosted models."""

from .llm_core import (
    Agent,
    AgentConfig,
    ExecuteResult,
    ToolDefinition,
    ParameterSpec,
    ToolRegistry,
    ToolInvocationResult,
    GenerationBackend,
    setup_logging,
)
from .llm_impl import OllamaBackend, OpenAICompatibleBackend, create_backend

__all__ = [
    "Agent",
    "AgentConfig",
    "ExecuteResult",
    "ToolDefinition",
    "ParameterSpec",
    "ToolRegistry",
    "ToolInvocationResult",
    "GenerationBackend",
    "setup_logging",
    "OllamaBackend",
    "OpenAICompatibleBackend",
    "create_backend",
]
