"""Export the exception hierarchy used across tools, transports and the agent."""

from .exceptions import (
    LLMToolError,
    ToolRegistrationError,
    DuplicateToolError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    MissingParameterError,
    GenerationError,
    TransportError,
    GenerationTimeoutError,
    AgentError,
    AgentExecutionError,
    ReconciliationCancelledError,
)

__all__ = [
    "LLMToolError",
    "ToolRegistrationError",
    "DuplicateToolError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "MissingParameterError",
    "GenerationError",
    "TransportError",
    "GenerationTimeoutError",
    "AgentError",
    "AgentExecutionError",
    "ReconciliationCancelledError",
]
