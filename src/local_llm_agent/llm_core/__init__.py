"""Public exports for the core agent abstractions and utilities."""

from .base import GenerationBackend, GenerationRequest, GenerationResponse, TokenUsage
from .config import AgentConfig
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
from .logger import get_logger, setup_logging
from .tools import (
    ToolDefinition,
    ParameterSpec,
    ToolInvocationRequest,
    ToolInvocationResult,
    ToolCallRecord,
    ToolRegistry,
)
from .schema import SchemaValidator, ValidationOutcome, FieldError, SchemaField, flatten_schema_fields
from .parsing import ResponseParser, ParsedResponse, coerce_value
from .prompts import PromptBuilder
from .reconciliation import ReconciliationEngine, ReconciliationState, ExecuteResult
from .agent import Agent

__all__ = [
    "GenerationBackend",
    "GenerationRequest",
    "GenerationResponse",
    "TokenUsage",
    "AgentConfig",
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
    "get_logger",
    "setup_logging",
    "ToolDefinition",
    "ParameterSpec",
    "ToolInvocationRequest",
    "ToolInvocationResult",
    "ToolCallRecord",
    "ToolRegistry",
    "SchemaValidator",
    "ValidationOutcome",
    "FieldError",
    "SchemaField",
    "flatten_schema_fields",
    "ResponseParser",
    "ParsedResponse",
    "coerce_value",
    "PromptBuilder",
    "ReconciliationEngine",
    "ReconciliationState",
    "ExecuteResult",
    "Agent",
]
