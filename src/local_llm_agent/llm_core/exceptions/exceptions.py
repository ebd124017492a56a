"""
Custom exception classes for the local LLM agent.

The hierarchy is split in three families:

* tool errors raised while registering or looking up tools (misuse by the
  embedding application, raised immediately) and used as the error type of
  failed tool invocation results,
* generation errors raised by transport backends; the reconciliation loop
  treats them as retryable,
* agent errors surfaced by the ``Agent`` facade.
"""

from typing import Iterable, Optional


class LLMToolError(Exception):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class DuplicateToolError(ToolRegistrationError):
    """Raised when a tool with the same name is already registered."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class MissingParameterError(ToolValidationError):
    """Raised when required tool parameters are absent from an invocation."""

    def __init__(self, tool_name: str, missing: Iterable[str]) -> None:
        self.tool_name = tool_name
        self.missing = list(missing)
        super().__init__(
            f"Missing required parameters for tool '{tool_name}': {', '.join(self.missing)}"
        )


class GenerationError(Exception):
    """Base exception for failures of the text generation capability."""

    pass


class TransportError(GenerationError):
    """Raised when the inference server is unreachable or answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GenerationTimeoutError(TransportError):
    """Raised when a generation request exceeds the transport timeout."""

    pass


class AgentError(Exception):
    """Base exception for errors surfaced by the agent facade."""

    pass


class AgentExecutionError(AgentError):
    """Wraps an unexpected internal failure, carrying the original cause's message."""

    pass


class ReconciliationCancelledError(AgentError):
    """Raised when a reconciliation run is aborted through its cancellation event."""

    pass
