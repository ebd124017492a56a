"""Data models for tool invocation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .models import ParameterValue


@dataclass(frozen=True)
class ToolInvocationRequest:
    """Represents a tool call extracted from the model's text output."""

    name: str
    parameters: Dict[str, ParameterValue] = field(default_factory=dict)


class ToolInvocationResult(BaseModel):
    """Represents the outcome of executing a tool call.

    ``data`` is only meaningful for successful calls and ``error`` is only set
    for failed ones. ``error_type`` names the error family (for example
    ``ToolNotFoundError``) so callers do not have to parse messages.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "ToolInvocationResult":
        if self.success and self.error is not None:
            raise ValueError("A successful tool result cannot carry an error.")
        if not self.success:
            if not self.error:
                raise ValueError("A failed tool result needs an error message.")
            if self.data is not None:
                raise ValueError("A failed tool result cannot carry data.")
        return self

    @classmethod
    def ok(cls, data: Any) -> "ToolInvocationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str | BaseException, error_type: Optional[str] = None) -> "ToolInvocationResult":
        if isinstance(error, BaseException):
            error_type = error_type or type(error).__name__
            error = str(error) or type(error).__name__
        return cls(success=False, error=error, error_type=error_type)


class ToolCallRecord(BaseModel):
    """One executed tool call as reported back to the caller."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: Dict[str, Any]
    result: ToolInvocationResult
