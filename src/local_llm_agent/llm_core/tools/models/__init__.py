"""Tool-related data models."""

from .models import ToolDefinition, ParameterSpec, ParameterType, ParameterValue
from .tool_call import ToolInvocationRequest, ToolInvocationResult, ToolCallRecord

__all__ = [
    "ToolDefinition",
    "ParameterSpec",
    "ParameterType",
    "ParameterValue",
    "ToolInvocationRequest",
    "ToolInvocationResult",
    "ToolCallRecord",
]
