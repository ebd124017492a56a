from .models import (
    ToolDefinition,
    ParameterSpec,
    ParameterType,
    ParameterValue,
    ToolInvocationRequest,
    ToolInvocationResult,
    ToolCallRecord,
)
from .registry import ToolRegistry
from .schema import ToolParameterFactory

__all__ = [
    "ToolDefinition",
    "ParameterSpec",
    "ParameterType",
    "ParameterValue",
    "ToolInvocationRequest",
    "ToolInvocationResult",
    "ToolCallRecord",
    "ToolRegistry",
    "ToolParameterFactory",
]
