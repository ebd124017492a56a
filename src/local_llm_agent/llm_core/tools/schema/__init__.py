"""Tool parameter extraction from Python signatures."""

from .tool_param_factory import ToolParameterFactory, FieldTuple

__all__ = ["ToolParameterFactory", "FieldTuple"]
