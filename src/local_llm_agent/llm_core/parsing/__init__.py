"""Parsing of raw model output."""

from .response_parser import ResponseParser, ParsedResponse, TOOL_CALL_PATTERN
from .value_coercion import coerce_value

__all__ = ["ResponseParser", "ParsedResponse", "TOOL_CALL_PATTERN", "coerce_value"]
