"""Prompt instruction rendering."""

from .builder import PromptBuilder, TOOL_CALL_FORMAT

__all__ = ["PromptBuilder", "TOOL_CALL_FORMAT"]
