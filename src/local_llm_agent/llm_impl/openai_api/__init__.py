"""Expose the OpenAI-compatible completions backend."""

from .core import OpenAICompatibleBackend

__all__ = ["OpenAICompatibleBackend"]
