"""Expose the native Ollama generation backend."""

from .core import OllamaBackend

__all__ = ["OllamaBackend"]
