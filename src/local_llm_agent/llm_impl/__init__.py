"""Collect concrete generation backends."""

from local_llm_agent.llm_core.base import GenerationBackend
from local_llm_agent.llm_core.config import AgentConfig

from .ollama import OllamaBackend
from .openai_api import OpenAICompatibleBackend


def create_backend(config: AgentConfig) -> GenerationBackend:
    """Build the backend selected by ``config.provider``."""
    if config.provider == "openai":
        return OpenAICompatibleBackend.for_local_server(
            base_url=config.base_url, api_key=config.api_key, timeout=config.request_timeout
        )
    return OllamaBackend(base_url=config.base_url, timeout=config.request_timeout)


__all__ = [
    "OllamaBackend",
    "OpenAICompatibleBackend",
    "create_backend",
]
