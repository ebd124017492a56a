"""Agent configuration."""

import os
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class AgentConfig(BaseModel):
    """
    Configuration parameters for an Agent. Immutable once created.

    Attributes:
        model_name: Model identifier understood by the inference server.
        base_url: Root URL of the inference server.
        provider: Which transport to build when no backend is injected.
        temperature: Controls the randomness of the output. Must be between 0 and 2, inclusive.
        max_tokens: The maximum number of tokens to generate. Must be at least 10.
        max_retries: Generation attempts per call, including the first one.
        max_tool_calls_per_turn: Tool calls executed per model response; extra calls are dropped.
        tool_timeout: Timeout in seconds for a single tool execution.
        request_timeout: Timeout in seconds for a single generation request.
        retry_delay: Base delay in seconds before retrying after a transport failure; doubled on each failure.
        strict_validation: Validate the JSON answer in pydantic strict mode.
        api_key: API key sent to OpenAI-compatible servers (local servers ignore it).
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_name: str = "llama3.2:3b"
    base_url: str = "http://localhost:11434"
    provider: Literal["ollama", "openai"] = "ollama"
    temperature: float = Field(default=0.7, ge=0, le=2)
    max_tokens: int = Field(default=2048, ge=10)
    max_retries: int = Field(default=3, ge=1)
    max_tool_calls_per_turn: int = Field(default=5, ge=0)
    tool_timeout: float = Field(default=180.0, gt=0)
    request_timeout: float = Field(default=120.0, gt=0)
    retry_delay: float = Field(default=0.5, ge=0)
    strict_validation: bool = False
    api_key: str = "ollama"

    def merged(self, **overrides: Any) -> "AgentConfig":
        """Return a validated copy with ``overrides`` applied; ``None`` values are ignored."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if not updates:
            return self
        return AgentConfig.model_validate({**self.model_dump(), **updates})

    @classmethod
    def from_env(cls, prefix: str = "LOCAL_AGENT_", **overrides: Any) -> "AgentConfig":
        """Build a configuration from environment variables.

        Recognised variables (with the default prefix): ``LOCAL_AGENT_MODEL``,
        ``LOCAL_AGENT_BASE_URL``, ``LOCAL_AGENT_PROVIDER``, ``LOCAL_AGENT_TEMPERATURE``,
        ``LOCAL_AGENT_MAX_TOKENS``, ``LOCAL_AGENT_MAX_RETRIES``, ``LOCAL_AGENT_API_KEY``.
        Explicit ``overrides`` win over the environment.
        """
        env_map = {
            "model_name": "MODEL",
            "base_url": "BASE_URL",
            "provider": "PROVIDER",
            "temperature": "TEMPERATURE",
            "max_tokens": "MAX_TOKENS",
            "max_retries": "MAX_RETRIES",
            "api_key": "API_KEY",
        }
        values: Dict[str, Optional[str]] = {field: os.getenv(prefix + suffix) for field, suffix in env_map.items()}
        data: Dict[str, Any] = {k: v for k, v in values.items() if v}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(data)
