"""Core abstractions for text generation backends."""

from types import TracebackType
from typing import List, Optional
from abc import ABC, abstractmethod

from pydantic import BaseModel, ConfigDict, Field

from ..tools.models import ToolInvocationRequest
from ..logger import get_logger

logger = get_logger(__name__)


class TokenUsage(BaseModel):
    """
    Token counters reported by the inference server.

    Attributes:
        prompt_tokens: The number of tokens in the prompt.
        completion_tokens: The number of tokens in the completion.
        total_tokens: The total number of tokens used.
    """

    model_config = ConfigDict(frozen=True)

    prompt_tokens: Optional[int] = Field(default=None)
    completion_tokens: Optional[int] = Field(default=None)
    total_tokens: Optional[int] = Field(default=None)

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        def _sum(a: Optional[int], b: Optional[int]) -> Optional[int]:
            if a is None and b is None:
                return None
            return (a or 0) + (b or 0)

        return TokenUsage(
            prompt_tokens=_sum(self.prompt_tokens, other.prompt_tokens),
            completion_tokens=_sum(self.completion_tokens, other.completion_tokens),
            total_tokens=_sum(self.total_tokens, other.total_tokens),
        )


class GenerationRequest(BaseModel):
    """One prompt sent to the inference server."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    prompt: str
    model_name: str
    temperature: float
    max_tokens: int


class GenerationResponse(BaseModel):
    """
    Text returned by the inference server.

    Attributes:
        text: Generated text.
        usage: Token counters, when the server reports them.
        tool_calls: Tool calls extracted from ``text``; filled by the reconciliation engine.
    """

    text: str
    usage: Optional[TokenUsage] = None
    tool_calls: List[ToolInvocationRequest] = Field(default_factory=list)


class GenerationBackend(ABC):
    """Abstract base class for text generation capabilities.

    A backend sends one prompt and returns the generated text. Implementations
    raise ``TransportError`` (or ``GenerationTimeoutError``) for failures the
    reconciliation loop may retry.
    """

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """
        Generates text for a single prompt.

        Args:
            request: The rendered prompt and sampling settings.

        Returns:
            The generated text and optional token usage.

        Raises:
            TransportError: If the server cannot be reached or answers with an error.
        """
        logger.debug(f"Sending generation request to model '{request.model_name}' ({len(request.prompt)} chars).")
        response = await self._generate_impl(request)
        logger.debug(f"Received {len(response.text)} chars from model '{request.model_name}'.")
        return response

    async def aclose(self) -> None:
        """Release transport resources. Backends without resources do nothing."""
        return None

    async def __aenter__(self) -> "GenerationBackend":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @abstractmethod
    async def _generate_impl(self, request: GenerationRequest) -> GenerationResponse:
        pass
