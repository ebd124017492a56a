from typing import Any, Dict, Optional

from openai import AsyncOpenAI, APIError, APITimeoutError
from openai.types import Completion

from local_llm_agent.llm_core.base import GenerationBackend, GenerationRequest, GenerationResponse, TokenUsage
from local_llm_agent.llm_core.exceptions import GenerationTimeoutError, TransportError
from local_llm_agent.llm_core.logger import get_logger

logger = get_logger(__name__)


class OpenAICompatibleBackend(GenerationBackend):
    """
    Backend for servers exposing the OpenAI ``/v1/completions`` endpoint
    (Ollama, vLLM, llama.cpp server, LM Studio).
    """

    def __init__(self, client: AsyncOpenAI, extra_body: Optional[Dict[str, Any]] = None, owns_client: bool = False):
        """
        Initializes the backend.

        Args:
            client: The initialized AsyncOpenAI client (``base_url`` pointing at the local server).
            extra_body: Additional request fields for server-specific options.
            owns_client: Close the client in ``aclose``.
        """
        self.client: AsyncOpenAI = client
        self.extra_body = extra_body
        self._owns_client = owns_client

    @classmethod
    def for_local_server(
        cls, base_url: str = "http://localhost:11434", api_key: str = "ollama", timeout: float = 120.0
    ) -> "OpenAICompatibleBackend":
        """Create a backend (and the client it owns) for ``{base_url}/v1``."""
        root = base_url.rstrip("/")
        if not root.endswith("/v1"):
            root = f"{root}/v1"
        # Retries are handled by the reconciliation loop.
        client = AsyncOpenAI(base_url=root, api_key=api_key, timeout=timeout, max_retries=0)
        return cls(client=client, owns_client=True)

    async def _generate_impl(self, request: GenerationRequest) -> GenerationResponse:
        try:
            response: Completion = await self.client.completions.create(
                model=request.model_name,
                prompt=request.prompt,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                extra_body=self.extra_body,
            )
        except APITimeoutError as e:
            raise GenerationTimeoutError(f"Completion request timed out: {e}") from e
        except APIError as e:
            status_code = getattr(e, "status_code", None)
            raise TransportError(f"Completion request failed: {e}", status_code=status_code) from e

        if not response.choices:
            logger.warning("Completion response has no choices.")
            text = ""
        else:
            text = response.choices[0].text or ""

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )
        return GenerationResponse(text=text, usage=usage)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.close()
