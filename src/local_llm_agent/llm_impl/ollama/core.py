"""Backend for the native Ollama generate API."""

from typing import Any, Dict, Optional

import httpx

from local_llm_agent.llm_core.base import GenerationBackend, GenerationRequest, GenerationResponse, TokenUsage
from local_llm_agent.llm_core.exceptions import GenerationTimeoutError, TransportError
from local_llm_agent.llm_core.logger import get_logger

logger = get_logger(__name__)


class OllamaBackend(GenerationBackend):
    """
    Sends prompts to ``POST {base_url}/api/generate`` with streaming disabled.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: float = 120.0,
        client: Optional[httpx.AsyncClient] = None,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Initializes the Ollama backend.

        Args:
            base_url: Root URL of the Ollama server.
            timeout: Request timeout in seconds, used when the client is created here.
            client: Optional pre-configured httpx client; its lifetime stays with the caller.
            options: Extra model options merged into every request (e.g. ``{"num_ctx": 4096}``).
        """
        self.base_url = base_url.rstrip("/")
        self.options = dict(options or {})
        self._owns_client = client is None
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def _generate_impl(self, request: GenerationRequest) -> GenerationResponse:
        payload = {
            "model": request.model_name,
            "prompt": request.prompt,
            "stream": False,
            "options": {
                **self.options,
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }

        try:
            response = await self.client.post(f"{self.base_url}/api/generate", json=payload)
        except httpx.TimeoutException as e:
            raise GenerationTimeoutError(f"Request to {self.base_url} timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {self.base_url} failed: {e}") from e

        if response.status_code >= 400:
            msg = f"HTTP error! status: {response.status_code}"
            logger.warning(f"{msg} ({response.text[:200]})")
            raise TransportError(msg, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise TransportError(f"Invalid JSON in response from {self.base_url}: {e}") from e

        if not isinstance(data, dict):
            raise TransportError(f"Unexpected response payload from {self.base_url}: {type(data).__name__}")
        if data.get("error"):
            raise TransportError(f"Server error: {data['error']}", status_code=response.status_code)

        return GenerationResponse(text=data.get("response") or "", usage=self._extract_usage(data))

    @staticmethod
    def _extract_usage(data: Dict[str, Any]) -> Optional[TokenUsage]:
        """Token counters from Ollama's ``prompt_eval_count``/``eval_count`` or an OpenAI-style ``usage`` object."""
        usage = data.get("usage")
        if isinstance(usage, dict):
            return TokenUsage(
                prompt_tokens=usage.get("prompt_tokens"),
                completion_tokens=usage.get("completion_tokens"),
                total_tokens=usage.get("total_tokens"),
            )

        prompt_tokens = data.get("prompt_eval_count")
        completion_tokens = data.get("eval_count")
        if prompt_tokens is None and completion_tokens is None:
            return None
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=(prompt_tokens or 0) + (completion_tokens or 0),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
