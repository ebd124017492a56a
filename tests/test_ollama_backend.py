import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from local_llm_agent.llm_core import (
    GenerationRequest,
    GenerationTimeoutError,
    TokenUsage,
    TransportError,
)
from local_llm_agent.llm_impl import OllamaBackend

BASE_URL = "http://ollama.test"


def make_backend(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> OllamaBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaBackend(base_url=BASE_URL + "/", client=client, **kwargs)


def make_request(prompt: str = "Hello") -> GenerationRequest:
    return GenerationRequest(prompt=prompt, model_name="llama3.2:3b", temperature=0.5, max_tokens=128)


@pytest.mark.asyncio
async def test_generate_posts_non_streaming_request() -> None:
    seen: List[Dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/api/generate"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"response": "Hi!", "done": True, "prompt_eval_count": 5, "eval_count": 7})

    backend = make_backend(handler, options={"num_ctx": 4096})
    response = await backend.generate(make_request())

    assert response.text == "Hi!"
    assert response.usage == TokenUsage(prompt_tokens=5, completion_tokens=7, total_tokens=12)
    assert seen == [
        {
            "model": "llama3.2:3b",
            "prompt": "Hello",
            "stream": False,
            "options": {"num_ctx": 4096, "temperature": 0.5, "num_predict": 128},
        }
    ]


@pytest.mark.asyncio
async def test_openai_style_usage_and_missing_text() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"usage": {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3}})

    response = await make_backend(handler).generate(make_request())

    assert response.text == ""
    assert response.usage == TokenUsage(prompt_tokens=1, completion_tokens=2, total_tokens=3)


@pytest.mark.asyncio
async def test_no_usage_reported() -> None:
    response = await make_backend(lambda request: httpx.Response(200, json={"response": "ok"})).generate(make_request())

    assert response.usage is None


@pytest.mark.asyncio
async def test_http_error_status() -> None:
    backend = make_backend(lambda request: httpx.Response(500, text="internal error"))

    with pytest.raises(TransportError, match="HTTP error! status: 500") as exc_info:
        await backend.generate(make_request())
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(GenerationTimeoutError):
        await make_backend(handler).generate(make_request())


@pytest.mark.asyncio
async def test_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="connection refused") as exc_info:
        await make_backend(handler).generate(make_request())
    assert not isinstance(exc_info.value, GenerationTimeoutError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"error": "model 'x' not found"}),
    ],
)
async def test_bad_payloads(response: httpx.Response) -> None:
    with pytest.raises(TransportError):
        await make_backend(lambda request: response).generate(make_request())


@pytest.mark.asyncio
async def test_injected_client_is_not_closed() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
    backend = OllamaBackend(base_url=BASE_URL, client=client)

    await backend.aclose()

    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_owned_client_is_closed() -> None:
    backend = OllamaBackend(base_url=BASE_URL)

    async with backend:
        pass

    assert backend.client.is_closed
