import logging

import pytest
from pydantic import ValidationError

from local_llm_agent.llm_core import AgentConfig, get_logger, setup_logging
from local_llm_agent.llm_impl import OllamaBackend, OpenAICompatibleBackend, create_backend


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for suffix in ("MODEL", "BASE_URL", "PROVIDER", "TEMPERATURE", "MAX_TOKENS", "MAX_RETRIES", "API_KEY"):
        monkeypatch.delenv(f"LOCAL_AGENT_{suffix}", raising=False)
    return monkeypatch


def test_from_env_reads_prefixed_variables(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("LOCAL_AGENT_MODEL", "qwen2.5:7b")
    clean_env.setenv("LOCAL_AGENT_TEMPERATURE", "0.2")
    clean_env.setenv("LOCAL_AGENT_MAX_RETRIES", "5")
    clean_env.setenv("LOCAL_AGENT_PROVIDER", "openai")

    config = AgentConfig.from_env()

    assert config.model_name == "qwen2.5:7b"
    assert config.temperature == 0.2
    assert config.max_retries == 5
    assert config.provider == "openai"
    assert config.max_tokens == 2048


def test_from_env_overrides_win(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("LOCAL_AGENT_MODEL", "from-env")

    assert AgentConfig.from_env(model_name="explicit").model_name == "explicit"
    assert AgentConfig.from_env(model_name=None).model_name == "from-env"


def test_from_env_validates(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("LOCAL_AGENT_TEMPERATURE", "hot")

    with pytest.raises(ValidationError):
        AgentConfig.from_env()


def test_merged_returns_new_config() -> None:
    config = AgentConfig()

    assert config.merged() is config
    assert config.merged(temperature=None) is config

    changed = config.merged(max_tokens=512)
    assert changed.max_tokens == 512
    assert config.max_tokens == 2048


@pytest.mark.parametrize("field, value", [("temperature", -0.1), ("temperature", 2.5), ("max_retries", 0), ("retry_delay", -1)])
def test_constraints(field: str, value: float) -> None:
    with pytest.raises(ValidationError):
        AgentConfig(**{field: value})


@pytest.mark.asyncio
async def test_create_backend() -> None:
    ollama = create_backend(AgentConfig(base_url="http://gpu-box:11434"))
    openai_backend = create_backend(AgentConfig(provider="openai"))

    assert isinstance(ollama, OllamaBackend)
    assert ollama.base_url == "http://gpu-box:11434"
    assert isinstance(openai_backend, OpenAICompatibleBackend)

    await ollama.aclose()
    await openai_backend.aclose()


def test_get_logger_names() -> None:
    assert get_logger().name == "local_llm_agent"
    assert get_logger("custom").name == "local_llm_agent.custom"
    assert get_logger("local_llm_agent.llm_core.agent").name == "local_llm_agent.llm_core.agent"


def test_setup_logging_adds_one_handler() -> None:
    root = logging.getLogger("local_llm_agent")
    before, level = list(root.handlers), root.level
    try:
        setup_logging(level=logging.DEBUG)
        setup_logging(level=logging.DEBUG)
        added = [h for h in root.handlers if h not in before]
        assert len(added) == 1
        assert root.level == logging.DEBUG
    finally:
        for handler in [h for h in root.handlers if h not in before]:
            root.removeHandler(handler)
        root.setLevel(level)
