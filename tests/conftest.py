from typing import Annotated, Any, List, Sequence, Union

import pytest
from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

from local_llm_agent.llm_core import (
    AgentConfig,
    GenerationBackend,
    GenerationRequest,
    GenerationResponse,
    ParameterSpec,
    ToolDefinition,
    ToolRegistry,
)

# Live-server settings (LOCAL_AGENT_*) may come from a .env file; the unit tests never need them.
env_file = find_dotenv()
if env_file:
    load_dotenv(env_file)

ScriptItem = Union[str, GenerationResponse, BaseException]


class ScriptedBackend(GenerationBackend):
    """
    Replays a fixed script of model outputs.

    Strings become plain responses, exceptions are raised. With ``repeat_last`` the
    final entry is replayed forever, otherwise running out of entries fails the test.
    """

    def __init__(self, script: Sequence[ScriptItem], repeat_last: bool = False) -> None:
        self.script: List[ScriptItem] = list(script)
        self.repeat_last = repeat_last
        self.requests: List[GenerationRequest] = []
        self.closed = False

    @property
    def prompts(self) -> List[str]:
        return [r.prompt for r in self.requests]

    async def _generate_impl(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        if not self.script:
            raise AssertionError("ScriptedBackend ran out of responses")
        if self.repeat_last and len(self.script) == 1:
            item = self.script[0]
        else:
            item = self.script.pop(0)

        if isinstance(item, BaseException):
            raise item
        if isinstance(item, GenerationResponse):
            return item
        return GenerationResponse(text=item)

    async def aclose(self) -> None:
        self.closed = True


class Person(BaseModel):
    name: str
    age: int


class CustomerRecord(BaseModel):
    customer_id: str


def parse_customer_id(customerid: Any) -> dict:
    return {"customer_id": f"C{int(customerid):07d}"}


@pytest.fixture
def fast_config() -> AgentConfig:
    """Default configuration without retry back-off."""
    return AgentConfig(model_name="test-model", retry_delay=0)


@pytest.fixture
def customer_id_tool() -> ToolDefinition:
    return ToolDefinition(
        name="parse_customer_id",
        description="Normalizes a numeric customer id into the C0000000 format.",
        func=parse_customer_id,
        parameters=[ParameterSpec(name="customerid", type="number", description="Raw customer number", required=True)],
    )


@pytest.fixture
def calculator_registry() -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool
    def add(
        a: Annotated[int, Field(description="First summand")],
        b: Annotated[int, Field(description="Second summand")],
    ) -> int:
        """Adds two integers."""
        return a + b

    @registry.tool
    async def divide(
        a: Annotated[float, Field(description="Dividend")],
        b: Annotated[float, Field(description="Divisor")],
    ) -> float:
        """Divides a by b."""
        return a / b

    return registry
