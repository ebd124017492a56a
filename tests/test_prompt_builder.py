from typing import Annotated, Any, List, Literal, Optional

import pytest
from pydantic import BaseModel, ConfigDict, Field

from local_llm_agent.llm_core import (
    FieldError,
    ParameterSpec,
    PromptBuilder,
    ResponseParser,
    ToolCallRecord,
    ToolDefinition,
    ToolInvocationRequest,
    ToolInvocationResult,
    ToolRegistry,
)


class Address(BaseModel):
    city: str
    zip: Optional[str] = None


class Person(BaseModel):
    name: str = Field(description="Full name")
    age: int
    status: Literal["active", "inactive"]
    address: Address
    tags: List[str]


class Node(BaseModel):
    value: int
    children: List["Node"] = []


class Opaque:
    pass


class Holder(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    blob: Opaque
    label: str


@pytest.fixture
def builder() -> PromptBuilder:
    return PromptBuilder()


@pytest.fixture
def weather_tool() -> ToolDefinition:
    registry = ToolRegistry()

    @registry.tool
    def get_weather(
        city: Annotated[str, Field(description="City name")],
        days: Annotated[int, Field(description="Forecast length")] = 1,
    ) -> str:
        """Returns the weather forecast for a city."""
        return "sunny"

    return registry.list_tools()[0]


def test_nothing_to_instruct(builder: PromptBuilder) -> None:
    assert builder.build([]) == ""


def test_tools_only(builder: PromptBuilder, weather_tool: ToolDefinition) -> None:
    text = builder.build([weather_tool])

    assert text.startswith("AVAILABLE TOOLS:")
    assert "get_weather: Returns the weather forecast for a city." in text
    assert "  - city (string) [required]: City name" in text
    assert "  - days (number) [optional]: Forecast length" in text
    assert '<tool>\nname: get_weather\nparameters:\n  city: "text"\n  days: 0\n</tool>' in text
    assert "RULES FOR TOOLS" in text
    assert "arrays and objects as JSON on a single line" in text
    assert "INSTRUCTIONS FOR THE ANSWER" in text
    assert "RESPONSE FORMAT" not in text


def test_tool_without_parameters(builder: PromptBuilder) -> None:
    tool = ToolDefinition(name="now", description="Current time.", func=lambda: "noon")

    text = builder.build_tools_section([tool])

    assert "now: Current time.\nParameters:\n  (none)" in text


def test_schema_only(builder: PromptBuilder) -> None:
    text = builder.build([], Person)

    assert text.startswith("RESPONSE FORMAT:")
    assert '- "name" (required): string - Full name' in text
    assert '- "age" (required): integer' in text
    assert '- "status" (required): string, one of: "active", "inactive"' in text
    assert '- "address.city" (required): string' in text
    assert '- "address.zip" (optional): string' in text
    assert '- "tags" (required): array of string' in text
    assert "RULES FOR THE JSON ANSWER" in text
    assert "AVAILABLE TOOLS" not in text
    assert "First use the tools" not in text


def test_tools_precede_schema(builder: PromptBuilder, weather_tool: ToolDefinition) -> None:
    text = builder.build([weather_tool], Person)

    assert text.index("AVAILABLE TOOLS:") < text.index("RESPONSE FORMAT:")
    assert "First use the tools you need" in text
    assert "INSTRUCTIONS FOR THE ANSWER" not in text


def test_build_is_deterministic(builder: PromptBuilder, weather_tool: ToolDefinition) -> None:
    assert builder.build([weather_tool], Person) == builder.build([weather_tool], Person)


def test_unknown_types_render_as_any(builder: PromptBuilder) -> None:
    text = builder.build([], Holder)

    assert '- "blob" (required): any' in text
    assert '- "label" (required): string' in text


def test_recursive_schema_renders_references_as_object(builder: PromptBuilder) -> None:
    text = builder.build([], Node)

    assert '- "value" (required): integer' in text
    assert '- "children" (optional): array of object' in text


def test_non_object_schema_still_asks_for_json(builder: PromptBuilder) -> None:
    text = builder.build([], dict)

    assert "Your final answer MUST be a single JSON object." in text


def test_json_schema_dict(builder: PromptBuilder) -> None:
    schema = {
        "type": "object",
        "properties": {
            "items": {
                "type": "array",
                "items": {"type": "object", "properties": {"sku": {"type": "string"}}, "required": ["sku"]},
            },
            "total": {"type": ["number", "null"]},
            "mode": {"const": "fast"},
        },
        "required": ["items"],
    }

    text = builder.build([], schema)

    assert '- "items[].sku" (required): string' in text
    assert '- "total" (optional): number' in text
    assert '- "mode" (optional): string, one of: "fast"' in text


@pytest.mark.parametrize(
    "parameters",
    [
        {},
        {"expression": "2 + 2"},
        {"count": 3, "ratio": 0.5, "flag": False},
        {"items": [1, "two"], "options": {"a": "b", "n": None}},
    ],
)
def test_rendered_tool_call_parses_back(parameters: dict) -> None:
    block = PromptBuilder.render_tool_call("calculator", parameters)

    parsed = ResponseParser().parse(block)

    assert parsed.tool_calls == [ToolInvocationRequest(name="calculator", parameters=parameters)]
    assert parsed.residual_text == ""


def test_tool_results(builder: PromptBuilder) -> None:
    records = [
        ToolCallRecord(name="add", parameters={"a": 2, "b": 3}, result=ToolInvocationResult.ok(5)),
        ToolCallRecord(
            name="lookup",
            parameters={"key": "x"},
            result=ToolInvocationResult.fail("Tool 'lookup' not found", error_type="ToolNotFoundError"),
        ),
    ]

    text = builder.build_tool_results(records)

    assert text.startswith("TOOL RESULTS:")
    assert "- add(a=2, b=3) -> 5" in text
    assert "- lookup(key=\"x\") -> ERROR: Tool 'lookup' not found" in text
    assert text.endswith("Do not call any more tools.")


def test_reminders(builder: PromptBuilder) -> None:
    errors = [FieldError(path="name", message="Field required"), FieldError(path="age", message="Input should be a valid integer")]

    validation = builder.validation_reminder(errors)

    assert "- name: Field required" in validation
    assert "- age: Input should be a valid integer" in validation
    assert "starts with { and ends with }" in builder.no_json_reminder()
    assert "Expecting value" in builder.malformed_json_reminder("Expecting value: line 1 column 1")
    assert "connection refused" in builder.transport_failure_reminder("connection refused")


def test_parameter_spec_placeholders(builder: PromptBuilder) -> None:
    tool = ToolDefinition(
        name="configure",
        description="Configures things.",
        func=lambda **kwargs: kwargs,
        parameters=[
            ParameterSpec(name="enabled", type="boolean"),
            ParameterSpec(name="ids", type="array", items="number"),
            ParameterSpec(name="extra", type="object"),
        ],
    )

    text = builder.build_tools_section([tool])

    assert "  - ids (array of number) [optional]" in text
    assert "  enabled: true\n  ids: []\n  extra: {}" in text


def test_format_value() -> None:
    values: List[Any] = ["x", True, 7, 1.5, [1], {"k": "v"}]
    assert [PromptBuilder.format_value(v) for v in values] == ['"x"', "true", "7", "1.5", "[1]", '{"k": "v"}']
