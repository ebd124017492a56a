import pytest

from local_llm_agent.llm_core import ParsedResponse, ResponseParser, ToolInvocationRequest


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


def test_text_without_markers(parser: ResponseParser) -> None:
    parsed = parser.parse("  The answer is 4.  ")

    assert parsed == ParsedResponse(tool_calls=[], json_candidate=None, residual_text="The answer is 4.")


def test_parse_is_idempotent_on_residual(parser: ResponseParser) -> None:
    text = 'Sure. <tool>\nname: add\nparameters:\n  a: 1\n</tool> {"x": 1}'
    first = parser.parse(text)
    second = parser.parse(first.residual_text)

    assert second.residual_text == first.residual_text
    assert second.tool_calls == []


def test_single_tool_call(parser: ResponseParser) -> None:
    text = 'Let me check.\n<tool>\nname: add\nparameters:\n  a: 2\n  b: "3"\n</tool>'

    parsed = parser.parse(text)

    assert parsed.tool_calls == [ToolInvocationRequest(name="add", parameters={"a": 2, "b": "3"})]
    assert parsed.residual_text == "Let me check."
    assert parsed.json_candidate is None


def test_multiple_tool_calls_keep_order(parser: ResponseParser) -> None:
    text = (
        "<tool>\nname: first\nparameters:\n  n: 1\n</tool>\n"
        "some thinking\n"
        "<tool>\nname: second\nparameters:\n  n: 2\n</tool>\n"
        "<tool>\nname: third\n</tool>"
    )

    parsed = parser.parse(text)

    assert [c.name for c in parsed.tool_calls] == ["first", "second", "third"]
    assert parsed.tool_calls[2].parameters == {}
    assert parsed.residual_text == "some thinking"


def test_markers_are_case_insensitive(parser: ResponseParser) -> None:
    parsed = parser.parse("<TOOL>\nName: ping\nParameters:\n  host: localhost\n</TOOL>")

    assert parsed.tool_calls == [ToolInvocationRequest(name="ping", parameters={"host": "localhost"})]


def test_parameter_value_keeps_text_after_first_colon(parser: ResponseParser) -> None:
    parsed = parser.parse("<tool>\nname: fetch\nparameters:\n  url: http://example.com:8080/path\n</tool>")

    assert parsed.tool_calls[0].parameters == {"url": "http://example.com:8080/path"}


def test_lines_without_colon_are_skipped() -> None:
    assert ResponseParser.parse_parameters("  a: 1\n  just noise\n  : orphan\n  b: two") == {"a": 1, "b": "two"}


def test_json_candidate_from_surrounding_text(parser: ResponseParser) -> None:
    parsed = parser.parse('Here you go: {"name": "John", "age": 30} Hope that helps!')

    assert parsed.json_candidate == '{"name": "John", "age": 30}'


def test_json_candidate_ignores_tool_blocks(parser: ResponseParser) -> None:
    text = '<tool>\nname: store\nparameters:\n  data: {"x": 1}\n</tool>\n{"answer": 2}'

    parsed = parser.parse(text)

    assert parsed.tool_calls[0].parameters == {"data": {"x": 1}}
    assert parsed.json_candidate == '{"answer": 2}'


def test_json_candidate_spans_first_to_last_brace(parser: ResponseParser) -> None:
    # The scan is not balance-aware; the widened span fails to decode later on.
    parsed = parser.parse('{"a": 1} and then }')

    assert parsed.json_candidate == '{"a": 1} and then }'


@pytest.mark.parametrize("text", ["{ never closed", "} backwards {", "no braces at all"])
def test_no_json_candidate(parser: ResponseParser, text: str) -> None:
    assert parser.parse(text).json_candidate is None


def test_block_without_name_is_skipped(parser: ResponseParser) -> None:
    parsed = parser.parse("<tool>\nname:\nparameters:\n  a: 1\n</tool>")

    assert parsed.tool_calls == []


def test_multiline_json_value_is_not_joined() -> None:
    block = '  data: {\n    "x": 1\n  }'

    assert ResponseParser.parse_parameters(block) == {"data": "{", '"x"': 1}
