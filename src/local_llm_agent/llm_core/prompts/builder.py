"""Rendering of tool and response-format instructions for text-only models."""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from ..schema import FieldError, SchemaField, flatten_schema_fields
from ..tools.models import ParameterSpec, ToolCallRecord, ToolDefinition

_PLACEHOLDERS: Dict[str, Any] = {
    "string": "text",
    "number": 0,
    "boolean": True,
    "array": [],
    "object": {},
}

TOOL_CALL_FORMAT = """<tool>
name: [exact tool name]
parameters:
  [parameter1]: [value1]
  [parameter2]: [value2]
</tool>"""

TOOL_RULES = """RULES FOR TOOLS:
1. Use EXACTLY the tool names listed above.
2. To call a tool, write the block above and nothing else inside it: one parameter per line as "name: value".
3. Put string values in double quotes. Write numbers, true/false, arrays and objects as JSON on a single line.
4. Do not change the block format and do not wrap it in markdown fences.
5. Wait for the tool results before giving your final answer."""

JSON_RULES = """RULES FOR THE JSON ANSWER:
1. Return ONLY the JSON object: no text before or after it.
2. Start your answer with { and end it with }.
3. Do not put comments in the JSON.
4. Field types must match exactly: numbers as numbers (not strings), booleans as true or false.
5. Do not add fields that are not listed.
6. For fields with a list of allowed values, use one of those values exactly."""

PLAIN_RULES = """INSTRUCTIONS FOR THE ANSWER:
1. Use the tools you need to perform the task.
2. After using a tool, wait for its result.
3. Use the results to answer the question clearly and concisely."""


class PromptBuilder:
    """
    Builds the instruction block placed in front of the user prompt.

    The builder is a pure function of its inputs: the same tools and schema
    always render the same text.
    """

    def build(self, tools: Sequence[ToolDefinition], schema: Any = None) -> str:
        """Render tool and/or response-format instructions.

        Args:
            tools: Tools the model may call. Empty to disable tool use.
            schema: Optional response schema (pydantic model, TypeAdapter-compatible
                type or JSON schema dict).

        Returns:
            The instruction text, empty when there is nothing to instruct.
        """
        sections: List[str] = []
        if tools:
            sections.append(self.build_tools_section(tools))

        if schema is not None:
            sections.append(self.build_schema_section(flatten_schema_fields(schema), with_tools=bool(tools)))
        elif tools:
            sections.append(PLAIN_RULES)

        return "\n\n".join(sections)

    def build_tools_section(self, tools: Sequence[ToolDefinition]) -> str:
        descriptions = "\n\n".join(self._describe_tool(tool) for tool in tools)
        return (
            f"AVAILABLE TOOLS:\n\n{descriptions}\n\n"
            f"TOOL CALL FORMAT:\nTo use a tool, write exactly this block:\n{TOOL_CALL_FORMAT}\n\n"
            f"{TOOL_RULES}"
        )

    def build_schema_section(self, fields: Sequence[SchemaField], with_tools: bool = False) -> str:
        lines = ["RESPONSE FORMAT:"]
        if fields:
            lines.append("Your final answer MUST be a single JSON object with these fields:")
            lines.extend(self._describe_field(f) for f in fields)
        else:
            lines.append("Your final answer MUST be a single JSON object.")

        section = "\n".join(lines) + "\n\n" + JSON_RULES
        if with_tools:
            section += (
                "\n\nFirst use the tools you need. Once you have their results, "
                "answer with ONLY the final JSON object."
            )
        return section

    def build_tool_results(self, records: Iterable[ToolCallRecord]) -> str:
        """Render executed tool calls for the follow-up prompt."""
        lines = ["TOOL RESULTS:"]
        for record in records:
            args = ", ".join(f"{k}={self._to_json(v)}" for k, v in record.parameters.items())
            if record.result.success:
                outcome = self._to_json(record.result.data)
            else:
                outcome = f"ERROR: {record.result.error}"
            lines.append(f"- {record.name}({args}) -> {outcome}")
        lines.append("")
        lines.append("Use these results to answer. Do not call any more tools.")
        return "\n".join(lines)

    @classmethod
    def render_tool_call(cls, name: str, parameters: Optional[Mapping[str, Any]] = None) -> str:
        """Render one tool-call block in the marker format understood by the ResponseParser."""
        lines = ["<tool>", f"name: {name}", "parameters:"]
        for key, value in (parameters or {}).items():
            lines.append(f"  {key}: {cls.format_value(value)}")
        lines.append("</tool>")
        return "\n".join(lines)

    @staticmethod
    def format_value(value: Any) -> str:
        """Render a parameter value so that ``coerce_value`` reads it back unchanged."""
        if isinstance(value, str):
            return f'"{value}"'
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return repr(value)
        return json.dumps(value, ensure_ascii=False)

    @staticmethod
    def no_json_reminder() -> str:
        return (
            "Reminder: your answer must be a single JSON object that starts with { and ends with }. "
            "Do not write any text before or after the JSON."
        )

    @staticmethod
    def malformed_json_reminder(error: str) -> str:
        return (
            f"Reminder: the JSON you returned is not valid ({error}). "
            "Return well-formed JSON without comments or trailing commas."
        )

    @staticmethod
    def validation_reminder(errors: Sequence[FieldError]) -> str:
        details = "\n".join(f"- {error}" for error in errors)
        return f"Reminder: the JSON you returned does not match the required format:\n{details}"

    @staticmethod
    def transport_failure_reminder(error: str) -> str:
        return f"Note: the previous generation request failed ({error}). Answer the request again."

    def _describe_tool(self, tool: ToolDefinition) -> str:
        if tool.parameters:
            params = "\n".join(self._describe_parameter(p) for p in tool.parameters)
        else:
            params = "  (none)"
        example = self.render_tool_call(tool.name, {p.name: _PLACEHOLDERS[p.type] for p in tool.parameters})
        return f"{tool.name}: {tool.description}\nParameters:\n{params}\nUsage:\n{example}"

    @staticmethod
    def _describe_parameter(param: ParameterSpec) -> str:
        param_type: str = param.type
        if param.type == "array" and param.items:
            param_type = f"array of {param.items}"
        flag = "[required]" if param.required else "[optional]"
        description = f": {param.description}" if param.description else ""
        return f"  - {param.name} ({param_type}) {flag}{description}"

    def _describe_field(self, field: SchemaField) -> str:
        flag = "required" if field.required else "optional"
        line = f'- "{field.path}" ({flag}): {field.type}'
        if field.enum:
            line += ", one of: " + ", ".join(self._to_json(v) for v in field.enum)
        if field.description:
            line += f" - {field.description}"
        return line

    @staticmethod
    def _to_json(value: Any) -> str:
        return json.dumps(value, ensure_ascii=False, default=str)
