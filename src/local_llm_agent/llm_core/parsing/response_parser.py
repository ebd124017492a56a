"""Extraction of tool calls and JSON answers from free-text model output.

The model output is treated as an untyped protocol. Two formats are recognised:

* tool-call blocks in the strict marker format::

      <tool>
      name: <exact tool name>
      parameters:
        <param1>: <value1>
      </tool>

* a JSON answer, located heuristically as the span from the first ``{`` to the
  last ``}`` of the text left after removing the tool-call blocks. The scan is
  not balance-aware: a ``}`` inside a string value followed by more text can
  widen the span past the real object, in which case the candidate fails to
  decode and the reconciliation loop asks the model again.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..tools.models import ToolInvocationRequest
from ..logger import get_logger
from .value_coercion import coerce_value

logger = get_logger(__name__)

TOOL_CALL_PATTERN = re.compile(
    r"<tool>\s*name:\s*(?P<name>[^\n]*?)\s*(?:\n\s*parameters:[ \t]*(?P<params>.*?))?\s*</tool>",
    re.DOTALL | re.IGNORECASE,
)


@dataclass(frozen=True)
class ParsedResponse:
    """Typed view of one model response."""

    tool_calls: List[ToolInvocationRequest] = field(default_factory=list)
    json_candidate: Optional[str] = None
    residual_text: str = ""


class ResponseParser:
    """Parses raw model text into tool calls, a JSON candidate and residual text."""

    def parse(self, raw_text: str) -> ParsedResponse:
        tool_calls: List[ToolInvocationRequest] = []
        for match in TOOL_CALL_PATTERN.finditer(raw_text):
            name = match.group("name").strip()
            if not name:
                logger.debug("Skipping tool-call block without a tool name.")
                continue
            parameters = self.parse_parameters(match.group("params") or "")
            tool_calls.append(ToolInvocationRequest(name=name, parameters=parameters))

        residual_text = TOOL_CALL_PATTERN.sub("", raw_text).strip()
        json_candidate = self.extract_json_candidate(residual_text)

        if tool_calls:
            logger.debug(f"Extracted {len(tool_calls)} tool call(s): {[c.name for c in tool_calls]}")

        return ParsedResponse(tool_calls=tool_calls, json_candidate=json_candidate, residual_text=residual_text)

    @staticmethod
    def parse_parameters(block: str) -> Dict[str, Any]:
        """Parse newline-delimited ``key: value`` lines; the value is everything after the first colon.

        Each value must fit on its own line. A pretty-printed array or object is
        read line by line, so only its first line stays with the key.
        """
        parameters: Dict[str, Any] = {}
        for line in block.splitlines():
            key, sep, value = line.strip().partition(":")
            key = key.strip()
            if not sep or not key:
                continue
            parameters[key] = coerce_value(value)
        return parameters

    @staticmethod
    def extract_json_candidate(text: str) -> Optional[str]:
        """Return the substring from the first ``{`` to the last ``}``, or None."""
        start = text.find("{")
        end = text.rfind("}")
        if start == -1 or end < start:
            return None
        return text[start : end + 1]
