from typing import Generic, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict

from ..base import TokenUsage
from ..tools.models import ToolCallRecord

SchemaT = TypeVar("SchemaT")


class ExecuteResult(BaseModel, Generic[SchemaT]):
    """Final outcome of one agent call.

    Attributes:
        response: Final response text; the matched JSON substring when validation succeeded.
        parsed_value: Validated value, only when a schema was supplied and validation succeeded.
        validation_error: Why the call failed once the attempt budget was exhausted.
        tool_calls: Every executed tool call with its result.
        attempts: Number of attempts used.
        usage: Token usage summed over all generation calls, when reported.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    response: str
    parsed_value: Optional[SchemaT] = None
    validation_error: Optional[str] = None
    tool_calls: Tuple[ToolCallRecord, ...] = ()
    attempts: int = 1
    usage: Optional[TokenUsage] = None

    @property
    def succeeded(self) -> bool:
        return self.validation_error is None
