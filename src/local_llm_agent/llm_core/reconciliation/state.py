"""Immutable state threaded through the reconciliation loop."""

from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from ..base import TokenUsage
from ..tools.models import ToolCallRecord


@dataclass(frozen=True)
class ReconciliationState:
    """
    Snapshot of one reconciliation run between two transitions.

    Attributes:
        original_prompt: The caller's prompt.
        prompt: The original prompt plus every corrective reminder appended so far.
        attempt_number: Current attempt, starting at 1.
        max_attempts: Total attempts allowed, including the first one.
        tool_calls: Every tool call executed so far, in execution order.
        last_response_text: Text of the most recent generation call.
        usage: Token usage summed over all generation calls.
        generation_calls: Number of generation calls issued.
        transport_failures: Number of failed generation calls.
    """

    original_prompt: str
    prompt: str
    attempt_number: int = 1
    max_attempts: int = 3
    tool_calls: Tuple[ToolCallRecord, ...] = ()
    last_response_text: str = ""
    usage: Optional[TokenUsage] = None
    generation_calls: int = 0
    transport_failures: int = 0

    @classmethod
    def start(cls, prompt: str, max_attempts: int) -> "ReconciliationState":
        return cls(original_prompt=prompt, prompt=prompt, max_attempts=max_attempts)

    @property
    def has_attempts_left(self) -> bool:
        return self.attempt_number < self.max_attempts

    def with_response(self, text: str, usage: Optional[TokenUsage]) -> "ReconciliationState":
        total = self.usage
        if usage is not None:
            total = usage if total is None else total + usage
        return replace(
            self,
            last_response_text=text,
            usage=total,
            generation_calls=self.generation_calls + 1,
        )

    def with_tool_calls(self, records: Iterable[ToolCallRecord]) -> "ReconciliationState":
        return replace(self, tool_calls=self.tool_calls + tuple(records))

    def with_transport_failure(self) -> "ReconciliationState":
        return replace(
            self,
            generation_calls=self.generation_calls + 1,
            transport_failures=self.transport_failures + 1,
        )

    def retry(self, reminder: str) -> "ReconciliationState":
        """Next attempt; the reminder is appended so context accumulates across attempts."""
        return replace(
            self,
            attempt_number=self.attempt_number + 1,
            prompt=f"{self.prompt}\n\n{reminder}",
        )
