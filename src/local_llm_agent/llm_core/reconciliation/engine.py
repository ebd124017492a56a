"""The prompt-response reconciliation loop.

One call runs the state machine::

    GENERATING -> TOOL_DISPATCH -> (schema ? VALIDATING : DONE) -> DONE | RETRY -> GENERATING

Tool results are folded into a follow-up generation call: when the model
requested tools, they are executed in order and the model is asked again in
the same attempt with the results appended and tool use disabled. The
follow-up does not consume the attempt budget.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from ..config import AgentConfig
from ..base import GenerationBackend, GenerationRequest, GenerationResponse
from ..exceptions import AgentExecutionError, GenerationError, ReconciliationCancelledError
from ..logger import get_logger
from ..parsing import ResponseParser
from ..prompts import PromptBuilder
from ..schema import SchemaValidator
from ..tools.models import ToolCallRecord, ToolDefinition, ToolInvocationRequest
from ..tools.registry import ToolRegistry
from .result import ExecuteResult
from .state import ReconciliationState

logger = get_logger(__name__)

# Failures of the generation capability that are worth another attempt.
RETRYABLE_ERRORS = (GenerationError, TimeoutError, asyncio.TimeoutError)


def _reject_constant(token: str) -> Any:
    raise ValueError(f"{token} is not a valid JSON value")


@dataclass(frozen=True)
class _Turn:
    state: ReconciliationState
    text: str = ""
    failure: Optional[BaseException] = None


class ReconciliationEngine:
    """Drives generation, tool dispatch and schema validation for one agent call."""

    def __init__(
        self,
        backend: GenerationBackend,
        registry: ToolRegistry,
        config: Optional[AgentConfig] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        parser: Optional[ResponseParser] = None,
    ) -> None:
        """
        Args:
            backend: The text generation capability.
            registry: Tools available for execution.
            config: Sampling settings, tool-call limit and retry delay.
            prompt_builder: Renders instructions and reminders.
            parser: Extracts tool calls and JSON candidates.
        """
        self.backend = backend
        self.registry = registry
        self.config = config or AgentConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or ResponseParser()

    async def execute(
        self,
        prompt: str,
        *,
        tools: Optional[Sequence[ToolDefinition]] = None,
        schema: Any = None,
        max_attempts: int = 3,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecuteResult[Any]:
        """Run the reconciliation loop until it reaches a terminal state.

        Args:
            prompt: The caller's prompt.
            tools: Tools advertised to the model. Defaults to every registered tool.
            schema: Optional response schema. Without it the raw response is returned.
            max_attempts: Total generation attempts, including the first one.
            cancel_event: Setting this event aborts the pending generation call.

        Returns:
            The final result. Exhausted budgets are reported through ``validation_error``.

        Raises:
            AgentExecutionError: If generation keeps failing on a call without schema.
            ReconciliationCancelledError: If ``cancel_event`` was set.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

        advertised = list(tools) if tools is not None else self.registry.list_tools()
        validator: Optional[SchemaValidator[Any]] = (
            SchemaValidator(schema, strict=self.config.strict_validation) if schema is not None else None
        )
        state = ReconciliationState.start(prompt, max_attempts)

        while True:
            logger.debug(f"Attempt {state.attempt_number}/{state.max_attempts}: generating.")
            turn = await self._run_turn(state, advertised, schema, cancel_event)
            state = turn.state

            if turn.failure is not None:
                reason = self._describe_failure(turn.failure)
                logger.warning(f"Generation failed (attempt {state.attempt_number}/{state.max_attempts}): {reason}")
                if state.has_attempts_left:
                    await self._backoff(state.transport_failures)
                    state = state.retry(self.prompt_builder.transport_failure_reminder(reason))
                    continue
                if validator is None:
                    raise AgentExecutionError(
                        f"Generation failed after {state.attempt_number} attempt(s): {reason}"
                    ) from turn.failure
                return self._finish(state, response="", validation_error=f"Generation failed: {reason}")

            if validator is None:
                return self._finish(state, response=turn.text)

            parsed = self.parser.parse(turn.text)
            candidate = parsed.json_candidate
            if candidate is None:
                reminder = self.prompt_builder.no_json_reminder()
                error = "No JSON object found in the response."
            else:
                try:
                    decoded = json.loads(candidate, parse_constant=_reject_constant)
                except (ValueError, RecursionError) as exc:
                    reminder = self.prompt_builder.malformed_json_reminder(str(exc))
                    error = f"Malformed JSON: {exc}"
                else:
                    outcome = validator.validate(decoded)
                    if outcome.success:
                        logger.info(f"Response validated on attempt {state.attempt_number}.")
                        return self._finish(state, response=candidate, parsed_value=outcome.value)
                    reminder = self.prompt_builder.validation_reminder(outcome.errors)
                    error = outcome.error_text()

            if state.has_attempts_left:
                logger.warning(f"Attempt {state.attempt_number}/{state.max_attempts} rejected: {error}")
                state = state.retry(reminder)
                continue

            logger.warning(f"Attempt budget exhausted after {state.attempt_number} attempt(s): {error}")
            return self._finish(
                state,
                response=candidate if candidate is not None else turn.text,
                validation_error=error,
            )

    async def _run_turn(
        self,
        state: ReconciliationState,
        tools: Sequence[ToolDefinition],
        schema: Any,
        cancel_event: Optional[asyncio.Event],
    ) -> _Turn:
        """GENERATING and TOOL_DISPATCH for one attempt."""
        try:
            response = await self._generate(self._render(state.prompt, tools, schema), cancel_event)
        except RETRYABLE_ERRORS as exc:
            return _Turn(state=state.with_transport_failure(), failure=exc)
        state = state.with_response(response.text, response.usage)

        if not tools:
            return _Turn(state=state, text=response.text)

        response.tool_calls = self.parser.parse(response.text).tool_calls
        if not response.tool_calls:
            return _Turn(state=state, text=response.text)

        records = await self._dispatch(response.tool_calls, cancel_event)
        if not records:
            return _Turn(state=state, text=response.text)
        state = state.with_tool_calls(records)

        follow_up_prompt = f"{state.prompt}\n\n{self.prompt_builder.build_tool_results(records)}"
        try:
            follow_up = await self._generate(self._render(follow_up_prompt, [], schema), cancel_event)
        except RETRYABLE_ERRORS as exc:
            return _Turn(state=state.with_transport_failure(), failure=exc)
        state = state.with_response(follow_up.text, follow_up.usage)

        ignored = self.parser.parse(follow_up.text).tool_calls
        if ignored:
            logger.warning(f"Ignoring {len(ignored)} tool call(s) in the follow-up response; tool use is disabled there.")
        return _Turn(state=state, text=follow_up.text)

    async def _dispatch(
        self,
        calls: Sequence[ToolInvocationRequest],
        cancel_event: Optional[asyncio.Event],
    ) -> List[ToolCallRecord]:
        """Execute tool calls sequentially, in extraction order, up to the per-turn limit."""
        limit = self.config.max_tool_calls_per_turn
        if len(calls) > limit:
            logger.debug(f"Dropping {len(calls) - limit} tool call(s) beyond the limit of {limit} per turn.")

        records: List[ToolCallRecord] = []
        for call in calls[:limit]:
            self._check_cancelled(cancel_event)
            result = await self.registry.execute(call.name, call.parameters)
            records.append(ToolCallRecord(name=call.name, parameters=call.parameters, result=result))
        return records

    def _render(self, prompt: str, tools: Sequence[ToolDefinition], schema: Any) -> str:
        instructions = self.prompt_builder.build(tools, schema)
        if not instructions:
            return prompt
        return f"{instructions}\n\n{prompt}"

    async def _generate(self, prompt: str, cancel_event: Optional[asyncio.Event]) -> GenerationResponse:
        """Call the backend, aborting when ``cancel_event`` is set first."""
        request = GenerationRequest(
            prompt=prompt,
            model_name=self.config.model_name,
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        self._check_cancelled(cancel_event)
        if cancel_event is None:
            return await self.backend.generate(request)

        generation = asyncio.ensure_future(self.backend.generate(request))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({generation, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not generation.done():
                generation.cancel()

        if generation in done:
            return generation.result()
        logger.info("Generation cancelled.")
        raise ReconciliationCancelledError("Generation was cancelled.")

    async def _backoff(self, failures: int) -> None:
        if self.config.retry_delay <= 0:
            return
        delay = self.config.retry_delay * 2 ** max(failures - 1, 0)
        logger.debug(f"Waiting {delay}s before the next attempt.")
        await asyncio.sleep(delay)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise ReconciliationCancelledError("Reconciliation was cancelled.")

    @staticmethod
    def _describe_failure(exc: BaseException) -> str:
        message = str(exc)
        return f"{type(exc).__name__}: {message}" if message else type(exc).__name__

    @staticmethod
    def _finish(
        state: ReconciliationState,
        response: str,
        parsed_value: Any = None,
        validation_error: Optional[str] = None,
    ) -> ExecuteResult[Any]:
        logger.debug(
            f"Reconciliation finished after {state.attempt_number} attempt(s), "
            f"{state.generation_calls} generation call(s) and {len(state.tool_calls)} tool call(s)."
        )
        return ExecuteResult(
            response=response,
            parsed_value=parsed_value,
            validation_error=validation_error,
            tool_calls=state.tool_calls,
            attempts=state.attempt_number,
            usage=state.usage,
        )
