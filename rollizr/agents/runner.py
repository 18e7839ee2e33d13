"""Agent runner: executes one agent's unit of work.

A runner binds an :class:`~rollizr.schemas.models.AgentDefinition` to a
generation client and the response extractor. It builds the task message,
calls the client, parses the reply and normalizes everything into an
:class:`~rollizr.schemas.models.ExecutionResult`. Runners never raise.

Contract:
- ``async execute(input, context) -> ExecutionResult``
- ``async execute_with_history(input, history, context) -> ExecutionResult``

The retained conversation history is private to the runner and is only
appended to on success or cleared with :meth:`AgentRunner.reset_history`.
Concurrent ``execute_with_history`` calls on the same runner must be
serialized by the caller.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..schemas.models import (
    AgentDefinition,
    ConversationMessage,
    ExecutionResult,
    GenerationParams,
)
from ..utils.extraction import extract_structured
from ..utils.generation_client import BaseGenerationClient, GenerationResult

INPUT_PREVIEW_CHARS = 100


def build_task_message(task_input: Any, context: Optional[Mapping[str, Any]] = None) -> str:
    """Combine an optional context block and the task block into one message."""
    parts: List[str] = []
    if context:
        parts.append("=== CONTEXT ===\n" + json.dumps(context, indent=2, default=str) + "\n")
    if isinstance(task_input, str):
        parts.append("=== TASK ===\n" + task_input)
    else:
        parts.append("=== TASK ===\n" + json.dumps(task_input, indent=2, default=str))
    return "\n".join(parts)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class AgentRunner:
    """Runs a single agent definition against a generation client."""

    def __init__(
        self,
        definition: AgentDefinition,
        client: BaseGenerationClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.definition = definition
        self.client = client
        self.logger = logger or logging.getLogger(f"{self.__class__.__name__}.{definition.agent_id}")
        self._history: List[ConversationMessage] = []

    @property
    def params(self) -> GenerationParams:
        return GenerationParams(
            max_output_tokens=self.definition.max_output_tokens,
            temperature=self.definition.temperature,
        )

    @property
    def history(self) -> Tuple[ConversationMessage, ...]:
        return tuple(self._history)

    def reset_history(self) -> None:
        self._history = []

    def info(self) -> Dict[str, Any]:
        d = self.definition
        return {
            "agent_id": d.agent_id,
            "name": d.name,
            "role": d.role,
            "description": d.description,
            "temperature": d.temperature,
            "max_output_tokens": d.max_output_tokens,
        }

    async def execute(self, task_input: Any, context: Optional[Mapping[str, Any]] = None) -> ExecutionResult:
        """Run the agent once on ``task_input`` with optional ``context``."""
        start = time.perf_counter()
        try:
            message = build_task_message(task_input, context)
            response = await self.client.send(self.definition.instructions, message, self.params)
            return self._finish(task_input, response, start)
        except Exception as exc:
            self.logger.exception("Unexpected error while executing %s", self.definition.agent_id)
            return self._failure(str(exc), start)

    async def execute_with_history(
        self,
        task_input: Any,
        history: Optional[Sequence[ConversationMessage]] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """Run the agent with prior turns; on success retain this exchange."""
        start = time.perf_counter()
        try:
            message = build_task_message(task_input, context)
            user_turn = ConversationMessage(role="user", content=message)
            messages = [*(history or ()), user_turn]
            response = await self.client.send_conversation(
                self.definition.instructions, messages, self.params
            )
            result = self._finish(task_input, response, start)
            if result.success:
                self._history.extend(
                    [user_turn, ConversationMessage(role="assistant", content=response.text)]
                )
            return result
        except Exception as exc:
            self.logger.exception("Unexpected error while executing %s", self.definition.agent_id)
            return self._failure(str(exc), start)

    def _finish(self, task_input: Any, response: GenerationResult, start: float) -> ExecutionResult:
        if not response.ok:
            self.logger.warning("%s failed: %s", self.definition.name, response.error)
            return self._failure(response.error or "Unknown generation error", start)

        output = extract_structured(response.text)
        timing_ms = _elapsed_ms(start)
        self._log_execution(task_input, response, timing_ms)
        return ExecutionResult(
            agent_id=self.definition.agent_id,
            agent_name=self.definition.name,
            role=self.definition.role,
            success=True,
            output=output,
            timing_ms=timing_ms,
            token_usage=response.usage,
        )

    def _failure(self, message: str, start: float) -> ExecutionResult:
        return ExecutionResult(
            agent_id=self.definition.agent_id,
            agent_name=self.definition.name,
            role=self.definition.role,
            success=False,
            error=message,
            timing_ms=_elapsed_ms(start),
        )

    def _log_execution(self, task_input: Any, response: GenerationResult, timing_ms: int) -> None:
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        preview = task_input[:INPUT_PREVIEW_CHARS] if isinstance(task_input, str) else "object"
        record = {
            "agent": self.definition.agent_id,
            "role": self.definition.role,
            "execution_time_ms": timing_ms,
            "tokens_used": response.usage.model_dump() if response.usage else None,
            "stop_reason": response.stop_reason,
            "input_preview": preview,
        }
        self.logger.debug("Agent execution: %s", json.dumps(record))
