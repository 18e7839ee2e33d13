"""Generation client abstraction for agent invocations.

Agents reach the hosted language model only through a generation client.
To support both real and offline environments, this module defines a common
interface with concrete implementations.

* ``BaseGenerationClient`` defines the async ``send`` and
  ``send_conversation`` methods. Both return a :class:`GenerationResult` and
  never raise: transport, authentication, upstream and timeout failures are
  all reported as ``ok=False`` with a readable message. There are no retries.
* ``MockGenerationClient`` returns a canned response without any network
  access. It is useful for development and dry runs.
* ``OpenAIGenerationClient`` calls the OpenAI Chat Completions API with the
  agent's instructions as the system message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import openai

from ..schemas.models import ConversationMessage, GenerationParams, TokenUsage

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    message = str(exc)
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


@dataclass(frozen=True)
class GenerationResult:
    """Tagged success/failure value returned by every client call."""

    ok: bool
    text: str = ""
    usage: Optional[TokenUsage] = None
    stop_reason: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, message: str) -> "GenerationResult":
        return cls(ok=False, error=message)


class BaseGenerationClient:
    """Abstract base class for generation clients.

    Subclasses implement :meth:`_complete`, which may raise; the public
    methods apply the optional timeout and turn every exception into a
    failure result.
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    async def _complete(
        self,
        instructions: str,
        messages: Sequence[ConversationMessage],
        params: GenerationParams,
    ) -> GenerationResult:
        raise NotImplementedError

    async def send(self, instructions: str, message: str, params: GenerationParams) -> GenerationResult:
        """Send a single task message."""
        return await self.send_conversation(
            instructions, [ConversationMessage(role="user", content=message)], params
        )

    async def send_conversation(
        self,
        instructions: str,
        messages: Sequence[ConversationMessage],
        params: GenerationParams,
    ) -> GenerationResult:
        """Send an ordered multi-turn conversation ending with a user turn."""
        try:
            call = self._complete(instructions, list(messages), params)
            if self.timeout:
                return await asyncio.wait_for(call, timeout=self.timeout)
            return await call
        except Exception as exc:
            if isinstance(exc, asyncio.TimeoutError) and self.timeout:
                return GenerationResult.failure(f"Generation request timed out after {self.timeout}s")
            logger.warning("Generation request failed: %s", _describe(exc))
            return GenerationResult.failure(_describe(exc))


class MockGenerationClient(BaseGenerationClient):
    """A mock client that answers every request with the same text.

    No network requests are made. The default response is a JSON object
    marking every field as unknown, which downstream gates treat as
    "not qualified".
    """

    DEFAULT_RESPONSE = '{"status": "N/A", "mock": true}'

    def __init__(self, response: str = DEFAULT_RESPONSE, timeout: Optional[float] = None):
        super().__init__(timeout=timeout)
        self.response = response
        self.calls = 0

    async def _complete(
        self,
        instructions: str,
        messages: Sequence[ConversationMessage],
        params: GenerationParams,
    ) -> GenerationResult:
        self.calls += 1
        prompt_chars = len(instructions) + sum(len(m.content) for m in messages)
        return GenerationResult(
            ok=True,
            text=self.response,
            usage=TokenUsage(input_tokens=prompt_chars // 4, output_tokens=len(self.response) // 4),
            stop_reason="stop",
        )


class OpenAIGenerationClient(BaseGenerationClient):
    """Generation client backed by the OpenAI Chat Completions API."""

    def __init__(self, api_key: str, model: str = "gpt-4o", timeout: Optional[float] = None):
        if not api_key:
            raise ValueError("OpenAI API key must be provided")
        super().__init__(timeout=timeout)
        self.model = model
        self._client = openai.AsyncOpenAI(api_key=api_key, max_retries=0)

    async def _complete(
        self,
        instructions: str,
        messages: Sequence[ConversationMessage],
        params: GenerationParams,
    ) -> GenerationResult:
        payload: List[dict] = [{"role": "system", "content": instructions}]
        payload.extend(m.model_dump() for m in messages)
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=payload,
                max_tokens=params.max_output_tokens,
                temperature=params.temperature,
            )
        except openai.APIStatusError as exc:
            return GenerationResult.failure(f"OpenAI API error {exc.status_code}: {exc.message}")
        except openai.OpenAIError as exc:
            return GenerationResult.failure(f"OpenAI request failed: {exc}")

        if not response.choices:
            return GenerationResult.failure("OpenAI response contained no choices")
        choice = response.choices[0]
        usage = TokenUsage()
        if response.usage:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )
        return GenerationResult(
            ok=True,
            text=choice.message.content or "",
            usage=usage,
            stop_reason=choice.finish_reason,
        )


def get_generation_client(
    provider: str,
    api_key: Optional[str] = None,
    model: str = "gpt-4o",
    timeout: Optional[float] = None,
) -> BaseGenerationClient:
    """Factory function that returns an appropriate generation client.

    Parameters
    ----------
    provider: str
        Provider name. Supported values are ``"mock"`` and ``"openai"``.
    api_key: Optional[str]
        API key for the provider. Required when provider is not ``"mock"``.
    model: str
        Provider-side model identifier.
    timeout: Optional[float]
        Per-request timeout in seconds; ``None`` or ``0`` waits indefinitely.
    """
    provider = (provider or "mock").lower()
    if provider == "openai":
        return OpenAIGenerationClient(api_key=api_key or "", model=model, timeout=timeout or None)
    return MockGenerationClient(timeout=timeout or None)
