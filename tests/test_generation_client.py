import asyncio

import pytest

from rollizr.schemas.models import GenerationParams
from rollizr.utils.generation_client import (
    BaseGenerationClient,
    GenerationResult,
    MockGenerationClient,
    OpenAIGenerationClient,
    get_generation_client,
)

PARAMS = GenerationParams(max_output_tokens=256, temperature=0.2)


def test_mock_client_returns_canned_text():
    client = MockGenerationClient()
    result = asyncio.run(client.send("be a scout", "score this", PARAMS))
    assert result.ok
    assert result.text == MockGenerationClient.DEFAULT_RESPONSE
    assert result.usage.output_tokens > 0
    assert client.calls == 1


def test_timeout_is_reported_as_failure():
    class SlowClient(BaseGenerationClient):
        async def _complete(self, instructions, messages, params):
            await asyncio.sleep(1)
            return GenerationResult(ok=True, text="late")

    result = asyncio.run(SlowClient(timeout=0.01).send("i", "m", PARAMS))
    assert not result.ok
    assert "timed out" in result.error


def test_exceptions_never_escape():
    class BrokenClient(BaseGenerationClient):
        async def _complete(self, instructions, messages, params):
            raise ConnectionError("network unreachable")

    result = asyncio.run(BrokenClient().send("i", "m", PARAMS))
    assert not result.ok
    assert result.error == "ConnectionError: network unreachable"


def test_factory_selects_provider():
    assert isinstance(get_generation_client("mock"), MockGenerationClient)
    assert isinstance(get_generation_client(None), MockGenerationClient)
    client = get_generation_client("OpenAI", api_key="sk-test", model="gpt-4o-mini", timeout=30)
    assert isinstance(client, OpenAIGenerationClient)
    assert client.model == "gpt-4o-mini"
    assert client.timeout == 30


def test_openai_client_requires_key():
    with pytest.raises(ValueError):
        get_generation_client("openai", api_key=None)


def test_timeout_error_without_configured_timeout_is_generic_failure():
    class UpstreamTimeoutClient(BaseGenerationClient):
        async def _complete(self, instructions, messages, params):
            raise asyncio.TimeoutError()

    result = asyncio.run(UpstreamTimeoutClient(timeout=None).send("i", "m", PARAMS))
    assert not result.ok
    assert "None" not in result.error
    assert "timed out after" not in result.error
    assert result.error.startswith("TimeoutError")
