"""Shared fixtures: a scripted generation client and orchestrator factory."""

from __future__ import annotations

from collections import Counter, defaultdict
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

import pytest

from rollizr.agents import DEFAULT_AGENTS, build_agent_table
from rollizr.orchestrator import AgentOrchestrator
from rollizr.schemas.models import ConversationMessage, GenerationParams, TokenUsage
from rollizr.utils.generation_client import BaseGenerationClient, GenerationResult

Reply = Union[str, GenerationResult, Callable[[str], str]]

_AGENT_BY_INSTRUCTIONS = {entry["instructions"]: agent_id for agent_id, entry in DEFAULT_AGENTS.items()}


class ScriptedClient(BaseGenerationClient):
    """Answers each agent with a scripted reply and counts calls per agent.

    A reply may be a string, a ``GenerationResult`` (used as-is, e.g. a
    failure) or a callable receiving the last user message.
    """

    def __init__(self, replies: Optional[Mapping[str, Reply]] = None, default: str = "{}"):
        super().__init__(timeout=None)
        self.replies: Dict[str, Reply] = dict(replies or {})
        self.default = default
        self.calls: Counter = Counter()
        self.messages: Dict[str, List[str]] = defaultdict(list)
        self.conversations: Dict[str, List[List[ConversationMessage]]] = defaultdict(list)

    async def _complete(
        self,
        instructions: str,
        messages: Sequence[ConversationMessage],
        params: GenerationParams,
    ) -> GenerationResult:
        agent_id = _AGENT_BY_INSTRUCTIONS.get(instructions, "custom")
        self.calls[agent_id] += 1
        self.messages[agent_id].append(messages[-1].content)
        self.conversations[agent_id].append(list(messages))

        reply = self.replies.get(agent_id, self.default)
        if isinstance(reply, GenerationResult):
            return reply
        if callable(reply):
            reply = reply(messages[-1].content)
        return GenerationResult(
            ok=True,
            text=reply,
            usage=TokenUsage(input_tokens=10, output_tokens=5),
            stop_reason="stop",
        )


@pytest.fixture
def agents():
    return build_agent_table()


@pytest.fixture
def make_orchestrator(agents):
    def factory(replies: Optional[Mapping[str, Reply]] = None, default: str = "{}"):
        client = ScriptedClient(replies, default=default)
        return AgentOrchestrator(agents, client), client

    return factory


@pytest.fixture
def company():
    return {
        "company_id": "hvac_001",
        "legal_name": "Cool Breeze Air Conditioning & Heating LLC",
        "city": "Miami",
        "state": "FL",
        "vertical": "HVAC",
        "contact": {"name": "Maria Alvarez", "email": "maria@coolbreezeac.com"},
    }


@pytest.fixture
def thesis():
    return {"vertical": "HVAC", "geography": {"states": ["FL"]}, "revenue_range": {"min": 2000000}}
