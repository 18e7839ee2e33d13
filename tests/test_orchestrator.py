import asyncio
import json

import pytest

from rollizr.exceptions import UnknownAgentError
from rollizr.utils.generation_client import GenerationResult


def test_unknown_agent_returns_failure_without_history(make_orchestrator):
    orchestrator, client = make_orchestrator()
    result = asyncio.run(orchestrator.execute_agent("ghost", "hello"))

    assert not result.success
    assert result.error == "Agent 'ghost' not found"
    assert orchestrator.get_history() == []
    assert sum(client.calls.values()) == 0


def test_get_runner_raises_for_unknown_agent(make_orchestrator):
    orchestrator, _ = make_orchestrator()
    with pytest.raises(UnknownAgentError) as excinfo:
        orchestrator.get_runner("ghost")
    assert excinfo.value.agent_id == "ghost"


def test_every_execution_is_recorded(make_orchestrator):
    orchestrator, _ = make_orchestrator({"valuation": GenerationResult.failure("boom")})
    asyncio.run(orchestrator.execute_agent("scout", "a"))
    asyncio.run(orchestrator.execute_agent("valuation", "b"))

    history = orchestrator.get_history()
    assert [(h.agent_id, h.success) for h in history] == [("scout", True), ("valuation", False)]
    assert history[0].timestamp.endswith("+00:00")


def test_pipeline_feeds_output_forward_with_role_context(make_orchestrator):
    orchestrator, client = make_orchestrator(
        {
            "scout": '{"score": 80}',
            "profiler": '{"services": ["install"]}',
            "valuation": '{"estimated_value_range": {"low": 1}}',
        }
    )
    result = asyncio.run(orchestrator.execute_pipeline(["scout", "profiler", "valuation"], {"company_id": "c1"}))

    assert result.success
    assert result.failed_at is None
    assert [r.agent_id for r in result.results] == ["scout", "profiler", "valuation"]
    assert result.final_output == {"estimated_value_range": {"low": 1}}
    assert set(result.context) == {"target_discovery", "company_enrichment", "business_valuation"}

    # second step receives the first step's output as input and in context
    profiler_message = client.messages["profiler"][0]
    assert '"target_discovery"' in profiler_message
    assert profiler_message.endswith("=== TASK ===\n" + json.dumps({"score": 80}, indent=2))
    assert "CONTEXT" not in client.messages["scout"][0]


def test_pipeline_stops_at_first_failure(make_orchestrator):
    orchestrator, client = make_orchestrator({"scout": GenerationResult.failure("rate limited")})
    result = asyncio.run(orchestrator.execute_pipeline(["scout", "profiler"], "start"))

    assert not result.success
    assert result.failed_at == "scout"
    assert result.error == "rate limited"
    assert len(result.results) == 1
    assert client.calls["profiler"] == 0


def test_pipeline_with_unknown_agent_fails_at_it(make_orchestrator):
    orchestrator, client = make_orchestrator()
    result = asyncio.run(orchestrator.execute_pipeline(["scout", "ghost", "valuation"], "start"))
    assert result.failed_at == "ghost"
    assert result.error == "Agent 'ghost' not found"
    assert client.calls["valuation"] == 0


def test_parallel_success_is_conjunction(make_orchestrator):
    orchestrator, client = make_orchestrator(
        {"valuation": '{"estimated_value_range": {}}', "compliance": GenerationResult.failure("down")}
    )
    result = asyncio.run(orchestrator.execute_parallel(["valuation", "compliance"], {"company_id": "c1"}))

    assert not result.success
    assert [r.agent_id for r in result.results] == ["valuation", "compliance"]
    assert result.outputs == {"business_valuation": {"estimated_value_range": {}}}
    assert client.calls["valuation"] == 1
    assert client.calls["compliance"] == 1


def test_parallel_outputs_keyed_by_role(make_orchestrator):
    orchestrator, _ = make_orchestrator({"valuation": '{"v": 1}', "compliance": '{"approved": true}'})
    result = asyncio.run(
        orchestrator.execute_parallel(["valuation", "compliance"], "x", {"check_type": "licensure"})
    )
    assert result.success
    assert result.outputs == {"business_valuation": {"v": 1}, "regulatory_compliance": {"approved": True}}


def test_stats_fold_history(make_orchestrator):
    orchestrator, _ = make_orchestrator({"compliance": GenerationResult.failure("nope")})
    asyncio.run(orchestrator.execute_agent("scout", "a"))
    asyncio.run(orchestrator.execute_agent("scout", "b"))
    asyncio.run(orchestrator.execute_agent("compliance", "c"))
    asyncio.run(orchestrator.execute_agent("valuation", "d"))

    stats = orchestrator.get_stats()
    assert stats.total_executions == 4
    assert stats.by_agent["scout"].count == 2
    assert stats.by_agent["scout"].successes == 2
    assert stats.by_agent["compliance"].successes == 0
    assert stats.success_rate == pytest.approx(75.0)
    assert stats.avg_execution_time_ms >= 0


def test_empty_stats_and_clear_history(make_orchestrator):
    orchestrator, _ = make_orchestrator()
    assert orchestrator.get_stats().success_rate == 0.0
    asyncio.run(orchestrator.execute_agent("scout", "a"))
    orchestrator.clear_history()
    assert orchestrator.get_stats().total_executions == 0
