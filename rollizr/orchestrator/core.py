"""Agent orchestrator: composition primitives and execution statistics.

The orchestrator owns one :class:`~rollizr.agents.runner.AgentRunner` per
entry of the agent table it is constructed with. It exposes three
primitives (single execution, sequential pipeline, parallel fan-out), the
named workflows from :mod:`rollizr.orchestrator.workflow` and
:mod:`rollizr.orchestrator.ingestion`, and a derived
view over its in-memory execution history.

Nothing here raises for agent failures: unknown agent ids and failed
generation calls both come back as failed results.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..agents.runner import AgentRunner
from ..exceptions import UnknownAgentError
from ..schemas.models import (
    AgentDefinition,
    AgentStats,
    DiligenceResult,
    ExecutionResult,
    IngestionResult,
    IntegrationResult,
    OutreachResult,
    ParallelResult,
    PipelineResult,
    ResolutionResult,
    SourcingResult,
    WorkflowHistoryEntry,
    WorkflowStats,
)
from ..utils.company_source import BaseCompanySource
from ..utils.generation_client import BaseGenerationClient
from . import ingestion, workflow


class AgentOrchestrator:
    """Runs agents by id and composes them into pipelines and workflows."""

    def __init__(
        self,
        agents: Mapping[str, AgentDefinition],
        client: BaseGenerationClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.runners: Dict[str, AgentRunner] = {
            agent_id: AgentRunner(definition, client) for agent_id, definition in agents.items()
        }
        self._history: List[WorkflowHistoryEntry] = []

    # -- primitives -----------------------------------------------------

    def get_runner(self, agent_id: str) -> AgentRunner:
        try:
            return self.runners[agent_id]
        except KeyError:
            raise UnknownAgentError(agent_id) from None

    async def execute_agent(
        self,
        agent_id: str,
        task_input: Any,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute one agent and record the outcome in the history log."""
        try:
            runner = self.get_runner(agent_id)
        except UnknownAgentError as exc:
            self.logger.error("%s", exc)
            return ExecutionResult(agent_id=agent_id, success=False, error=str(exc))

        self.logger.info("Executing %s", runner.definition.name)
        result = await runner.execute(task_input, context or {})
        self._history.append(
            WorkflowHistoryEntry(
                agent_id=agent_id,
                timestamp=result.timestamp.isoformat(),
                success=result.success,
                timing_ms=result.timing_ms,
            )
        )
        return result

    async def execute_pipeline(self, agent_ids: Sequence[str], initial_input: Any) -> PipelineResult:
        """Run agents strictly in order, feeding each output to the next agent.

        Each step also receives a context mapping keyed by the role of every
        completed step. The pipeline stops at the first failure.
        """
        self.logger.info("Starting pipeline with %d agents", len(agent_ids))
        results: List[ExecutionResult] = []
        context: Dict[str, Any] = {}
        current_input = initial_input

        for agent_id in agent_ids:
            result = await self.execute_agent(agent_id, current_input, dict(context))
            results.append(result)
            if not result.success:
                self.logger.error("Pipeline failed at %s: %s", agent_id, result.error)
                return PipelineResult(
                    success=False,
                    results=results,
                    context=context,
                    failed_at=agent_id,
                    error=result.error,
                )
            payload = result.payload()
            context[result.role] = payload
            current_input = payload

        self.logger.info("Pipeline completed successfully")
        return PipelineResult(
            success=True,
            results=results,
            final_output=results[-1].payload() if results else None,
            context=context,
        )

    async def execute_parallel(
        self,
        agent_ids: Sequence[str],
        task_input: Any,
        context: Optional[Mapping[str, Any]] = None,
    ) -> ParallelResult:
        """Run agents concurrently on the same input and wait for all of them."""
        self.logger.info("Executing %d agents in parallel", len(agent_ids))
        results = await asyncio.gather(
            *(self.execute_agent(agent_id, task_input, context) for agent_id in agent_ids)
        )
        outputs = {r.role or r.agent_id: r.payload() for r in results if r.output is not None}
        return ParallelResult(
            success=all(r.success for r in results),
            results=list(results),
            outputs=outputs,
        )

    # -- named workflows ------------------------------------------------

    async def execute_sourcing_workflow(
        self, thesis: Mapping[str, Any], company: Mapping[str, Any]
    ) -> SourcingResult:
        return await workflow.run_sourcing(self, thesis, company)

    async def execute_outreach_workflow(
        self, company: Mapping[str, Any], context: Optional[Mapping[str, Any]] = None
    ) -> OutreachResult:
        return await workflow.run_outreach(self, company, context or {})

    async def execute_diligence_workflow(
        self, company: Mapping[str, Any], documents: Optional[Sequence[Any]] = None
    ) -> DiligenceResult:
        return await workflow.run_diligence(self, company, list(documents or []))

    async def execute_integration_workflow(self, deal: Mapping[str, Any]) -> IntegrationResult:
        return await workflow.run_integration(self, deal)

    async def execute_entity_resolution(self, records: Sequence[Mapping[str, Any]]) -> ResolutionResult:
        return await workflow.run_entity_resolution(self, records)

    async def execute_ingestion_workflow(
        self,
        sources: Sequence[BaseCompanySource],
        location: str,
        term: str = "HVAC",
        thesis: Optional[Mapping[str, Any]] = None,
        concurrency: int = 4,
    ) -> IngestionResult:
        return await ingestion.run_ingestion(self, sources, location, term, thesis, concurrency=concurrency)

    # -- history & statistics ------------------------------------------

    def get_history(self) -> List[WorkflowHistoryEntry]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history = []

    def get_stats(self) -> WorkflowStats:
        """Fold the history log into totals, per-agent counts and averages."""
        by_agent: Dict[str, AgentStats] = {}
        successes = 0
        total_time = 0
        for entry in self._history:
            stats = by_agent.setdefault(entry.agent_id, AgentStats())
            stats.count += 1
            if entry.success:
                stats.successes += 1
                successes += 1
            total_time += entry.timing_ms

        total = len(self._history)
        return WorkflowStats(
            total_executions=total,
            by_agent=by_agent,
            success_rate=(successes / total) * 100 if total else 0.0,
            avg_execution_time_ms=total_time / total if total else 0.0,
        )
