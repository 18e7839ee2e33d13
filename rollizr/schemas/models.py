"""Pydantic models used throughout Rollizr.

These models define the static agent configuration, the values exchanged
between the generation client, the agent runners and the orchestrator, and
the aggregate results returned by pipelines and named workflows. Agent
outputs are modelled as a tagged variant so that callers must check whether
a response could be recovered as structured data before indexing into it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AgentDefinition(BaseModel):
    """Static configuration of a single agent."""

    model_config = ConfigDict(frozen=True)

    agent_id: str = Field(..., description="Unique key used to address the agent, e.g. 'scout'")
    name: str = Field(..., description="Human readable name, e.g. 'Scout Agent'")
    role: str = Field(..., description="Role label; keys pipeline context and parallel outputs")
    description: str = Field("", description="Short description of what the agent does")
    instructions: str = Field(..., description="System-level instructions sent with every request")
    max_output_tokens: int = Field(4096, gt=0, description="Upper bound on generated tokens")
    temperature: float = Field(0.3, ge=0.0, le=1.0, description="Sampling temperature")


class GenerationParams(BaseModel):
    """Sampling parameters forwarded to the generation service."""

    max_output_tokens: int = Field(4096, gt=0)
    temperature: float = Field(0.3, ge=0.0, le=1.0)


class TokenUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class ConversationMessage(BaseModel):
    """One turn of a multi-turn exchange with the generation service."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str


class StructuredOutput(BaseModel):
    """Agent output recovered as a JSON object."""

    kind: Literal["structured"] = "structured"
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return self.data


class UnstructuredOutput(BaseModel):
    """Agent output that could not be parsed; carries the original text verbatim."""

    kind: Literal["unstructured"] = "unstructured"
    raw_text: str
    parsed: Literal[False] = False

    def to_payload(self) -> Dict[str, Any]:
        return {"raw_text": self.raw_text, "parsed": False}


AgentOutput = Annotated[Union[StructuredOutput, UnstructuredOutput], Field(discriminator="kind")]


class ExecutionResult(BaseModel):
    """Outcome of a single agent invocation.

    Exactly one of ``output`` (success) and ``error`` (failure) is set.
    """

    agent_id: str
    agent_name: str = ""
    role: str = ""
    success: bool
    output: Optional[AgentOutput] = None
    error: Optional[str] = None
    timing_ms: int = 0
    token_usage: Optional[TokenUsage] = None
    timestamp: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def check_output_or_error(self) -> "ExecutionResult":
        if self.success and (self.output is None or self.error is not None):
            raise ValueError("a successful result carries an output and no error")
        if not self.success and (self.error is None or self.output is not None):
            raise ValueError("a failed result carries an error and no output")
        return self

    @property
    def structured(self) -> Optional[Dict[str, Any]]:
        """The structured output mapping, or ``None`` when unavailable."""
        if isinstance(self.output, StructuredOutput):
            return self.output.data
        return None

    def payload(self) -> Optional[Dict[str, Any]]:
        """Plain-dict form of the output suitable for feeding another agent."""
        return self.output.to_payload() if self.output is not None else None


class WorkflowHistoryEntry(BaseModel):
    agent_id: str
    timestamp: str = Field(..., description="ISO-8601 time the invocation finished")
    success: bool
    timing_ms: int


class AgentStats(BaseModel):
    count: int = 0
    successes: int = 0


class WorkflowStats(BaseModel):
    """Aggregate view over the orchestrator's history log."""

    total_executions: int = 0
    by_agent: Dict[str, AgentStats] = Field(default_factory=dict)
    success_rate: float = Field(0.0, description="Percentage of successful executions")
    avg_execution_time_ms: float = 0.0


class PipelineResult(BaseModel):
    success: bool
    results: List[ExecutionResult] = Field(default_factory=list)
    final_output: Optional[Dict[str, Any]] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    failed_at: Optional[str] = None
    error: Optional[str] = None


class ParallelResult(BaseModel):
    success: bool
    results: List[ExecutionResult] = Field(default_factory=list)
    outputs: Dict[str, Dict[str, Any]] = Field(default_factory=dict)


class SourcingSummary(BaseModel):
    score: float
    estimated_value: Optional[Dict[str, Any]] = None
    top_signals: List[Any] = Field(default_factory=list)
    risks: List[Any] = Field(default_factory=list)


class SourcingResult(BaseModel):
    """Result of the sourcing workflow.

    ``success`` reports whether the workflow ran; ``qualified`` carries the
    business verdict.
    """

    success: bool = True
    qualified: bool
    reason: Optional[str] = None
    violations: List[Dict[str, Any]] = Field(default_factory=list)
    results: Dict[str, ExecutionResult] = Field(default_factory=dict)
    summary: Optional[SourcingSummary] = None


class OutreachResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    violations: List[Dict[str, Any]] = Field(default_factory=list)
    compliance_check: Optional[ExecutionResult] = None
    outreach_draft: Optional[ExecutionResult] = None


class DiligenceResult(BaseModel):
    success: bool = True
    diligence_report: ExecutionResult


class IntegrationResult(BaseModel):
    success: bool = True
    integration_plan: ExecutionResult


class ResolutionResult(BaseModel):
    success: bool = True
    resolution: ExecutionResult


class ManifestError(BaseModel):
    """Represents an error encountered while processing one company."""

    company_id: str
    stage: str
    message: str


class RunManifest(BaseModel):
    """Summary of a batch run across all companies."""

    started_at: datetime = Field(
        default_factory=utc_now,
        description="Timestamp when the run started (UTC)",
    )
    finished_at: Optional[datetime] = Field(
        None, description="Timestamp when the run finished (UTC)"
    )
    total_companies: int = Field(..., description="Total number of companies submitted")
    processed: int = Field(0, description="Number of companies the workflow completed for")
    qualified: int = Field(0, description="Number of companies that qualified")
    errors: List[ManifestError] = Field(
        default_factory=list,
        description="List of errors that occurred during the run",
    )
    stats: Optional[WorkflowStats] = None

    def record_result(self, qualified: bool) -> None:
        self.processed += 1
        if qualified:
            self.qualified += 1

    def record_error(self, company_id: str, stage: str, message: str) -> None:
        self.errors.append(ManifestError(company_id=company_id, stage=stage, message=message))

    def finish(self, stats: Optional[WorkflowStats] = None) -> None:
        self.finished_at = utc_now()
        self.stats = stats


class IngestionStats(BaseModel):
    total_scraped: int = 0
    total_resolved: int = 0
    duplicate_groups: int = 0
    total_scored: int = 0
    qualified: int = 0


class IngestionResult(BaseModel):
    """Outcome of pulling one location from every configured company source.

    ``companies`` holds one record per distinct business after duplicate
    groups were merged; ``resolutions`` holds the resolver verdict for each
    multi-record group. ``scores`` is only filled when a thesis was given.
    """

    location: str
    term: str
    source_counts: Dict[str, int] = Field(default_factory=dict)
    source_errors: Dict[str, str] = Field(default_factory=dict)
    companies: List[Dict[str, Any]] = Field(default_factory=list)
    resolutions: List[ResolutionResult] = Field(default_factory=list)
    scores: List[Dict[str, Any]] = Field(default_factory=list)
    stats: IngestionStats = Field(default_factory=IngestionStats)
