"""Pydantic schemas shared by the generation client, runners and orchestrator."""

from .models import (
    AgentDefinition,
    AgentOutput,
    ConversationMessage,
    ExecutionResult,
    GenerationParams,
    StructuredOutput,
    TokenUsage,
    UnstructuredOutput,
    WorkflowHistoryEntry,
    WorkflowStats,
)

__all__ = [
    "AgentDefinition",
    "AgentOutput",
    "ConversationMessage",
    "ExecutionResult",
    "GenerationParams",
    "StructuredOutput",
    "TokenUsage",
    "UnstructuredOutput",
    "WorkflowHistoryEntry",
    "WorkflowStats",
]
