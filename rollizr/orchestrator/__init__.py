"""Orchestration of agents into pipelines and named workflows.

``AgentOrchestrator`` holds one runner per configured agent and exposes the
single, sequential and parallel execution primitives. The sourcing,
outreach, diligence and integration workflows in :mod:`.workflow` are
compositions of those primitives with business gates from
:mod:`.validation`.
"""

from .core import AgentOrchestrator

__all__ = ["AgentOrchestrator"]
