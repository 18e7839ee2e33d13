"""
Rollizr: Agent Orchestration for Fragmented-Industry Rollups
===========================================================

This package runs a fixed roster of language-model agents over company
records to source, value, compliance-check and approach acquisition
targets. Outputs are drafts and analyses only: nothing here sends
communications or persists data.

Modules are organized by responsibility:

- ``agents``: the agent roster and the runner that executes one agent.
- ``orchestrator``: pipeline and parallel primitives, the named sourcing,
  outreach, diligence and integration workflows, and execution statistics.
- ``schemas``: Pydantic models for definitions, results and summaries.
- ``utils``: generation client, response extraction, company sources and
  logging setup.
- ``config``: helpers for loading YAML configuration with environment
  variable placeholders.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
