"""Agent implementations for Rollizr.

Every agent shares one execution path: an ``AgentRunner`` bound to a static
``AgentDefinition``. The roster covers each stage of a rollup:

- ``scout`` scores a company against an investment thesis.
- ``resolver`` merges duplicate company records across sources.
- ``profiler`` enriches a company with operational intelligence.
- ``valuation`` estimates a value range with stated assumptions.
- ``compliance`` approves or denies outreach, data access and licensure.
- ``outreach`` drafts owner-friendly, compliant messages (draft only).
- ``diligence`` builds request lists and IC memo sections.
- ``integrator`` plans the first 100 days after close.
"""

from .definitions import DEFAULT_AGENTS, build_agent_table
from .runner import AgentRunner, build_task_message

__all__ = ["AgentRunner", "DEFAULT_AGENTS", "build_agent_table", "build_task_message"]
