"""
Named M&A workflows built from the orchestrator primitives.

Sourcing: scout -> profiler -> (valuation || compliance)
- A scout score below the threshold stops the workflow before any other
  agent is called.
- Valuation and the licensure check run concurrently. A compliance denial
  disqualifies the company even though valuation has already run; there is
  no cancellation.

Outreach: compliance (outreach check) -> outreach draft
- No draft is generated without explicit compliance approval.

Diligence, integration and entity resolution are single agent invocations.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Sequence

from ..schemas.models import (
    DiligenceResult,
    IntegrationResult,
    OutreachResult,
    ResolutionResult,
    SourcingResult,
    SourcingSummary,
)
from .validation import extract_score, validate_compliance, validate_score

if TYPE_CHECKING:
    from .core import AgentOrchestrator

logger = logging.getLogger(__name__)


def without_raw_payload(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of a company record without the source's raw API payload."""
    return {k: v for k, v in record.items() if k != "raw_data"}


def _as_list(value: Any) -> List[Any]:
    """Coerce a model field to a list; a lone scalar becomes a one-item list."""
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


async def run_sourcing(
    orchestrator: "AgentOrchestrator",
    thesis: Mapping[str, Any],
    company: Mapping[str, Any],
) -> SourcingResult:
    """Score, enrich, value and compliance-check one acquisition target."""

    # 1. Scout: score against the thesis
    scout = await orchestrator.execute_agent(
        "scout", {"thesis": dict(thesis), "company_data": dict(company)}
    )
    score_check = validate_score(scout)
    if not score_check.ok:
        return SourcingResult(
            qualified=False,
            reason=score_check.reason,
            results={"scout": scout},
        )

    # 2. Profiler: enrich, with the scout analysis as context
    profiler = await orchestrator.execute_agent(
        "profiler", dict(company), {"scout_analysis": scout.payload()}
    )
    if not profiler.success:
        logger.warning("Profiler failed for %s: %s", company.get("company_id"), profiler.error)

    # 3. Valuation and licensure check, concurrently
    context: Dict[str, Any] = {
        "thesis": dict(thesis),
        "scout_analysis": scout.payload(),
        "check_type": "licensure",
    }
    if profiler.success:
        context["profile"] = profiler.payload()
    parallel = await orchestrator.execute_parallel(["valuation", "compliance"], dict(company), context)
    valuation, compliance = parallel.results

    results = {
        "scout": scout,
        "profiler": profiler,
        "valuation": valuation,
        "compliance": compliance,
    }

    compliance_check = validate_compliance(compliance)
    if not compliance_check.ok:
        return SourcingResult(
            qualified=False,
            reason=compliance_check.reason,
            violations=compliance_check.violations,
            results=results,
        )

    scout_data = scout.structured or {}
    valuation_data = valuation.structured or {}
    value_range = valuation_data.get("estimated_value_range")
    if value_range is not None and not isinstance(value_range, dict):
        logger.warning("Ignoring non-mapping estimated_value_range for %s: %r", company.get("company_id"), value_range)
        value_range = None
    risks = _as_list(scout_data.get("risks"))
    risks.extend(v.get("details") for v in compliance_check.violations if v.get("details"))

    logger.info("Sourcing workflow completed - company qualified")
    return SourcingResult(
        qualified=True,
        violations=compliance_check.violations,
        results=results,
        summary=SourcingSummary(
            score=extract_score(scout),
            estimated_value=value_range,
            top_signals=_as_list(scout_data.get("top_signals")),
            risks=risks,
        ),
    )


async def run_outreach(
    orchestrator: "AgentOrchestrator",
    company: Mapping[str, Any],
    context: Mapping[str, Any],
) -> OutreachResult:
    """Check outreach compliance, then draft the message if approved."""

    compliance = await orchestrator.execute_agent(
        "compliance",
        {
            "entity_id": company.get("company_id"),
            "check_type": "outreach",
            "contact_info": company.get("contact"),
        },
    )
    check = validate_compliance(compliance)
    if not check.ok:
        return OutreachResult(
            success=False,
            reason="Outreach not approved by compliance",
            violations=check.violations,
            compliance_check=compliance,
        )

    draft = await orchestrator.execute_agent(
        "outreach", dict(company), {**context, "compliance_approved": True}
    )
    return OutreachResult(
        success=draft.success,
        reason=None if draft.success else f"Drafting failed: {draft.error}",
        violations=check.violations,
        compliance_check=compliance,
        outreach_draft=draft,
    )


async def run_diligence(
    orchestrator: "AgentOrchestrator",
    company: Mapping[str, Any],
    documents: List[Any],
) -> DiligenceResult:
    report = await orchestrator.execute_agent(
        "diligence",
        {
            "company_id": company.get("company_id"),
            "documents": documents,
            "vertical": company.get("vertical"),
        },
    )
    return DiligenceResult(success=report.success, diligence_report=report)


async def run_integration(orchestrator: "AgentOrchestrator", deal: Mapping[str, Any]) -> IntegrationResult:
    plan = await orchestrator.execute_agent("integrator", dict(deal))
    return IntegrationResult(success=plan.success, integration_plan=plan)


async def run_entity_resolution(
    orchestrator: "AgentOrchestrator",
    records: Sequence[Mapping[str, Any]],
) -> ResolutionResult:
    compact = [without_raw_payload(r) for r in records]
    resolution = await orchestrator.execute_agent("resolver", {"records": compact})
    return ResolutionResult(success=resolution.success, resolution=resolution)
