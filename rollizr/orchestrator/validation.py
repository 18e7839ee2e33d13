"""Business gates applied between workflow steps.

Purpose:
- Stop the sourcing workflow before any further spend when the scout score
  misses the threshold.
- Treat compliance as deny-by-default: only an explicit ``approved: true``
  in a structured compliance output passes.
- Standardize denial reasons for summaries and debugging.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..schemas.models import ExecutionResult

SCORE_THRESHOLD = 50


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reason: Optional[str] = None
    violations: List[Dict[str, Any]] = field(default_factory=list)


def extract_score(result: ExecutionResult) -> Optional[float]:
    """Numeric ``score`` from a structured scout output, if present."""
    data = result.structured if result.success else None
    if not data:
        return None
    score = data.get("score")
    if isinstance(score, bool):
        return None
    try:
        value = float(score)
    except (TypeError, ValueError):
        return None
    # NaN and infinities count as no score
    return value if math.isfinite(value) else None


def validate_score(result: ExecutionResult, threshold: float = SCORE_THRESHOLD) -> ValidationResult:
    """Pass only a successful scout result whose score reaches ``threshold``."""
    if not result.success:
        return ValidationResult(False, f"Scoring failed: {result.error}")
    score = extract_score(result)
    if score is None:
        return ValidationResult(False, "Did not meet minimum score threshold (no score returned)")
    if score < threshold:
        return ValidationResult(False, "Did not meet minimum score threshold")
    return ValidationResult(True)


def extract_violations(result: ExecutionResult) -> List[Dict[str, Any]]:
    data = result.structured or {}
    violations = data.get("violations") or []
    if not isinstance(violations, list):
        return []
    return [v if isinstance(v, dict) else {"details": str(v)} for v in violations]


def validate_compliance(result: ExecutionResult) -> ValidationResult:
    """Approve only an explicit ``approved: true`` from a structured output."""
    if not result.success:
        return ValidationResult(False, f"Compliance check failed: {result.error}")
    data = result.structured
    if data is None:
        return ValidationResult(False, "Compliance check returned no structured verdict")
    violations = extract_violations(result)
    if data.get("approved") is not True:
        return ValidationResult(False, "Failed compliance checks", violations)
    return ValidationResult(True, violations=violations)
