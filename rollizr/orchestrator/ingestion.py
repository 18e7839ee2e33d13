"""
Multi-source company ingestion for one location.

Pull -> group duplicates -> merge + resolve -> (optional) score
- Every configured company source is searched in turn. A source that still
  fails after retries is recorded in ``source_errors`` and skipped.
- Records sharing a phone number, a domain or a lower-cased legal name form
  a duplicate group. Single-record groups pass through unchanged.
- Each multi-record group is merged (the Google Maps record is the base,
  gaps are filled from the others, reviews and services are combined) and
  sent to the resolver agent; a successful verdict is attached to the
  merged record under ``entity_resolution``.
- With a thesis, every resulting company is scored by the scout agent.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any, Awaitable, Dict, List, Mapping, Optional, Sequence, TypeVar

from ..schemas.models import IngestionResult, IngestionStats
from ..utils.company_source import BaseCompanySource
from ..utils.retry import retry_async
from .validation import SCORE_THRESHOLD, extract_score
from .workflow import run_entity_resolution, without_raw_payload

if TYPE_CHECKING:
    from .core import AgentOrchestrator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NON_DIGIT = re.compile(r"\D")
_EMPTY = (None, "", [], {})


def duplicate_key(record: Mapping[str, Any]) -> str:
    """Matching key for a company record: phone, else domain, else name.

    Phone numbers are compared on their last ten digits so that ``+1`` and
    formatting differences between sources do not split a group.
    """
    phone = _NON_DIGIT.sub("", str(record.get("phone") or ""))
    if phone:
        return f"phone:{phone[-10:]}"
    domain = str(record.get("domain") or "").strip().lower()
    if domain:
        return f"domain:{domain}"
    name = str(record.get("legal_name") or record.get("dba") or "").strip().lower()
    if name:
        return f"name:{name}"
    return f"id:{record.get('company_id')}"


def group_duplicates(records: Sequence[Mapping[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """Group records by :func:`duplicate_key`, keeping first-seen order."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for record in records:
        groups.setdefault(duplicate_key(record), []).append(dict(record))
    return groups


def _find_source(group: Sequence[Mapping[str, Any]], name: str) -> Optional[Mapping[str, Any]]:
    return next((r for r in group if r.get("data_source") == name), None)


def merge_company_records(group: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merge records describing the same business into one.

    Examples
    --------
    >>> merged = merge_company_records([
    ...     {"company_id": "yelp_1", "data_source": "yelp", "phone": "305", "yelp_reviews": {"count": 10, "average_rating": 4.0}},
    ...     {"company_id": "gmaps_1", "data_source": "google_maps", "google_reviews": {"count": 30, "average_rating": 5.0}},
    ... ])
    >>> merged["company_id"], merged["phone"], merged["all_reviews"]["total_count"]
    ('gmaps_1', '305', 40)
    """
    google = _find_source(group, "google_maps")
    yelp = _find_source(group, "yelp")
    base = google or yelp or group[0]

    merged: Dict[str, Any] = dict(base)
    for record in group:
        for key, value in record.items():
            if merged.get(key) in _EMPTY and value not in _EMPTY:
                merged[key] = value

    services: List[Any] = []
    for record in group:
        values = record.get("services") or []
        for service in values if isinstance(values, list) else [values]:
            if service not in services:
                services.append(service)
    if services:
        merged["services"] = services

    if google and yelp:
        google_reviews = google.get("google_reviews") or {}
        yelp_reviews = yelp.get("yelp_reviews") or {}
        merged["all_reviews"] = {
            "google": google_reviews,
            "yelp": yelp_reviews,
            "total_count": (google_reviews.get("count") or 0) + (yelp_reviews.get("count") or 0),
            "avg_rating": ((google_reviews.get("average_rating") or 0) + (yelp_reviews.get("average_rating") or 0)) / 2,
        }
        merged["google_place_id"] = google.get("google_place_id")
        merged["yelp_id"] = yelp.get("yelp_id")

    merged["merged_from"] = [r.get("company_id") for r in group]
    return merged


async def _pull(
    sources: Sequence[BaseCompanySource],
    location: str,
    term: str,
    result: IngestionResult,
    retry_attempts: int,
) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    for source in sources:
        try:
            found = await retry_async(source.search, location, term, attempts=retry_attempts)
        except Exception as exc:
            logger.error("Company source %s failed for %s: %s", source.name, location, exc)
            result.source_errors[source.name] = str(exc)
            continue
        logger.info("Found %d companies from %s", len(found), source.name)
        result.source_counts[source.name] = result.source_counts.get(source.name, 0) + len(found)
        records.extend(found)
    return records


async def run_ingestion(
    orchestrator: "AgentOrchestrator",
    sources: Sequence[BaseCompanySource],
    location: str,
    term: str = "HVAC",
    thesis: Optional[Mapping[str, Any]] = None,
    concurrency: int = 4,
    retry_attempts: int = 3,
) -> IngestionResult:
    """Pull, de-duplicate and optionally score the companies of one location."""
    result = IngestionResult(location=location, term=term)
    sem = asyncio.Semaphore(concurrency if concurrency > 0 else 1)

    async def bounded(call: Awaitable[T]) -> T:
        async with sem:
            return await call

    # 1. Pull from every source
    records = await _pull(sources, location, term, result, retry_attempts)

    # 2. Group likely duplicates and resolve only the multi-record groups
    groups = group_duplicates(records)
    pending = [group for group in groups.values() if len(group) > 1]
    resolutions = await asyncio.gather(
        *(bounded(run_entity_resolution(orchestrator, group)) for group in pending)
    )
    verdicts = iter(resolutions)

    # 3. Merge
    for group in groups.values():
        if len(group) == 1:
            result.companies.append(group[0])
            continue
        logger.info("Resolving %d potential duplicates for %s", len(group), group[0].get("legal_name"))
        merged = merge_company_records(group)
        resolution = next(verdicts)
        if resolution.success:
            merged["entity_resolution"] = resolution.resolution.payload()
        result.companies.append(merged)
        result.resolutions.append(resolution)

    # 4. Optional thesis scoring
    if thesis and result.companies:
        scouted = await asyncio.gather(
            *(
                bounded(
                    orchestrator.execute_agent(
                        "scout", {"thesis": dict(thesis), "company_data": without_raw_payload(company)}
                    )
                )
                for company in result.companies
            )
        )
        for company, scout in zip(result.companies, scouted):
            score = extract_score(scout)
            if score is None:
                continue
            result.scores.append(
                {
                    **(scout.structured or {}),
                    "company_id": company.get("company_id"),
                    "company_name": company.get("legal_name"),
                    "score": score,
                }
            )

    result.stats = IngestionStats(
        total_scraped=len(records),
        total_resolved=len(result.companies),
        duplicate_groups=len(pending),
        total_scored=len(result.scores),
        qualified=sum(1 for s in result.scores if s["score"] >= SCORE_THRESHOLD),
    )
    return result
