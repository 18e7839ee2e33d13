"""CLI entrypoint for running Rollizr workflows.

Usage examples:

.. code-block:: bash

    python -m rollizr.run sourcing --thesis data/thesis.yaml --companies data/companies.csv --out outputs/ --limit 20
    python -m rollizr.run outreach --company data/company.json --context data/context.json --out outputs/
    python -m rollizr.run ingest --location "Miami, FL" --term HVAC --thesis data/thesis.yaml --out outputs/

Configuration is loaded from a YAML file (default ``config/config.yaml``)
after reading any ``.env`` file in the working directory. The sourcing
command scores every company concurrently, bounded by ``concurrency``, and
writes per-company results, a summary CSV and a run manifest for auditing.
"""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from dotenv import load_dotenv

from .agents import build_agent_table
from .config import get_section, load_config
from .orchestrator import AgentOrchestrator
from .schemas.models import RunManifest, SourcingResult
from .orchestrator.validation import SCORE_THRESHOLD
from .utils.company_source import build_company_sources
from .utils.generation_client import get_generation_client
from .utils.logging_setup import setup_logging
from .utils.slugify import slugify

logger = logging.getLogger(__name__)

SUMMARY_HEADER = [
    "company_id",
    "legal_name",
    "qualified",
    "score",
    "reason",
    "value_low",
    "value_midpoint",
    "value_high",
    "risks",
]


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=str, default="config/config.yaml", help="Path to YAML config file")
    common.add_argument("--out", type=str, default="outputs", help="Output directory for files")

    parser = argparse.ArgumentParser(description="Run Rollizr acquisition workflows")
    sub = parser.add_subparsers(dest="command", required=True)

    sourcing = sub.add_parser("sourcing", parents=[common], help="Score, value and compliance-check companies")
    sourcing.add_argument("--thesis", type=str, required=True, help="Path to investment thesis YAML")
    sourcing.add_argument("--companies", type=str, required=True, help="Path to companies CSV or JSON list")
    sourcing.add_argument("--limit", type=int, default=0, help="Maximum number of companies to process (0 = all)")

    outreach = sub.add_parser("outreach", parents=[common], help="Compliance-check and draft outreach for one company")
    outreach.add_argument("--company", type=str, required=True, help="Path to company JSON")
    outreach.add_argument("--context", type=str, default=None, help="Path to prior analysis JSON")

    ingest = sub.add_parser("ingest", parents=[common], help="Pull companies from every configured source and resolve duplicates")
    ingest.add_argument("--location", type=str, required=True, help='City and state, e.g. "Miami, FL"')
    ingest.add_argument("--term", type=str, default="HVAC", help="Search term / vertical")
    ingest.add_argument("--thesis", type=str, default=None, help="Optional thesis YAML; scores every ingested company")
    return parser.parse_args(argv)


def build_orchestrator(config: Dict[str, Any]) -> AgentOrchestrator:
    generation = get_section(config, "generation")
    client = get_generation_client(
        provider=generation.get("provider", "mock"),
        api_key=generation.get("api_key"),
        model=generation.get("model") or "gpt-4o",
        timeout=float(generation.get("timeout_seconds") or 0),
    )
    agents = build_agent_table(get_section(config, "agents"))
    return AgentOrchestrator(agents, client)


def read_companies(path: str) -> List[Dict[str, Any]]:
    """Read company records from a CSV (via pandas) or a JSON list."""
    if path.lower().endswith(".json"):
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    else:
        df = pd.read_csv(path)
        records = df.astype(object).where(pd.notna(df), None).to_dict(orient="records")
    companies = []
    for index, record in enumerate(records):
        record = dict(record)
        if not record.get("company_id"):
            record["company_id"] = f"company_{index + 1:04d}"
        companies.append(record)
    return companies


def summary_row(company: Dict[str, Any], result: SourcingResult) -> List[str]:
    score = ""
    value: Dict[str, Any] = {}
    risks: List[Any] = []
    if result.summary:
        score = str(result.summary.score)
        if isinstance(result.summary.estimated_value, dict):
            value = result.summary.estimated_value
        risks = result.summary.risks
    return [
        str(company.get("company_id", "")),
        str(company.get("legal_name") or company.get("dba") or ""),
        "yes" if result.qualified else "no",
        score,
        result.reason or "",
        str(value.get("low", "")),
        str(value.get("midpoint", "")),
        str(value.get("high", "")),
        ";".join(str(r) for r in risks),
    ]


async def process_all_companies(
    companies: List[Dict[str, Any]],
    thesis: Dict[str, Any],
    orchestrator: AgentOrchestrator,
    out_dir: Path,
    concurrency: int,
) -> Tuple[List[List[str]], RunManifest]:
    """Run the sourcing workflow for every company with a concurrency limit.

    Returns the summary CSV rows and a run manifest summarizing the run.
    """
    sem = asyncio.Semaphore(concurrency if concurrency > 0 else max(len(companies), 1))
    manifest = RunManifest(total_companies=len(companies))
    rows: List[List[str]] = []
    results_dir = out_dir / "results"
    results_dir.mkdir(parents=True, exist_ok=True)

    async def handle_company(company: Dict[str, Any]) -> None:
        company_id = str(company["company_id"])
        async with sem:
            try:
                result = await orchestrator.execute_sourcing_workflow(thesis, company)
                path = results_dir / f"{slugify(company_id)}.json"
                path.write_text(result.model_dump_json(indent=2), encoding="utf-8")
                rows.append(summary_row(company, result))
                manifest.record_result(result.qualified)
            except Exception as exc:
                logger.exception("Sourcing failed for %s", company_id)
                manifest.record_error(company_id, "sourcing", str(exc))

    await asyncio.gather(*(handle_company(c) for c in companies))
    manifest.finish(orchestrator.get_stats())
    return rows, manifest


def write_csv(file_path: Path, header: List[str], rows: List[List[str]]) -> None:
    with file_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in rows:
            writer.writerow(row)


def print_stats(orchestrator: AgentOrchestrator) -> None:
    stats = orchestrator.get_stats()
    print(f"Total agent executions: {stats.total_executions}")
    print(f"Success rate: {stats.success_rate:.1f}%")
    print(f"Avg execution time: {stats.avg_execution_time_ms:.0f}ms")
    for agent_id, agent_stats in sorted(stats.by_agent.items()):
        print(f"   {agent_id}: {agent_stats.count} ({agent_stats.successes} successful)")


def run_sourcing(args: argparse.Namespace, config: Dict[str, Any], out_dir: Path) -> None:
    thesis = load_config(args.thesis)
    companies = read_companies(args.companies)
    limit = args.limit if args.limit and args.limit > 0 else len(companies)
    companies = companies[:limit]

    orchestrator = build_orchestrator(config)
    concurrency = int(config.get("concurrency", 4))
    rows, manifest = asyncio.run(
        process_all_companies(companies, thesis, orchestrator, out_dir, concurrency)
    )

    write_csv(out_dir / "sourcing_summary.csv", SUMMARY_HEADER, rows)
    with (out_dir / "run_manifest.json").open("w", encoding="utf-8") as f:
        json.dump(manifest.model_dump(mode="json"), f, indent=2)

    print(
        f"Processed {manifest.processed} of {manifest.total_companies} companies. "
        f"Qualified: {manifest.qualified}. Errors: {len(manifest.errors)}"
    )
    print_stats(orchestrator)


def run_outreach(args: argparse.Namespace, config: Dict[str, Any], out_dir: Path) -> None:
    with open(args.company, "r", encoding="utf-8") as f:
        company = json.load(f)
    context: Dict[str, Any] = {}
    if args.context:
        with open(args.context, "r", encoding="utf-8") as f:
            context = json.load(f)

    orchestrator = build_orchestrator(config)
    result = asyncio.run(orchestrator.execute_outreach_workflow(company, context))

    slug = slugify(company.get("company_id") or company.get("legal_name"))
    path = out_dir / f"outreach_{slug}.json"
    path.write_text(result.model_dump_json(indent=2), encoding="utf-8")

    if result.success:
        print(f"Outreach draft written to {path}")
    else:
        print(f"Outreach NOT approved: {result.reason}")
        for v in result.violations:
            print(f"   [{v.get('severity', 'n/a')}] {v.get('rule', '')}: {v.get('details', '')}")


def run_ingest(args: argparse.Namespace, config: Dict[str, Any], out_dir: Path) -> None:
    sources = build_company_sources(get_section(config, "company_source"))
    thesis = load_config(args.thesis) if args.thesis else None
    orchestrator = build_orchestrator(config)
    concurrency = int(config.get("concurrency", 4))

    result = asyncio.run(
        orchestrator.execute_ingestion_workflow(sources, args.location, args.term, thesis, concurrency=concurrency)
    )

    slug = slugify(args.location, fallback="location")
    with (out_dir / f"companies_{slug}.json").open("w", encoding="utf-8") as f:
        json.dump(result.companies, f, indent=2, default=str)
    (out_dir / f"ingestion_{slug}.json").write_text(result.model_dump_json(indent=2), encoding="utf-8")

    stats = result.stats
    print(f"Ingestion for {args.location}: {', '.join(f'{k}={v}' for k, v in result.source_counts.items()) or 'no sources'}")
    for name, error in result.source_errors.items():
        print(f"   {name} failed: {error}")
    print(f"Total scraped: {stats.total_scraped}")
    print(f"Unique companies: {stats.total_resolved} ({stats.duplicate_groups} duplicate groups resolved)")
    if thesis:
        print(f"Scored: {stats.total_scored}. Qualified (>= {SCORE_THRESHOLD}): {stats.qualified}")


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    load_dotenv()
    config = load_config(args.config)

    out_dir = Path(args.out)
    out_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(log_dir=str(out_dir))

    commands = {"sourcing": run_sourcing, "outreach": run_outreach, "ingest": run_ingest}
    commands[args.command](args, config, out_dir)


if __name__ == "__main__":
    main()
