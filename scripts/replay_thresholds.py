#!/usr/bin/env python3
"""Replay recorded stage outputs through the cascade under a threshold grid.

Each input line is one recorded run:

    {"query": "DNS not resolving",
     "local_knowledge": [{"text": "...", "score": 0.82}],
     "language_model": "Flush the resolver cache ...",
     "authoritative_docs": {"results": [{"title": "...", "snippet": "...",
                                         "url": "...", "relevance_score": 0.9,
                                         "last_modified": "2024-05-01T00:00:00"}],
                            "overall_confidence": 0.85},
     "web_search": {"results": [...], "overall_confidence": 0.6}}

Missing keys mean the source returned nothing. For every threshold value the
script reports where runs stopped and how often conflicts were resolved.

Usage:
    python scripts/replay_thresholds.py runs.jsonl --stage language_model \
        --values 0.6 0.7 0.75 0.8 --output replay.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path

import numpy as np

from opscascade import CascadeConfiguration, SourceType, make_orchestrator
from opscascade.sources import (
    DocsArticle,
    DocsSearchResult,
    KnowledgeMatch,
    StaticAuthoritativeDocs,
    StaticLanguageModel,
    StaticLocalKnowledge,
    StaticWebSearch,
    WebArticle,
    WebSearchResult,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def load_records(path: Path, limit: int | None = None) -> list[dict]:
    """Load recorded runs from a JSONL file, skipping blank lines."""
    records = []
    with open(path) as f:
        for line in f:
            if limit and len(records) >= limit:
                break
            if line.strip():
                records.append(json.loads(line))
    logger.info(f"Loaded {len(records)} recorded runs from {path}")
    return records


def _docs(data: dict | None) -> DocsSearchResult:
    if not data:
        return DocsSearchResult()
    return DocsSearchResult(
        results=[
            DocsArticle(
                title=r["title"],
                snippet=r["snippet"],
                url=r["url"],
                relevance_score=float(r.get("relevance_score", 0.0)),
                last_modified=(
                    datetime.fromisoformat(r["last_modified"]) if r.get("last_modified") else None
                ),
            )
            for r in data.get("results", [])
        ],
        overall_confidence=float(data.get("overall_confidence", 0.0)),
    )


def _web(data: dict | None) -> WebSearchResult:
    if not data:
        return WebSearchResult()
    return WebSearchResult(
        results=[
            WebArticle(
                title=r["title"],
                snippet=r["snippet"],
                url=r["url"],
                domain=r.get("domain", ""),
                relevance_score=float(r.get("relevance_score", 0.0)),
            )
            for r in data.get("results", [])
        ],
        overall_confidence=float(data.get("overall_confidence", 0.0)),
    )


async def replay(records: list[dict], config: CascadeConfiguration) -> dict:
    """Run every record once under config and summarize the outcomes."""
    stopped_at: dict[str, int] = {}
    confidences = []
    stages_run = []
    tie_breaks = 0

    for record in records:
        orchestrator = make_orchestrator(
            local_knowledge=StaticLocalKnowledge(
                [KnowledgeMatch(m["text"], float(m["score"])) for m in record.get("local_knowledge", [])]
            ),
            language_model=StaticLanguageModel(record.get("language_model", "")),
            authoritative_docs=StaticAuthoritativeDocs(_docs(record.get("authoritative_docs"))),
            web_search=StaticWebSearch(_web(record.get("web_search"))),
            config=config,
        )
        result = await orchestrator.execute(record["query"], record.get("context"))

        stopped_at[result.stopped_at.value] = stopped_at.get(result.stopped_at.value, 0) + 1
        stages_run.append(len(result.stage_executions))
        if result.final_confidence is not None:
            confidences.append(result.final_confidence.score)
        if result.metadata.get("tie_breaker_used"):
            tie_breaks += 1

    return {
        "stopped_at": stopped_at,
        "avg_stages_executed": float(np.mean(stages_run)) if stages_run else 0.0,
        "avg_final_confidence": float(np.mean(confidences)) if confidences else 0.0,
        "tie_breaker_used": tie_breaks,
    }


def main():
    """Run the threshold replay."""
    parser = argparse.ArgumentParser(description="Replay recorded runs under a threshold grid")
    parser.add_argument("input", type=str, help="JSONL file of recorded stage outputs")
    parser.add_argument(
        "--stage",
        type=str,
        default=SourceType.LANGUAGE_MODEL.value,
        choices=[s.value for s in SourceType],
        help="Stage whose threshold is varied",
    )
    parser.add_argument(
        "--values", type=float, nargs="+", default=[0.6, 0.7, 0.75, 0.8, 0.85, 0.9]
    )
    parser.add_argument("--config", type=str, default=None, help="Base config JSON file")
    parser.add_argument("--limit", type=int, default=None, help="Max records to replay")
    parser.add_argument("--output", type=str, default="replay.json", help="Output JSON file")
    args = parser.parse_args()

    records = load_records(Path(args.input), limit=args.limit)
    base = CascadeConfiguration.from_json(args.config) if args.config else CascadeConfiguration()
    field = f"{args.stage}_threshold"

    grid = {}
    for value in args.values:
        config = CascadeConfiguration.parse({**base.model_dump(), field: value})
        grid[f"{value:.2f}"] = asyncio.run(replay(records, config))
        logger.info(f"{field}={value:.2f}: {grid[f'{value:.2f}']['stopped_at']}")

    result = {
        "stage": args.stage,
        "grid": grid,
        "replay_date": datetime.now().isoformat(),
        "records": len(records),
    }

    output_path = Path(args.output)
    with open(output_path, "w") as f:
        json.dump(result, f, indent=2)

    logger.info(f"Results saved to {output_path}")


if __name__ == "__main__":
    main()
