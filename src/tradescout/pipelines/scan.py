from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from tradescout.models import AnalysisFailure, ScoreResult
from tradescout.pipelines.analysis import Analyzer, check_limit, normalize_tickers
from tradescout.skills import ranker

logger = logging.getLogger(__name__)


def _stage(stage: str, status: str, started_at: float, detail: str, **meta: object) -> dict:
    return {
        "stage": stage,
        "status": status,
        "duration_ms": round((time.perf_counter() - started_at) * 1000, 2),
        "detail": detail,
        "meta": meta,
    }


def _stage_failed(stage: str, started_at: float, exc: Exception, **meta: object) -> dict:
    record = _stage(stage, "error", started_at, f"{type(exc).__name__}: {exc}", **meta)
    record["error_type"] = type(exc).__name__
    return record


def compact_recommendation(r: ScoreResult) -> dict:
    return {
        "symbol": r.symbol,
        "score": r.score,
        "tier": r.tier.value,
        "label": r.label,
        "entry": r.plan.entry,
        "target": r.plan.target2,
        "stop_loss": r.plan.stop_loss,
    }


def run_scan(
    analyzer: Analyzer,
    tickers: list[str],
    label: str,
    limit: int | None = None,
    criteria: ranker.Criteria | str | None = None,
) -> dict:
    """Score a ticker list and rank it, recording per-stage diagnostics.

    Status is ``degraded`` when some tickers failed and ``failed`` when none
    succeeded or ranking itself raised.
    """
    symbols = normalize_tickers(tickers)
    limit = check_limit(limit)
    if criteria is not None:
        criteria = ranker.parse_criteria(criteria)

    diagnostics: list[dict] = []
    status = "ok"
    failed_stage = ""
    results: list[ScoreResult | AnalysisFailure] = []
    ranked: list[ScoreResult] = []

    t = time.perf_counter()
    results = analyzer.score_many(symbols)
    failures = [r for r in results if isinstance(r, AnalysisFailure)]
    ok_count = len(results) - len(failures)
    if ok_count == 0:
        status = "failed"
        failed_stage = "fetch_score"
        diagnostics.append(
            _stage(
                "fetch_score",
                "error",
                t,
                f"no ticker could be analysed (0/{len(symbols)})",
                provider=type(analyzer.provider).__name__,
            )
        )
    elif failures:
        status = "degraded"
        diagnostics.append(
            _stage(
                "fetch_score",
                "warning",
                t,
                f"{len(failures)} of {len(symbols)} tickers skipped",
                provider=type(analyzer.provider).__name__,
                failed={f.symbol: f.kind.value for f in failures},
            )
        )
    else:
        diagnostics.append(
            _stage(
                "fetch_score",
                "ok",
                t,
                "all tickers scored",
                provider=type(analyzer.provider).__name__,
                scored=ok_count,
            )
        )

    if status != "failed":
        t = time.perf_counter()
        try:
            if criteria is None:
                ranked = ranker.rank_results(results, limit)
            else:
                ranked = ranker.rank_by_criteria(results, criteria, limit)
            diagnostics.append(
                _stage(
                    "ranking",
                    "ok",
                    t,
                    "ranking complete",
                    ranked=len(ranked),
                    criteria=criteria.value if criteria is not None else None,
                )
            )
        except Exception as e:
            logger.exception("Ranking failed for %s", label)
            status = "failed"
            failed_stage = "ranking"
            diagnostics.append(_stage_failed("ranking", t, e))

    logger.info("Scan %s finished: status=%s ranked=%d", label, status, len(ranked))
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "label": label,
        "status": status,
        "failed_stage": failed_stage,
        "total": len(symbols),
        "successful": ok_count,
        "failed": [f.symbol for f in failures],
        "limit": limit,
        "criteria": criteria.value if criteria is not None else None,
        "diagnostics": diagnostics,
        "results": [r.to_dict() for r in ranked],
        "recommendations": [compact_recommendation(r) for r in ranked],
    }


def run_market_view(analyzer: Analyzer, market: str, hour: str | None = None) -> dict:
    sector = analyzer.universe.sector(market)
    report = run_scan(
        analyzer,
        list(sector.tickers),
        label=sector.name,
        limit=analyzer.config.ranking.market_limit,
    )
    report["market"] = sector.name
    report["hour"] = hour
    return report
