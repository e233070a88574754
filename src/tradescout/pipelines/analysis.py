from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from tradescout.config import AppConfig
from tradescout.errors import InvalidInputError
from tradescout.models import AnalysisFailure, FailureKind, ScoreResult, Snapshot
from tradescout.providers.base import MarketDataProvider
from tradescout.skills import ranker
from tradescout.skills.scoring import score_snapshot
from tradescout.skills.snapshot import fetch_snapshot
from tradescout.universe import Universe, default_universe

logger = logging.getLogger(__name__)

_JOIN_POLL = 0.05


def normalize_ticker(ticker: str | None) -> str:
    symbol = (ticker or "").strip().upper()
    if not symbol:
        raise InvalidInputError("a ticker symbol is required")
    return symbol


def normalize_tickers(tickers: list[str] | tuple[str, ...] | None) -> list[str]:
    if not tickers:
        raise InvalidInputError("a non-empty list of tickers is required")
    seen: dict[str, None] = {}
    for t in tickers:
        seen.setdefault(normalize_ticker(t), None)
    return list(seen)


def check_limit(limit: int | None) -> int | None:
    if limit is not None and limit <= 0:
        raise InvalidInputError(f"limit must be positive, got {limit}")
    return limit


@dataclass(slots=True)
class SnapshotBatch:
    total: int
    successful: list[Snapshot] = field(default_factory=list)
    failed: list[AnalysisFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": len(self.successful),
            "failed": len(self.failed),
            "stocks": [s.to_dict() for s in self.successful],
            "errors": [f.to_dict() for f in self.failed],
        }


class Analyzer:
    """Entry points handed to the request-routing layer.

    Every ticker is an independent unit of work: fetch, build the snapshot,
    score. Batch calls fan those units out on a bounded thread pool and
    join them in input order before ranking.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        config: AppConfig | None = None,
        universe: Universe | None = None,
    ) -> None:
        self.provider = provider
        self.config = config or AppConfig()
        self.universe = universe or default_universe()

    def snapshot(self, ticker: str) -> Snapshot | AnalysisFailure:
        return self._fan_out([normalize_ticker(ticker)], self._snapshot_unit)[0]

    def snapshots(self, tickers: list[str]) -> SnapshotBatch:
        symbols = normalize_tickers(tickers)
        batch = SnapshotBatch(total=len(symbols))
        for result in self._fan_out(symbols, self._snapshot_unit):
            if isinstance(result, AnalysisFailure):
                batch.failed.append(result)
            else:
                batch.successful.append(result)
        return batch

    def analyze(self, ticker: str) -> ScoreResult | AnalysisFailure:
        return self._fan_out([normalize_ticker(ticker)], self._score_unit)[0]

    def score_many(self, tickers: list[str]) -> list[ScoreResult | AnalysisFailure]:
        return self._fan_out(normalize_tickers(tickers), self._score_unit)

    def rank_batch(self, tickers: list[str], limit: int | None = None) -> list[ScoreResult]:
        limit = check_limit(limit)
        return ranker.rank_results(self.score_many(tickers), limit)

    def rank_by_criteria(
        self,
        tickers: list[str],
        criteria: ranker.Criteria | str,
        limit: int | None = None,
    ) -> list[ScoreResult]:
        criteria = ranker.parse_criteria(criteria)
        limit = check_limit(limit)
        return ranker.rank_by_criteria(self.score_many(tickers), criteria, limit)

    def rank_sector(self, key: str, limit: int | None = None) -> list[ScoreResult]:
        sector = self.universe.sector(key)
        limit = check_limit(limit) or self.config.ranking.sector_limit
        return self.rank_batch(list(sector.tickers), limit)

    def rank_custom(self, tickers: list[str]) -> list[ScoreResult]:
        return self.rank_batch(tickers)

    def scan(
        self,
        criteria: ranker.Criteria | str | None = None,
        limit: int | None = None,
    ) -> list[ScoreResult]:
        tickers = list(self.universe.scanner)
        limit = check_limit(limit) or self.config.ranking.scanner_limit
        if criteria is None:
            return self.rank_batch(tickers, limit)
        return self.rank_by_criteria(tickers, criteria, limit)

    def _snapshot_unit(self, symbol: str) -> Snapshot | AnalysisFailure:
        return fetch_snapshot(self.provider, symbol, self.config)

    def _score_unit(self, symbol: str) -> ScoreResult | AnalysisFailure:
        return score_snapshot(self._snapshot_unit(symbol), self.config.trade_plan)

    def _guarded(self, unit, symbol: str):
        try:
            return unit(symbol)
        except Exception as e:
            logger.exception("%s: unexpected error during analysis", symbol)
            return AnalysisFailure(
                symbol,
                FailureKind.UPSTREAM_UNAVAILABLE,
                f"{type(e).__name__}: {e}",
            )

    def _fan_out(self, symbols: list[str], unit) -> list:
        """Run ``unit`` per symbol on the pool and join results in input order.

        A unit still running ``fetch_timeout`` seconds after it started is
        abandoned and recorded as an upstream failure; the join does not
        wait for it.
        """
        results: list = [None] * len(symbols)
        workers = max(1, min(self.config.ranking.max_workers, len(symbols)))
        timeout = self.config.provider.fetch_timeout or None
        started: dict[int, float] = {}
        logger.info("Fanning out %d tickers on %d workers", len(symbols), workers)

        def run(idx: int, symbol: str):
            started[idx] = time.perf_counter()
            return self._guarded(unit, symbol)

        executor = ThreadPoolExecutor(max_workers=workers)
        try:
            pending = {executor.submit(run, idx, s): idx for idx, s in enumerate(symbols)}
            while pending:
                done, _ = wait(pending, timeout=_JOIN_POLL, return_when=FIRST_COMPLETED)
                for future in done:
                    results[pending.pop(future)] = future.result()
                if timeout is None:
                    continue
                now = time.perf_counter()
                for future, idx in list(pending.items()):
                    if idx in started and now - started[idx] > timeout:
                        del pending[future]
                        logger.warning("%s: no result after %.1fs, giving up", symbols[idx], timeout)
                        results[idx] = AnalysisFailure(
                            symbols[idx],
                            FailureKind.UPSTREAM_UNAVAILABLE,
                            f"timed out after {timeout:.1f}s",
                        )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        failed = sum(isinstance(r, AnalysisFailure) for r in results)
        logger.info("Joined %d tickers, %d failed", len(results), failed)
        return results
