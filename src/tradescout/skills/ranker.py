from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum

from tradescout.errors import InvalidInputError
from tradescout.models import AnalysisFailure, Reversal, ScoreResult, Snapshot, Trend


class Criteria(str, Enum):
    OVERSOLD = "oversold"
    VOLUME_SPIKE = "volume_spike"
    REVERSAL = "reversal"
    BULLISH = "bullish"
    VALUE = "value"
    MOMENTUM = "momentum"


def _oversold(s: Snapshot) -> bool:
    return s.rsi is not None and s.rsi < 30


def _volume_spike(s: Snapshot) -> bool:
    return s.volume_ratio is not None and s.volume_ratio > 1.8


def _reversal(s: Snapshot) -> bool:
    return s.reversal is Reversal.UPSIDE


def _bullish(s: Snapshot) -> bool:
    return s.trend is Trend.BULLISH


def _value(s: Snapshot) -> bool:
    return s.pe_reliable and s.pe < 20


def _momentum(s: Snapshot) -> bool:
    return s.change_percent > 3


CRITERIA_PREDICATES: dict[Criteria, Callable[[Snapshot], bool]] = {
    Criteria.OVERSOLD: _oversold,
    Criteria.VOLUME_SPIKE: _volume_spike,
    Criteria.REVERSAL: _reversal,
    Criteria.BULLISH: _bullish,
    Criteria.VALUE: _value,
    Criteria.MOMENTUM: _momentum,
}


def parse_criteria(value: Criteria | str) -> Criteria:
    if isinstance(value, Criteria):
        return value
    try:
        return Criteria((value or "").strip().lower())
    except ValueError as e:
        known = ", ".join(c.value for c in Criteria)
        raise InvalidInputError(f"unknown criteria: {value!r} (known: {known})") from e


def successful(results: Iterable[ScoreResult | AnalysisFailure]) -> list[ScoreResult]:
    return [r for r in results if isinstance(r, ScoreResult)]


def rank_results(
    results: Iterable[ScoreResult | AnalysisFailure],
    limit: int | None = None,
) -> list[ScoreResult]:
    # sort is stable: equal scores keep input order
    ranked = sorted(successful(results), key=lambda r: r.score, reverse=True)
    if limit is None:
        return ranked
    return ranked[:limit]


def rank_by_criteria(
    results: Iterable[ScoreResult | AnalysisFailure],
    criteria: Criteria | str,
    limit: int | None = None,
) -> list[ScoreResult]:
    predicate = CRITERIA_PREDICATES[parse_criteria(criteria)]
    matching = [r for r in successful(results) if predicate(r.snapshot)]
    return rank_results(matching, limit)
