"""
Tests for tradescout/skills/ranker.py.

What we test
------------
rank_results():
  - Failures are silently dropped.
  - Sorted by score descending; equal scores keep input order.
  - limit truncates; None is unbounded.

rank_by_criteria():
  - Each criteria predicate filters on the snapshot before ranking.
  - P/E value screen ignores unreliable P/E.

parse_criteria():
  - Accepts enum members and case-insensitive names.
  - Unknown names raise InvalidInputError.
"""

from __future__ import annotations

import dataclasses

import pytest

from tradescout.errors import InvalidInputError
from tradescout.models import AnalysisFailure, FailureKind, Reversal, Trend
from tradescout.skills.ranker import Criteria, parse_criteria, rank_by_criteria, rank_results
from tradescout.skills.scoring import score_snapshot


@pytest.fixture
def result(make_snapshot):
    def _result(symbol: str, score: int, **snapshot_fields):
        base = score_snapshot(make_snapshot(symbol=symbol, **snapshot_fields))
        return dataclasses.replace(base, score=score)

    return _result


def _failure(symbol: str) -> AnalysisFailure:
    return AnalysisFailure(symbol, FailureKind.UPSTREAM_UNAVAILABLE, "fetch failed")


# ── rank_results ──────────────────────────────────────────────────────────────

def test_failures_dropped_and_sorted(result):
    ranked = rank_results([result("A", 90), result("B", 120), _failure("C")])
    assert [r.symbol for r in ranked] == ["B", "A"]


def test_ties_keep_input_order(result):
    ranked = rank_results([result("A", 50), result("B", 80), result("C", 50), result("D", 80)])
    assert [r.symbol for r in ranked] == ["B", "D", "A", "C"]


def test_limit_truncates(result):
    results = [result(f"T{i}", i) for i in range(20)]
    ranked = rank_results(results, limit=10)
    assert len(ranked) == 10
    assert ranked[0].symbol == "T19"


def test_no_limit_keeps_everything(result):
    results = [result(f"T{i}", i) for i in range(20)]
    assert len(rank_results(results)) == 20


def test_all_failures_gives_empty_list():
    assert rank_results([_failure("A"), _failure("B")]) == []


# ── rank_by_criteria ──────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "criteria, hit, miss",
    [
        (Criteria.OVERSOLD, {"rsi": 25.0}, {"rsi": 35.0}),
        (Criteria.VOLUME_SPIKE, {"volume_ratio": 1.9}, {"volume_ratio": 1.8}),
        (Criteria.REVERSAL, {"reversal": Reversal.UPSIDE}, {"reversal": Reversal.NONE}),
        (Criteria.BULLISH, {"trend": Trend.BULLISH}, {"trend": Trend.NEUTRAL}),
        (Criteria.VALUE, {"pe": 15.0, "pe_reliable": True}, {"pe": 25.0, "pe_reliable": True}),
        (Criteria.MOMENTUM, {"change_percent": 3.5}, {"change_percent": 3.0}),
    ],
)
def test_criteria_filters(result, criteria, hit, miss):
    results = [result("HIT", 10, **hit), result("MISS", 90, **miss)]
    ranked = rank_by_criteria(results, criteria)
    assert [r.symbol for r in ranked] == ["HIT"]


def test_value_screen_ignores_unreliable_pe(result):
    results = [result("NOEPS", 10, pe=5.0, pe_reliable=False)]
    assert rank_by_criteria(results, Criteria.VALUE) == []


def test_oversold_skips_undefined_rsi(result):
    assert rank_by_criteria([result("A", 10, rsi=None)], Criteria.OVERSOLD) == []


def test_criteria_sorts_and_truncates(result):
    results = [result(f"T{i}", i, trend=Trend.BULLISH) for i in range(5)] + [_failure("X")]
    ranked = rank_by_criteria(results, "bullish", limit=2)
    assert [r.symbol for r in ranked] == ["T4", "T3"]


# ── parse_criteria ────────────────────────────────────────────────────────────

def test_parse_criteria_accepts_names():
    assert parse_criteria(" Oversold ") is Criteria.OVERSOLD
    assert parse_criteria(Criteria.VALUE) is Criteria.VALUE


def test_parse_criteria_rejects_unknown():
    with pytest.raises(InvalidInputError):
        parse_criteria("cheap")
