"""
Tests for tradescout/skills/snapshot.py.

What we test
------------
build_snapshot():
  - Price, previous close, change and change percent (rounded to 2dp).
  - Price is the last close; the quoted price only feeds the P/E.
  - A one-bar history gives a flat change; an empty one fails as
    insufficient history.
  - RSI is None (undefined) when history is shorter than the period.
  - P/E = price / EPS; missing or zero EPS divides by 1 and is flagged
    unreliable; negative EPS is also unreliable.
  - Recent price window and timestamp fallback to the last bar.

fetch_snapshot():
  - Provider errors become upstream_unavailable failures.
  - Fetches slower than fetch_timeout become failures.
  - Non-provider exceptions are not swallowed here.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone

import pytest

from tradescout.config import AppConfig, IndicatorPolicy
from tradescout.errors import ProviderError
from tradescout.models import AnalysisFailure, FailureKind, MarketHistory, QuoteMeta, Snapshot
from tradescout.providers.base import MarketDataProvider
from tradescout.providers.mock_provider import StaticMarketDataProvider
from tradescout.skills.snapshot import build_snapshot, fetch_snapshot


class _SlowProvider(MarketDataProvider):
    def __init__(self, history: MarketHistory, delay: float) -> None:
        self.history = history
        self.delay = delay

    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        time.sleep(self.delay)
        return self.history


class _BrokenProvider(MarketDataProvider):
    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        raise self.exc


# ── build_snapshot ────────────────────────────────────────────────────────────

def test_change_against_previous_close(make_history):
    snap = build_snapshot(make_history("ABC", [100.0] * 20 + [98.0, 100.0]))
    assert isinstance(snap, Snapshot)
    assert snap.price == 100.0
    assert snap.previous_close == 98.0
    assert snap.change == 2.0
    assert snap.change_percent == round(2.0 / 98.0 * 100, 2)


def test_price_is_last_close_not_quote(make_history):
    snap = build_snapshot(make_history("ABC", [100.0, 100.0], price=110.0))
    assert snap.price == 100.0
    assert snap.change == 0.0
    assert snap.change_percent == 0.0


def test_quote_price_feeds_pe(make_history):
    snap = build_snapshot(make_history("ABC", [100.0, 100.0], price=110.0, eps=5.0))
    assert snap.pe == pytest.approx(22.0)
    assert snap.pe_reliable is True


def test_single_bar_has_flat_change(make_history):
    snap = build_snapshot(make_history("ABC", [100.0]))
    assert isinstance(snap, Snapshot)
    assert snap.price == 100.0
    assert snap.previous_close == 100.0
    assert snap.change == 0.0
    assert snap.change_percent == 0.0


def test_minimum_history_is_configurable(make_history):
    result = build_snapshot(make_history("ABC", [100.0]), IndicatorPolicy(min_history=2))
    assert isinstance(result, AnalysisFailure)
    assert result.kind is FailureKind.INSUFFICIENT_HISTORY
    assert result.symbol == "ABC"


def test_empty_history_fails(make_history):
    result = build_snapshot(make_history("ABC", []), IndicatorPolicy(min_history=0))
    assert isinstance(result, AnalysisFailure)


def test_rsi_undefined_on_short_history(make_history):
    snap = build_snapshot(make_history("ABC", [float(i) for i in range(100, 110)]))
    assert snap.rsi is None


def test_indicators_populated(make_history, alternating_closes):
    snap = build_snapshot(make_history("ABC", alternating_closes))
    assert snap.rsi == pytest.approx(50.0)
    assert snap.volume == 1_000_000
    assert snap.average_volume == pytest.approx(1_000_000.0)
    assert snap.volume_ratio == pytest.approx(1.0)
    assert snap.trend.value == "neutral"
    assert snap.reversal.value == "none"


def test_pe_from_eps(make_history):
    snap = build_snapshot(make_history("ABC", [100.0, 100.0], eps=5.0))
    assert snap.pe == 20.0
    assert snap.pe_reliable is True


@pytest.mark.parametrize("eps", [None, 0.0])
def test_missing_eps_divides_by_one(make_history, eps):
    snap = build_snapshot(make_history("ABC", [100.0, 42.0], eps=eps))
    assert snap.pe == 42.0
    assert snap.pe_reliable is False


def test_negative_eps_is_unreliable(make_history):
    snap = build_snapshot(make_history("ABC", [100.0, 50.0], eps=-2.0))
    assert snap.pe == -25.0
    assert snap.pe_reliable is False


def test_recent_prices_window(make_history):
    closes = [float(i) for i in range(1, 41)]
    snap = build_snapshot(make_history("ABC", closes))
    assert snap.recent_prices == tuple(closes[-20:])


def test_timestamp_falls_back_to_last_bar(make_history):
    history = make_history("ABC", [1.0, 2.0, 3.0])
    snap = build_snapshot(history)
    assert snap.timestamp == history.bars[-1].timestamp


def test_timestamp_from_quote_when_present(make_history):
    ts = datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc)
    base = make_history("ABC", [1.0, 2.0])
    history = MarketHistory(
        symbol="ABC",
        bars=base.bars,
        quote=QuoteMeta(regular_market_time=ts),
    )
    assert build_snapshot(history).timestamp == ts


# ── fetch_snapshot ────────────────────────────────────────────────────────────

def test_unknown_symbol_is_upstream_failure():
    result = fetch_snapshot(StaticMarketDataProvider({}), "NOPE")
    assert isinstance(result, AnalysisFailure)
    assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE
    assert "NOPE" in result.message


def test_provider_error_is_upstream_failure():
    result = fetch_snapshot(_BrokenProvider(ProviderError("boom")), "ABC")
    assert isinstance(result, AnalysisFailure)
    assert result.message == "boom"


def test_slow_fetch_times_out(make_history, alternating_closes):
    cfg = AppConfig()
    cfg.provider.fetch_timeout = 0.01
    provider = _SlowProvider(make_history("ABC", alternating_closes), delay=0.1)
    result = fetch_snapshot(provider, "ABC", cfg)
    assert isinstance(result, AnalysisFailure)
    assert result.kind is FailureKind.UPSTREAM_UNAVAILABLE
    assert "timed out" in result.message


def test_insufficient_history_from_provider(make_history):
    provider = StaticMarketDataProvider({"ABC": make_history("ABC", [])})
    result = fetch_snapshot(provider, "ABC")
    assert isinstance(result, AnalysisFailure)
    assert result.kind is FailureKind.INSUFFICIENT_HISTORY


def test_unexpected_errors_propagate():
    with pytest.raises(KeyError):
        fetch_snapshot(_BrokenProvider(KeyError("x")), "ABC")
