"""
Shared pytest fixtures for the TradeScout test suite.

Provides:
  - ``make_history``: factory for ``MarketHistory`` objects from plain close
    (and optional volume) lists, one bar per day.
  - ``make_snapshot``: factory for ``Snapshot`` objects whose defaults
    trigger no scoring signal at all (score 0), so a test only sets the
    fields it is exercising.
  - ``alternating_closes``: a 30-day series that scores exactly 25 points
    (RSI 50 -> +20, +1% day -> +5) with flat volume and no EPS.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from tradescout.models import (
    MarketHistory,
    PriceBar,
    QuoteMeta,
    Reversal,
    Snapshot,
    Trend,
)

START = datetime(2024, 1, 2, 21, 0, tzinfo=timezone.utc)


def build_history(
    symbol: str,
    closes: list[float],
    volumes: list[int] | None = None,
    eps: float | None = None,
    price: float | None = None,
    currency: str | None = "USD",
) -> MarketHistory:
    volumes = volumes if volumes is not None else [1_000_000] * len(closes)
    bars = tuple(
        PriceBar(timestamp=START + timedelta(days=i), close=c, volume=v)
        for i, (c, v) in enumerate(zip(closes, volumes))
    )
    quote = QuoteMeta(
        currency=currency,
        market_cap=None,
        regular_market_price=price,
        eps_current_year=eps,
        regular_market_time=None,
    )
    return MarketHistory(symbol=symbol, bars=bars, quote=quote)


@pytest.fixture
def make_history() -> Callable[..., MarketHistory]:
    return build_history


@pytest.fixture
def alternating_closes() -> list[float]:
    return [100.0 + (i % 2) for i in range(30)]


@pytest.fixture
def make_snapshot() -> Callable[..., Snapshot]:
    def _make(**overrides: object) -> Snapshot:
        fields: dict = {
            "symbol": "TEST",
            "price": 100.0,
            "previous_close": 100.0,
            "change": 0.0,
            "change_percent": 0.0,
            "rsi": None,
            "trend": Trend.NEUTRAL,
            "reversal": Reversal.NONE,
            "volume": 1_000_000,
            "average_volume": 1_000_000.0,
            "volume_ratio": None,
            "pe": 100.0,
            "pe_reliable": False,
            "currency": "USD",
            "market_cap": None,
            "timestamp": START,
            "recent_prices": (100.0,),
        }
        fields.update(overrides)
        return Snapshot(**fields)

    return _make
