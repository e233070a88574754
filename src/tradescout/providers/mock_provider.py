from __future__ import annotations

import random
import zlib
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone

from tradescout.errors import SymbolNotFoundError
from tradescout.models import MarketHistory, PriceBar, QuoteMeta
from tradescout.providers.base import MarketDataProvider


class MockMarketDataProvider(MarketDataProvider):
    """Synthetic one-year daily series, stable per symbol."""

    def __init__(self, days: int = 252, end: datetime | None = None) -> None:
        self.days = days
        self.end = end or datetime(2024, 12, 31, 21, 0, tzinfo=timezone.utc)

    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        rng = random.Random(zlib.crc32(symbol.encode("utf-8")))
        price = rng.uniform(20.0, 400.0)
        base_volume = rng.randint(500_000, 20_000_000)
        drift = rng.uniform(-0.002, 0.003)

        bars: list[PriceBar] = []
        start = self.end - timedelta(days=self.days - 1)
        for i in range(self.days):
            price = max(1.0, price * (1 + drift + rng.gauss(0, 0.018)))
            volume = int(base_volume * rng.uniform(0.6, 1.9))
            bars.append(PriceBar(start + timedelta(days=i), round(price, 2), volume))

        eps = round(rng.uniform(-2.0, 15.0), 2)
        quote = QuoteMeta(
            currency="USD",
            market_cap=round(bars[-1].close * rng.randint(50_000_000, 5_000_000_000), 0),
            regular_market_price=bars[-1].close,
            eps_current_year=eps,
            regular_market_time=bars[-1].timestamp,
        )
        return MarketHistory(symbol=symbol, bars=tuple(bars), quote=quote)


class StaticMarketDataProvider(MarketDataProvider):
    """Serves prepared histories; unknown symbols are reported as not found."""

    def __init__(self, histories: Mapping[str, MarketHistory]) -> None:
        self.histories = dict(histories)

    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        try:
            return self.histories[symbol]
        except KeyError:
            raise SymbolNotFoundError(f"{symbol}: not found") from None
