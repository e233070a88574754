from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

import pandas as pd

from tradescout.errors import ProviderError, SymbolNotFoundError
from tradescout.models import MarketHistory, PriceBar, QuoteMeta
from tradescout.providers.base import MarketDataProvider

logger = logging.getLogger(__name__)


def _safe_float(v: object) -> float | None:
    if v is None:
        return None
    try:
        out = float(v)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(out) else out


def _epoch_to_datetime(v: object) -> datetime | None:
    ts = _safe_float(v)
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _quote_from_info(info: dict) -> QuoteMeta:
    return QuoteMeta(
        currency=info.get("currency"),
        market_cap=_safe_float(info.get("marketCap")),
        regular_market_price=_safe_float(info.get("regularMarketPrice")),
        eps_current_year=_safe_float(info.get("epsCurrentYear")),
        regular_market_time=_epoch_to_datetime(info.get("regularMarketTime")),
    )


class YFinanceMarketDataProvider(MarketDataProvider):
    def __init__(self, period: str = "1y", interval: str = "1d") -> None:
        self.period = period
        self.interval = interval

    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        try:
            import yfinance as yf
        except ImportError as e:
            raise RuntimeError("yfinance is not installed; install the package dependencies.") from e

        ticker = yf.Ticker(symbol)
        try:
            hist = ticker.history(
                period=self.period,
                interval=self.interval,
                auto_adjust=False,
                timeout=timeout or 10,
            )
        except Exception as e:
            raise ProviderError(f"{symbol}: {type(e).__name__}: {e}") from e

        if hist is None or hist.empty or "Close" not in hist.columns:
            raise SymbolNotFoundError(f"{symbol}: empty history")

        closes = hist["Close"].dropna()
        if "Volume" in hist.columns:
            volumes = hist["Volume"].reindex(closes.index).fillna(0)
        else:
            volumes = pd.Series(0, index=closes.index)

        bars = tuple(
            PriceBar(timestamp=pd.Timestamp(ts).to_pydatetime(), close=float(c), volume=int(v))
            for ts, c, v in zip(closes.index, closes, volumes)
        )

        if not bars:
            raise SymbolNotFoundError(f"{symbol}: no closing prices")

        try:
            quote = _quote_from_info(ticker.info or {})
        except Exception as e:
            logger.warning("%s: quote metadata unavailable (%s), using history only", symbol, e)
            quote = QuoteMeta()

        logger.debug("%s: %d bars from yfinance", symbol, len(bars))
        return MarketHistory(symbol=symbol, bars=bars, quote=quote)
