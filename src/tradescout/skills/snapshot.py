from __future__ import annotations

import logging
import time

from tradescout.config import AppConfig, IndicatorPolicy
from tradescout.errors import ProviderError
from tradescout.models import AnalysisFailure, FailureKind, MarketHistory, Snapshot
from tradescout.providers.base import MarketDataProvider
from tradescout.skills import indicators

logger = logging.getLogger(__name__)


def _price_earnings(price: float, eps: float | None) -> tuple[float, bool]:
    # missing EPS divides by 1, leaving the P/E equal to the price
    if eps is None or eps == 0:
        return price, False
    return price / eps, eps > 0


def build_snapshot(
    history: MarketHistory,
    policy: IndicatorPolicy | None = None,
) -> Snapshot | AnalysisFailure:
    policy = policy or IndicatorPolicy()
    closes = history.closes
    volumes = history.volumes

    if len(closes) < max(1, policy.min_history):
        return AnalysisFailure(
            symbol=history.symbol,
            kind=FailureKind.INSUFFICIENT_HISTORY,
            message=f"need {max(1, policy.min_history)} samples, got {len(closes)}",
        )

    quote = history.quote
    price = closes[-1]
    previous_close = closes[-2] if len(closes) >= 2 else price
    change = price - previous_close
    change_percent = change / previous_close * 100 if previous_close else 0.0

    # the quoted price only feeds the P/E; change is close-to-close
    pe, pe_reliable = _price_earnings(quote.regular_market_price or price, quote.eps_current_year)
    avg_volume = indicators.average_volume(volumes, policy.volume_window)
    rsi = indicators.rsi(closes, policy.rsi_period)
    if rsi is None:
        logger.debug("%s: RSI undefined with %d samples", history.symbol, len(closes))

    return Snapshot(
        symbol=history.symbol,
        price=price,
        previous_close=previous_close,
        change=round(change, 2),
        change_percent=round(change_percent, 2),
        rsi=rsi,
        trend=indicators.trend(closes, policy.trend_period, policy.trend_band),
        reversal=indicators.reversal(closes),
        volume=int(volumes[-1]),
        average_volume=avg_volume,
        volume_ratio=indicators.volume_ratio(volumes, policy.volume_window),
        pe=pe,
        pe_reliable=pe_reliable,
        currency=quote.currency,
        market_cap=quote.market_cap,
        timestamp=quote.regular_market_time or history.bars[-1].timestamp,
        recent_prices=tuple(closes[-policy.recent_window:]),
    )


def fetch_snapshot(
    provider: MarketDataProvider,
    symbol: str,
    config: AppConfig | None = None,
) -> Snapshot | AnalysisFailure:
    """Fetch one symbol's history and reduce it to a Snapshot.

    Provider errors and overruns of ``fetch_timeout`` come back as an
    ``AnalysisFailure`` so batch callers can drop the ticker and carry on.
    """
    cfg = config or AppConfig()
    timeout = cfg.provider.fetch_timeout
    started = time.perf_counter()
    try:
        history = provider.get_history(symbol, timeout=timeout)
    except ProviderError as e:
        logger.warning("%s: upstream unavailable: %s", symbol, e)
        return AnalysisFailure(symbol, FailureKind.UPSTREAM_UNAVAILABLE, str(e))

    elapsed = time.perf_counter() - started
    if timeout and elapsed > timeout:
        logger.warning("%s: fetch took %.2fs, over the %.2fs limit", symbol, elapsed, timeout)
        return AnalysisFailure(
            symbol,
            FailureKind.UPSTREAM_UNAVAILABLE,
            f"timed out after {timeout:.1f}s",
        )

    result = build_snapshot(history, cfg.indicators)
    if isinstance(result, AnalysisFailure):
        logger.warning("%s: %s (%s)", symbol, result.kind.value, result.message)
    return result
