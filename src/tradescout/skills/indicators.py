from __future__ import annotations

from collections.abc import Sequence

from tradescout.models import Reversal, Trend


def rsi(prices: Sequence[float], period: int = 14) -> float | None:
    """Simple-average RSI over the last ``period`` deltas.

    Not Wilder-smoothed. Returns None when fewer than ``period`` prices exist.
    With no losses in the window ``rs`` is pinned to 100, so the result tops
    out at ~99.0099 rather than 100.
    """
    if period <= 0 or len(prices) < period:
        return None

    window = prices[-(period + 1):]
    gains = 0.0
    losses = 0.0
    for prev, cur in zip(window, window[1:]):
        delta = cur - prev
        if delta > 0:
            gains += delta
        else:
            losses += -delta

    avg_gain = gains / period
    avg_loss = losses / period
    rs = 100.0 if avg_loss == 0 else avg_gain / avg_loss
    return 100 - 100 / (1 + rs)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def trend(prices: Sequence[float], period: int = 5, band: float = 0.02) -> Trend:
    if period <= 0 or len(prices) < period * 2:
        return Trend.NEUTRAL

    recent = _mean(prices[-period:])
    prior = _mean(prices[-period * 2:-period])
    if recent > prior * (1 + band):
        return Trend.BULLISH
    if recent < prior * (1 - band):
        return Trend.BEARISH
    return Trend.NEUTRAL


def reversal(prices: Sequence[float]) -> Reversal:
    # down bar, then a close back above the bar before the dip
    if len(prices) < 3:
        return Reversal.NONE
    a, b, c = prices[-3], prices[-2], prices[-1]
    if b < a and c > b and c > a:
        return Reversal.UPSIDE
    return Reversal.NONE


def average_volume(volumes: Sequence[float], window: int = 20) -> float | None:
    if window <= 0 or len(volumes) < window:
        return None
    return _mean(volumes[-window:])


def volume_ratio(volumes: Sequence[float], window: int = 20) -> float | None:
    avg = average_volume(volumes, window)
    if not avg:
        return None
    return volumes[-1] / avg
