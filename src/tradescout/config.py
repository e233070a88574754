from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(slots=True)
class IndicatorPolicy:
    rsi_period: int = 14
    trend_period: int = 5
    trend_band: float = 0.02
    volume_window: int = 20
    recent_window: int = 20
    min_history: int = 1


@dataclass(slots=True)
class TradePlanPolicy:
    target1_ratio: float = 1.02
    target2_ratio: float = 1.05
    stop_loss_ratio: float = 0.97


@dataclass(slots=True)
class RankingPolicy:
    market_limit: int = 10
    sector_limit: int = 10
    scanner_limit: int = 15
    max_workers: int = 8


@dataclass(slots=True)
class ProviderPolicy:
    kind: str = "yfinance"
    history_period: str = "1y"
    interval: str = "1d"
    fetch_timeout: float = 8.0


@dataclass(slots=True)
class AppConfig:
    indicators: IndicatorPolicy = field(default_factory=IndicatorPolicy)
    trade_plan: TradePlanPolicy = field(default_factory=TradePlanPolicy)
    ranking: RankingPolicy = field(default_factory=RankingPolicy)
    provider: ProviderPolicy = field(default_factory=ProviderPolicy)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AppConfig:
        cfg = cls()
        kind = os.getenv("TRADESCOUT_PROVIDER")
        if kind:
            cfg.provider.kind = kind.strip().lower()
        timeout = os.getenv("TRADESCOUT_FETCH_TIMEOUT")
        if timeout:
            cfg.provider.fetch_timeout = _parse_number("TRADESCOUT_FETCH_TIMEOUT", timeout, float)
        workers = os.getenv("TRADESCOUT_MAX_WORKERS")
        if workers:
            cfg.ranking.max_workers = max(1, _parse_number("TRADESCOUT_MAX_WORKERS", workers, int))
        level = os.getenv("TRADESCOUT_LOG_LEVEL")
        if level:
            cfg.log_level = level.strip().upper()
        return cfg


def _parse_number(name: str, raw: str, cast: type) -> float | int:
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
