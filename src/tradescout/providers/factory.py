from __future__ import annotations

from tradescout.config import ProviderPolicy
from tradescout.providers.base import MarketDataProvider
from tradescout.providers.mock_provider import MockMarketDataProvider
from tradescout.providers.yfinance_provider import YFinanceMarketDataProvider

PROVIDER_KINDS = ("yfinance", "mock")


def build_market_provider(kind: str, policy: ProviderPolicy | None = None) -> MarketDataProvider:
    policy = policy or ProviderPolicy()
    mode = kind.strip().lower()
    if mode == "mock":
        return MockMarketDataProvider()
    if mode == "yfinance":
        return YFinanceMarketDataProvider(period=policy.history_period, interval=policy.interval)
    raise ValueError(f"unsupported market provider: {kind}")
