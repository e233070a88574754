from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Reversal(str, Enum):
    NONE = "none"
    UPSIDE = "upside_reversal"


class FailureKind(str, Enum):
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INSUFFICIENT_HISTORY = "insufficient_history"


class RecommendationTier(str, Enum):
    STRONG_IMMEDIATE_BUY = "strong_immediate_buy"
    STRONG_BUY = "strong_buy"
    CONSIDER = "consider"
    NEUTRAL = "neutral"
    AVOID = "avoid"


class ReasonKind(str, Enum):
    RSI = "rsi"
    MOMENTUM = "momentum"
    REVERSAL = "reversal"
    VOLUME = "volume"
    VALUATION = "valuation"
    TREND = "trend"


@dataclass(slots=True, frozen=True)
class PriceBar:
    timestamp: datetime
    close: float
    volume: int


@dataclass(slots=True, frozen=True)
class QuoteMeta:
    currency: str | None = None
    market_cap: float | None = None
    regular_market_price: float | None = None
    eps_current_year: float | None = None
    regular_market_time: datetime | None = None


@dataclass(slots=True, frozen=True)
class MarketHistory:
    symbol: str
    bars: tuple[PriceBar, ...]
    quote: QuoteMeta = QuoteMeta()

    @property
    def closes(self) -> list[float]:
        return [b.close for b in self.bars]

    @property
    def volumes(self) -> list[int]:
        return [b.volume for b in self.bars]


@dataclass(slots=True, frozen=True)
class Snapshot:
    symbol: str
    price: float
    previous_close: float
    change: float
    change_percent: float
    rsi: float | None
    trend: Trend
    reversal: Reversal
    volume: int
    average_volume: float | None
    volume_ratio: float | None
    pe: float
    pe_reliable: bool
    currency: str | None
    market_cap: float | None
    timestamp: datetime
    recent_prices: tuple[float, ...] = ()

    def to_dict(self) -> dict:
        return _plain(asdict(self))


@dataclass(slots=True, frozen=True)
class AnalysisFailure:
    symbol: str
    kind: FailureKind
    message: str

    def to_dict(self) -> dict:
        return _plain(asdict(self))


@dataclass(slots=True, frozen=True)
class Reason:
    kind: ReasonKind
    text: str
    points: int
    icon: str


@dataclass(slots=True, frozen=True)
class TradePlan:
    entry: float
    target1: float
    target2: float
    stop_loss: float


@dataclass(slots=True, frozen=True)
class ScoreResult:
    symbol: str
    score: int
    reasons: tuple[Reason, ...]
    tier: RecommendationTier
    label: str
    action: str
    urgency: str
    probability: str
    confidence: float
    plan: TradePlan
    snapshot: Snapshot
    max_score: int = 150

    def to_dict(self) -> dict:
        return _plain(asdict(self))


def _plain(value: object) -> object:
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value
