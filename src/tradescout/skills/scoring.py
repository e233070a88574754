from __future__ import annotations

from tradescout.config import TradePlanPolicy
from tradescout.models import (
    AnalysisFailure,
    Reason,
    ReasonKind,
    RecommendationTier,
    Reversal,
    ScoreResult,
    Snapshot,
    TradePlan,
    Trend,
)

MAX_SCORE = 150

# (min score, tier, label, action, urgency, probability), first match wins
TIER_LADDER: tuple[tuple[int, RecommendationTier, str, str, str, str], ...] = (
    (120, RecommendationTier.STRONG_IMMEDIATE_BUY, "Strong immediate buy", "Enter now", "Immediate", "85%+"),
    (100, RecommendationTier.STRONG_BUY, "Strong buy", "Buy on dips", "High", "75-85%"),
    (80, RecommendationTier.CONSIDER, "Consider", "Wait for confirmation", "Medium", "65-75%"),
    (60, RecommendationTier.NEUTRAL, "Neutral", "Wait for a clear signal", "Low", "50-65%"),
    (0, RecommendationTier.AVOID, "Avoid", "Wait, signals are negative", "None", "<50%"),
)


def _clamp(v: int, low: int = 0, high: int = MAX_SCORE) -> int:
    return max(low, min(high, v))


def rsi_reason(s: Snapshot) -> Reason | None:
    if s.rsi is None:
        return None
    if s.rsi < 30:
        return Reason(ReasonKind.RSI, f"RSI oversold ({s.rsi:.1f} < 30)", 35, "🟢")
    if 40 <= s.rsi <= 60:
        return Reason(ReasonKind.RSI, f"RSI neutral ({s.rsi:.1f}, 40-60)", 20, "⚪")
    if s.rsi > 70:
        return Reason(ReasonKind.RSI, f"RSI overbought ({s.rsi:.1f} > 70)", -20, "🔴")
    return None


def momentum_reason(s: Snapshot) -> Reason | None:
    chg = s.change_percent
    if chg > 5:
        return Reason(ReasonKind.MOMENTUM, f"Strong momentum (+{chg:.2f}% > 5%)", 25, "🚀")
    if chg > 2:
        return Reason(ReasonKind.MOMENTUM, f"Positive momentum (+{chg:.2f}% > 2%)", 15, "📈")
    if chg > 0:
        return Reason(ReasonKind.MOMENTUM, f"Slight gain (+{chg:.2f}%)", 5, "↗")
    return None


def reversal_reason(s: Snapshot) -> Reason | None:
    if s.reversal is Reversal.UPSIDE:
        return Reason(ReasonKind.REVERSAL, "Upside reversal on the last three closes", 30, "🔄")
    return None


def volume_reason(s: Snapshot) -> Reason | None:
    ratio = s.volume_ratio
    if ratio is None:
        return None
    if ratio > 1.5:
        return Reason(ReasonKind.VOLUME, f"Heavy volume ({ratio:.2f}x average)", 25, "🔊")
    if ratio > 1.2:
        return Reason(ReasonKind.VOLUME, f"Above-average volume ({ratio:.2f}x average)", 12, "🔉")
    return None


def valuation_reason(s: Snapshot) -> Reason | None:
    if not s.pe_reliable:
        return None
    if s.pe < 20:
        return Reason(ReasonKind.VALUATION, f"Low P/E ({s.pe:.1f} < 20)", 15, "💰")
    if s.pe < 35:
        return Reason(ReasonKind.VALUATION, f"Moderate P/E ({s.pe:.1f} < 35)", 8, "💵")
    if s.pe > 50:
        return Reason(ReasonKind.VALUATION, f"Very high P/E ({s.pe:.1f} > 50)", -15, "⚠")
    return None


def trend_reason(s: Snapshot) -> Reason | None:
    if s.trend is Trend.BULLISH:
        return Reason(ReasonKind.TREND, "Bullish short-term trend", 20, "📈")
    if s.trend is Trend.BEARISH:
        return Reason(ReasonKind.TREND, "Bearish short-term trend", -20, "📉")
    return None


# evaluation order is the order reasons are reported in
SIGNALS = (
    rsi_reason,
    momentum_reason,
    reversal_reason,
    volume_reason,
    valuation_reason,
    trend_reason,
)


def collect_reasons(s: Snapshot) -> tuple[Reason, ...]:
    out: list[Reason] = []
    for signal in SIGNALS:
        reason = signal(s)
        if reason is not None:
            out.append(reason)
    return tuple(out)


def tier_for(score: int) -> tuple[RecommendationTier, str, str, str, str]:
    for floor, tier, label, action, urgency, probability in TIER_LADDER:
        if score >= floor:
            return tier, label, action, urgency, probability
    _, tier, label, action, urgency, probability = TIER_LADDER[-1]
    return tier, label, action, urgency, probability


def trade_plan(entry: float, policy: TradePlanPolicy | None = None) -> TradePlan:
    p = policy or TradePlanPolicy()
    return TradePlan(
        entry=round(entry, 2),
        target1=round(entry * p.target1_ratio, 2),
        target2=round(entry * p.target2_ratio, 2),
        stop_loss=round(entry * p.stop_loss_ratio, 2),
    )


def score_snapshot(
    snapshot: Snapshot | AnalysisFailure,
    policy: TradePlanPolicy | None = None,
) -> ScoreResult | AnalysisFailure:
    """Score one snapshot on the fixed six-signal point table.

    Every signal group is evaluated; the raw sum may go negative or past
    ``MAX_SCORE`` and is clamped afterwards. A failed snapshot is passed
    through untouched.
    """
    if isinstance(snapshot, AnalysisFailure):
        return snapshot

    reasons = collect_reasons(snapshot)
    score = _clamp(sum(r.points for r in reasons))
    tier, label, action, urgency, probability = tier_for(score)

    return ScoreResult(
        symbol=snapshot.symbol,
        score=score,
        reasons=reasons,
        tier=tier,
        label=label,
        action=action,
        urgency=urgency,
        probability=probability,
        confidence=round(score / MAX_SCORE * 100, 1),
        plan=trade_plan(snapshot.price, policy),
        snapshot=snapshot,
        max_score=MAX_SCORE,
    )
