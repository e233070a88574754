from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tradescout.errors import InvalidInputError


@dataclass(slots=True, frozen=True)
class Sector:
    key: str
    name: str
    description: str
    tickers: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class Universe:
    sectors: Mapping[str, Sector]
    scanner: tuple[str, ...] = field(default=())

    def sector(self, key: str) -> Sector:
        norm = (key or "").strip().lower()
        if norm not in self.sectors:
            raise InvalidInputError(
                f"unknown sector: {key!r} (known: {', '.join(self.keys())})"
            )
        return self.sectors[norm]

    def keys(self) -> list[str]:
        return list(self.sectors)


def build_universe(sectors: list[Sector], scanner: tuple[str, ...] | None = None) -> Universe:
    table = {s.key: s for s in sectors}
    if scanner is None:
        seen: dict[str, None] = {}
        for s in sectors:
            for t in s.tickers:
                seen.setdefault(t, None)
        scanner = tuple(seen)
    return Universe(sectors=MappingProxyType(table), scanner=scanner)


DEFAULT_SECTORS: tuple[Sector, ...] = (
    Sector(
        key="usa",
        name="USA",
        description="US large caps watched for the evening session",
        tickers=("AAPL", "MSFT", "GOOGL", "AMZN", "NVDA", "TSLA", "META", "NFLX", "AMD", "ADBE"),
    ),
    Sector(
        key="europe",
        name="Europe",
        description="European leaders with US listings watched for the morning session",
        tickers=("SAP", "ASML", "LVMUY", "SIEGY", "UL", "HSBC", "SHEL", "SNY", "DANOY", "PRYMY"),
    ),
    Sector(
        key="technology",
        name="Technology",
        description="Software, platforms and hardware",
        tickers=("AAPL", "MSFT", "GOOGL", "META", "ORCL", "CRM", "ADBE", "IBM", "INTU", "NOW"),
    ),
    Sector(
        key="semiconductors",
        name="Semiconductors",
        description="Chip designers, foundries and equipment makers",
        tickers=("NVDA", "AMD", "INTC", "AVGO", "QCOM", "TSM", "ASML", "MU", "AMAT", "LRCX"),
    ),
    Sector(
        key="finance",
        name="Finance",
        description="Banks, payments and asset managers",
        tickers=("JPM", "BAC", "WFC", "GS", "MS", "C", "V", "MA", "BLK", "AXP"),
    ),
    Sector(
        key="healthcare",
        name="Healthcare",
        description="Pharma, biotech and managed care",
        tickers=("JNJ", "UNH", "PFE", "MRK", "ABBV", "LLY", "TMO", "ABT", "BMY", "AMGN"),
    ),
    Sector(
        key="energy",
        name="Energy",
        description="Integrated oil, exploration and services",
        tickers=("XOM", "CVX", "COP", "SLB", "EOG", "OXY", "PSX", "MPC", "VLO", "HAL"),
    ),
    Sector(
        key="consumer",
        name="Consumer",
        description="Retail, staples and discretionary brands",
        tickers=("AMZN", "WMT", "COST", "HD", "NKE", "MCD", "SBUX", "PG", "KO", "PEP"),
    ),
)


def default_universe() -> Universe:
    return build_universe(list(DEFAULT_SECTORS))
