from __future__ import annotations

from abc import ABC, abstractmethod

from tradescout.models import MarketHistory


class MarketDataProvider(ABC):
    @abstractmethod
    def get_history(self, symbol: str, timeout: float | None = None) -> MarketHistory:
        """Return one symbol's daily history, oldest bar first.

        Raises ``ProviderError`` (or ``SymbolNotFoundError``) when the
        upstream cannot supply it.
        """
        raise NotImplementedError
