from __future__ import annotations


class ProviderError(RuntimeError):
    """Upstream market data could not be obtained for a symbol."""


class SymbolNotFoundError(ProviderError):
    pass


class InvalidInputError(ValueError):
    """Request rejected before reaching the analysis core."""
