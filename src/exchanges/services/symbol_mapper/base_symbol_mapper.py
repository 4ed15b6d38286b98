"""
Base Symbol Mapper Interface

Foundation interface for exchange-specific symbol mappers. Defines the
contract for converting between unified Symbol structs and exchange pair
strings.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from exchanges.structs.common import Symbol
from infrastructure.exceptions.exchange import InvalidPairFormatError


class SymbolMapperInterface(ABC):
    """
    Abstract base class for exchange-specific symbol mappers.

    Implementations must be pure: no I/O and no shared mutable state, so one
    mapper instance can be used by any number of concurrent callers.
    """

    def __init__(
        self,
        quote_assets: Iterable[str] = (),
        known_assets: Iterable[str] = (),
        exchange: Optional[str] = None
    ):
        """
        Args:
            quote_assets: Quote assets used to split delimiter-free pairs
            known_assets: Currency codes accepted when parsing; empty accepts any
            exchange: Exchange name reported in errors
        """
        self._quote_assets: Set[str] = {asset.upper() for asset in quote_assets}
        self._known_assets: Set[str] = {asset.upper() for asset in known_assets}
        if self._known_assets:
            self._known_assets |= self._quote_assets
        self.exchange = exchange

    @abstractmethod
    def _symbol_to_string(self, symbol: Symbol) -> str:
        """Convert Symbol to exchange-specific string format."""
        pass

    @abstractmethod
    def _string_to_symbol(self, pair: str) -> Symbol:
        """
        Parse exchange-specific pair string to Symbol struct.

        Raises:
            InvalidPairFormatError: If pair format is not recognized
        """
        pass

    def to_pair(self, symbol: Symbol) -> str:
        """Convert Symbol to exchange pair string."""
        return self._symbol_to_string(symbol)

    def to_symbol(self, pair: str) -> Symbol:
        """Convert exchange pair string to Symbol."""
        return self._string_to_symbol(pair)

    def is_supported_pair(self, pair: str) -> bool:
        try:
            self.to_symbol(pair)
            return True
        except InvalidPairFormatError:
            return False

    def validate_symbol(self, symbol: Symbol) -> bool:
        """Check if both assets of symbol are known to this exchange."""
        if not self._known_assets:
            return True
        return symbol.base in self._known_assets and symbol.quote in self._known_assets

    @property
    def supported_quote_assets(self) -> Set[str]:
        return self._quote_assets.copy()

    @property
    def known_assets(self) -> Set[str]:
        return self._known_assets.copy()

    def _invalid(self, pair: str, reason: str) -> InvalidPairFormatError:
        return InvalidPairFormatError(pair, reason, self.exchange)
