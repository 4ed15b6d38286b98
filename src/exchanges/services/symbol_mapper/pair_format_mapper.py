"""
Pair Format Mapper

Converts between Symbol and the textual pair forms an exchange uses.

Each exchange has two formats: the request format (used in URLs, bodies and
response keys) and the config format (used in configuration files). Both are
described by PairFormat: delimiter between currency codes, letter case,
currency order, and the separator joining several pairs in one request.

    mapper = PairFormatMapper(liqui_format, known_assets={'ETH', 'BTC'})
    mapper.to_symbol('eth_btc')            # Symbol(base='ETH', quote='BTC')
    mapper.to_pair(Symbol('ETH', 'BTC'))   # 'eth_btc'
"""

from typing import Iterable, List, Optional, Tuple

from exchanges.structs.common import ExchangePairFormat, PairFormat, Symbol
from exchanges.structs.types import AssetName
from .base_symbol_mapper import SymbolMapperInterface


class PairFormatMapper(SymbolMapperInterface):
    """
    Format-driven symbol mapper.

    Parsing is case-insensitive. A pair parses only when it splits into
    exactly two non-empty currency codes and, when known assets are given,
    both codes are known. With an empty delimiter the quote is found by
    matching the longest known quote asset at the end (or start, for
    quote-first formats) of the pair.
    """

    def __init__(
        self,
        pair_format: ExchangePairFormat,
        known_assets: Iterable[str] = (),
        quote_assets: Iterable[str] = (),
        exchange: Optional[str] = None
    ):
        super().__init__(quote_assets=quote_assets, known_assets=known_assets, exchange=exchange)
        self.pair_format = pair_format

    @classmethod
    def from_config_pairs(
        cls,
        pair_format: ExchangePairFormat,
        config_pairs: Iterable[str],
        quote_assets: Iterable[str] = (),
        exchange: Optional[str] = None
    ) -> 'PairFormatMapper':
        """
        Build a mapper whose known assets are the currencies of config_pairs.

        With no config pairs any currency code is accepted.
        """
        loose = cls(pair_format, quote_assets=quote_assets, exchange=exchange)
        known = set()
        quotes = set(quote_assets)
        for pair in config_pairs:
            symbol = loose.from_config_pair(pair)
            known.update((symbol.base, symbol.quote))
            quotes.add(symbol.quote)
        return cls(pair_format, known_assets=known, quote_assets=quotes, exchange=exchange)

    # Request format

    def _symbol_to_string(self, symbol: Symbol) -> str:
        return self._render(symbol, self.pair_format.request)

    def _string_to_symbol(self, pair: str) -> Symbol:
        return self._parse(pair, self.pair_format.request)

    def to_pair(self, symbol: Symbol, fmt: Optional[PairFormat] = None) -> str:
        """Render symbol in fmt (request format by default)."""
        if fmt is None:
            return self._symbol_to_string(symbol)
        return self._render(symbol, fmt)

    def to_symbol(self, pair: str, fmt: Optional[PairFormat] = None) -> Symbol:
        """Parse pair written in fmt (request format by default)."""
        if fmt is None:
            return self._string_to_symbol(pair)
        return self._parse(pair, fmt)

    def join_pairs(self, symbols: Iterable[Symbol]) -> str:
        """Join several pairs for a multi-pair request, e.g. 'eth_btc-ltc_btc'."""
        return self.pair_format.request.separator.join(self.to_pair(symbol) for symbol in symbols)

    # Config format

    def to_config_pair(self, symbol: Symbol) -> str:
        return self._render(symbol, self.pair_format.config)

    def from_config_pair(self, pair: str) -> Symbol:
        return self._parse(pair, self.pair_format.config)

    # Internals

    @staticmethod
    def _render(symbol: Symbol, fmt: PairFormat) -> str:
        first, second = (symbol.quote, symbol.base) if fmt.quote_first else (symbol.base, symbol.quote)
        text = f"{first}{fmt.delimiter}{second}"
        return text.upper() if fmt.uppercase else text.lower()

    def _parse(self, pair: str, fmt: PairFormat) -> Symbol:
        if not isinstance(pair, str) or not pair.strip():
            raise self._invalid(str(pair), "empty pair")

        normalized = pair.strip().upper()
        if fmt.delimiter:
            parts = normalized.split(fmt.delimiter.upper())
            if len(parts) != 2 or not all(parts):
                raise self._invalid(pair, f"expected two currency codes separated by '{fmt.delimiter}'")
            first, second = parts
        else:
            first, second = self._split_undelimited(pair, normalized, fmt.quote_first)

        base, quote = (second, first) if fmt.quote_first else (first, second)
        if base == quote:
            raise self._invalid(pair, "base and quote are the same currency")
        if self._known_assets:
            unknown = [code for code in (base, quote) if code not in self._known_assets]
            if unknown:
                raise self._invalid(pair, f"unknown currency {', '.join(unknown)}")

        return Symbol(base=AssetName(base), quote=AssetName(quote))

    def _split_undelimited(self, pair: str, normalized: str, quote_first: bool) -> Tuple[str, str]:
        candidates: List[str] = sorted(self._quote_assets, key=len, reverse=True)
        for quote in candidates:
            if quote_first and normalized.startswith(quote) and len(normalized) > len(quote):
                return quote, normalized[len(quote):]
            if not quote_first and normalized.endswith(quote) and len(normalized) > len(quote):
                return normalized[:-len(quote)], quote
        raise self._invalid(pair, "no known quote currency")
