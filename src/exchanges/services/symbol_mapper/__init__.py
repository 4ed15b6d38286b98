from .base_symbol_mapper import SymbolMapperInterface
from .pair_format_mapper import PairFormatMapper

__all__ = ['SymbolMapperInterface', 'PairFormatMapper']
