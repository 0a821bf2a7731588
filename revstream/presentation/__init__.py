"""
Presentation -- Terminal vocabulary and safe output helpers
"""

from .symbols import (
    SymbolSet, UNICODE, ASCII, get_symbols, symbol_for_sign,
    safe_print, sanitize_control_chars, truncate,
)

__all__ = [
    'SymbolSet', 'UNICODE', 'ASCII', 'get_symbols', 'symbol_for_sign',
    'safe_print', 'sanitize_control_chars', 'truncate',
]
