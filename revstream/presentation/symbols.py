"""
Symbols -- Visual vocabulary for revision listings

Progressive enhancement: Unicode when supported, ASCII fallback.
Configurable via display.symbols setting.

Also provides safe output utilities:
- safe_print(): Encoding-safe printing for commit text
- sanitize_control_chars(): Strips terminal control characters
"""

import os
import sys
from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Safe Output Utilities (Two-Layer Defense)
# =============================================================================
# Layer 1 (Security): sanitize_control_chars() - commit messages are authored
# by anyone, so ANSI escapes must not reach the terminal
# Layer 2 (Encoding): safe_print() - handles display encoding gracefully

UNICODE_TO_ASCII = {
    '→': '->',
    '←': '<-',
    '…': '...',
    '–': '-',
    '—': '--',
    '“': '"',
    '”': '"',
    '‘': "'",
    '’': "'",
    '•': '*',
    '●': '*',
    '○': 'o',
    '◆': '*',
    '✓': 'OK',
    '✗': 'X',
}


def sanitize_control_chars(text: str) -> str:
    """
    Layer 1 (Security): Remove control characters from commit text.

    Preserves: newlines (\\n), tabs (\\t), carriage returns (\\r)
    """
    if not text:
        return text

    result = []
    for char in text:
        code = ord(char)
        if code >= 32 or code in (9, 10, 13):  # \t, \n, \r
            result.append(char)
        # Skip control chars 0x00-0x08, 0x0B-0x0C, 0x0E-0x1F

    return ''.join(result)


def safe_print(text: str, end: str = '\n', file=None) -> None:
    """
    Layer 2 (Encoding): Print with graceful encoding fallback.

    Handles UnicodeEncodeError by replacing unencodable characters
    with ASCII equivalents or '?' as last resort.
    """
    if file is None:
        file = sys.stdout

    try:
        print(text, end=end, file=file)
    except UnicodeEncodeError:
        safe_text = text
        for unicode_char, ascii_equiv in UNICODE_TO_ASCII.items():
            safe_text = safe_text.replace(unicode_char, ascii_equiv)

        try:
            print(safe_text, end=end, file=file)
        except UnicodeEncodeError:
            # Last resort: replace all unencodable chars with ?
            encoding = getattr(file, 'encoding', 'utf-8') or 'utf-8'
            encoded = safe_text.encode(encoding, errors='replace')
            print(encoded.decode(encoding), end=end, file=file)


# =============================================================================
# Display Truncation
# =============================================================================

SUBJECT_LENGTH = 72
AUTHOR_LENGTH = 20


def truncate(text: str, length: int = SUBJECT_LENGTH, full: bool = False) -> str:
    """Truncate text with '...' if needed, unless full is set."""
    if not text:
        return ""
    if full or len(text) <= length:
        return text
    if length <= 3:
        return text[:length]
    return text[:length - 3] + "..."


@dataclass(frozen=True)
class SymbolSet:
    """Symbols for record kinds, sides and status lines."""
    # Record kinds
    commit: str
    merge: str
    root: str

    # Dual-branch sides (git --left-right)
    left: str
    right: str
    boundary: str
    equivalent: str

    # Status markers
    check_pass: str
    check_warn: str
    check_fail: str
    arrow: str
    bullet: str

    # Text truncation
    ellipsis: str


UNICODE = SymbolSet(
    commit='●',
    merge='◆',
    root='○',
    left='←',
    right='→',
    boundary='^',
    equivalent='=',
    check_pass='✓',
    check_warn='!',
    check_fail='✗',
    arrow='→',
    bullet='•',
    ellipsis='…',
)

ASCII = SymbolSet(
    commit='*',
    merge='M',
    root='o',
    left='<',
    right='>',
    boundary='^',
    equivalent='=',
    check_pass='OK',
    check_warn='!',
    check_fail='X',
    arrow='->',
    bullet='*',
    ellipsis='...',
)


# git --left-right sign -> SymbolSet attribute
SIGN_TO_SYMBOL = {
    '<': 'left',
    '>': 'right',
    '^': 'boundary',
    '-': 'equivalent',
}


def supports_unicode() -> bool:
    """
    Check if environment likely supports Unicode output.

    Conservative: defaults to ASCII if uncertain.
    """
    # Explicit environment override
    if os.environ.get('REVSTREAM_ASCII_ONLY', '').lower() in ('1', 'true', 'yes'):
        return False
    if os.environ.get('REVSTREAM_UNICODE', '').lower() in ('1', 'true', 'yes'):
        return True

    stdout_encoding = getattr(sys.stdout, 'encoding', None)
    if stdout_encoding:
        encoding_lower = stdout_encoding.lower().replace('-', '').replace('_', '')
        if encoding_lower.startswith('utf'):
            return True
        # Windows code pages and single-byte encodings
        if encoding_lower.startswith('cp') or encoding_lower in ('ascii', 'latin1', 'iso88591'):
            return False

    lang = os.environ.get('LANG', '').lower()
    lc_all = os.environ.get('LC_ALL', '').lower()
    if 'utf-8' in lang or 'utf8' in lang or 'utf-8' in lc_all or 'utf8' in lc_all:
        return True

    # Default: ASCII for safety
    return False


def get_symbols(preference: Optional[str] = None) -> SymbolSet:
    """
    Get appropriate symbol set based on preference or auto-detection.

    Args:
        preference: "unicode", "ascii", or "auto" (None = auto)
    """
    if preference == 'unicode':
        return UNICODE
    if preference == 'ascii':
        return ASCII
    return UNICODE if supports_unicode() else ASCII


def symbol_for_sign(symbols: SymbolSet, sign: Optional[str]) -> str:
    """Symbol for a left/right sign marker ('' when there is none)."""
    if not sign:
        return ''
    return getattr(symbols, SIGN_TO_SYMBOL.get(sign, 'equivalent'))
