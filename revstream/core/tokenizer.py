"""
Tokenizer -- Delimiter-terminated tokens over a raw byte stream

`git log -z` output is a flat byte stream:
- Fields are separated by 0x01
- Records are separated by 0x00
- The timestamp field is a run of decimal digits

Text fields are decoded with the encoding git reports per commit, so the
tokenizer works on bytes and only decodes on request.

Key distinction: None means "no more data", "" is a valid empty token
(an empty commit body, a root commit's parent list).
"""

import codecs
from typing import Optional

from .source import ByteSource


# Wire format constants
FIELD_SEPARATOR = 0x01
RECORD_TERMINATOR = 0x00

DEFAULT_ENCODING = "UTF-8"

_DIGITS = frozenset(b"0123456789")


def resolve_encoding(encoding: Optional[str]) -> str:
    """
    Normalize an encoding name, falling back to the default when empty.

    Raises:
        LookupError: If Python has no codec for the name
    """
    if not encoding:
        return DEFAULT_ENCODING
    return codecs.lookup(encoding.strip()).name


class Tokenizer:
    """Pulls tokens, digit runs and single bytes from a ByteSource."""

    def __init__(self, source: ByteSource, default_encoding: str = DEFAULT_ENCODING):
        self.source = source
        self.default_encoding = default_encoding or DEFAULT_ENCODING

    def next_raw(self, delimiter: int = FIELD_SEPARATOR) -> Optional[bytes]:
        """Read bytes up to the delimiter (consumed, not returned)."""
        return self.source.read_until(delimiter)

    def next_token(self, delimiter: int = FIELD_SEPARATOR,
                   encoding: Optional[str] = None) -> Optional[str]:
        """
        Read one delimiter-terminated token and decode it.

        Args:
            delimiter: Terminating byte value
            encoding: Codec name; empty or None uses the default encoding

        Returns:
            Decoded token, or None at end-of-stream

        Raises:
            LookupError: If the encoding is unknown. The token bytes are
                consumed before the lookup, so the stream stays aligned.
        """
        raw = self.next_raw(delimiter)
        if raw is None:
            return None
        codec = resolve_encoding(encoding or self.default_encoding)
        return raw.decode(codec, errors="replace")

    def read_fixed_digits(self, n: int) -> Optional[int]:
        """
        Read up to n decimal digit bytes and parse them as an integer.

        Stops early at end-of-stream or at the first non-digit byte (which is
        left unconsumed). Stopping at a non-digit is intentional: a timestamp
        shorter than 10 digits cannot swallow the separator after it, so the
        record stays aligned. Returns None when no digit could be read.
        """
        digits = bytearray()
        while len(digits) < n:
            value = self.source.peek()
            if value is None or value not in _DIGITS:
                break
            digits.append(self.source.read_one())

        if not digits:
            return None
        return int(digits.decode("ascii"))

    def read_byte(self) -> Optional[int]:
        """Consume a single raw byte (None at end-of-stream)."""
        return self.source.read_one()

    def read_char(self) -> Optional[str]:
        """Consume a single byte and return it as a one-character string."""
        value = self.source.read_one()
        if value is None:
            return None
        return chr(value)

    def skip_record(self, terminator: int = RECORD_TERMINATOR) -> bool:
        """
        Discard everything up to and including the next record terminator.

        Returns:
            False if the stream ended before a terminator was found
        """
        while True:
            value = self.source.read_one()
            if value is None:
                return False
            if value == terminator:
                return True

    @property
    def at_end(self) -> bool:
        return self.source.peek() is None
