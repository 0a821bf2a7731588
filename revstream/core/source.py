"""
Byte Sources -- Capability-typed input for the record decoder

The decoder never touches a subprocess directly. It pulls bytes from a
ByteSource, which can wrap:
- A live process stdout (StreamSource)
- An in-memory buffer (BytesSource), e.g. saved `git log -z` output

Read failures are absorbed here: an OSError while reading is reported as
end-of-stream, so the walk keeps whatever it decoded up to that point.
"""

import logging
from typing import BinaryIO, Optional, Protocol


logger = logging.getLogger(__name__)

# Chunk size for buffered reads from a live stream
READ_CHUNK = 64 * 1024


class ByteSource(Protocol):
    """Minimal pull interface over a byte stream."""

    def peek(self) -> Optional[int]:
        """Next byte without consuming it, or None at end-of-stream."""
        ...

    def read_one(self) -> Optional[int]:
        """Consume and return the next byte, or None at end-of-stream."""
        ...

    def read_until(self, delimiter: int) -> Optional[bytes]:
        """
        Consume bytes up to and including the delimiter.

        Returns the bytes before the delimiter. Returns None only when the
        stream was already exhausted before any byte could be read.
        """
        ...


class BytesSource:
    """ByteSource over an in-memory buffer."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._pos = 0

    @property
    def exhausted(self) -> bool:
        return self._pos >= len(self._data)

    def peek(self) -> Optional[int]:
        if self._pos >= len(self._data):
            return None
        return self._data[self._pos]

    def read_one(self) -> Optional[int]:
        if self._pos >= len(self._data):
            return None
        value = self._data[self._pos]
        self._pos += 1
        return value

    def read_until(self, delimiter: int) -> Optional[bytes]:
        if self._pos >= len(self._data):
            return None

        end = self._data.find(bytes((delimiter,)), self._pos)
        if end == -1:
            chunk = self._data[self._pos:]
            self._pos = len(self._data)
            return chunk

        chunk = self._data[self._pos:end]
        self._pos = end + 1
        return chunk


class StreamSource:
    """
    ByteSource over a binary file object (typically a process stdout).

    Reads in chunks and serves bytes from an internal buffer. The first read
    error ends the stream for good; it is logged, never raised.
    """

    def __init__(self, stream: BinaryIO, chunk_size: int = READ_CHUNK):
        self._stream = stream
        self._chunk_size = chunk_size
        self._buffer = b""
        self._pos = 0
        self._eof = False

    @property
    def exhausted(self) -> bool:
        return not self._fill()

    def _fill(self) -> bool:
        """Ensure at least one unread byte is buffered. False at end-of-stream."""
        if self._pos < len(self._buffer):
            return True
        if self._eof:
            return False

        try:
            chunk = self._read_chunk()
        except (OSError, ValueError) as e:
            # ValueError: read on a closed file
            logger.warning("Stream read failed, treating as end of stream: %s", e)
            chunk = b""

        if not chunk:
            self._eof = True
            self._buffer = b""
            self._pos = 0
            return False

        self._buffer = chunk
        self._pos = 0
        return True

    def _read_chunk(self) -> bytes:
        # read1 returns what is available instead of blocking for a full chunk,
        # so early output reaches the decoder while git is still working
        read1 = getattr(self._stream, "read1", None)
        if read1 is not None:
            return read1(self._chunk_size)
        return self._stream.read(self._chunk_size)

    def peek(self) -> Optional[int]:
        if not self._fill():
            return None
        return self._buffer[self._pos]

    def read_one(self) -> Optional[int]:
        if not self._fill():
            return None
        value = self._buffer[self._pos]
        self._pos += 1
        return value

    def read_until(self, delimiter: int) -> Optional[bytes]:
        if not self._fill():
            return None

        marker = bytes((delimiter,))
        parts = []
        while self._fill():
            end = self._buffer.find(marker, self._pos)
            if end != -1:
                parts.append(self._buffer[self._pos:end])
                self._pos = end + 1
                return b"".join(parts)
            parts.append(self._buffer[self._pos:])
            self._pos = len(self._buffer)

        return b"".join(parts)
