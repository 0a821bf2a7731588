"""
Records -- Revision data model

- RevisionRecord: one decoded commit, immutable
- RevisionSnapshot: ordered, read-only view of one generation

Snapshots are tuple-backed. A published snapshot never shares storage with
the publisher's working list, so consumers can hold on to it (or hand it to
another thread) while the walk keeps going.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from collections.abc import Sequence
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import orjson
import xxhash


ID_LENGTH = 40

# Parent ids are joined by a single separator character: 40 + 1 per entry
PARENT_STRIDE = ID_LENGTH + 1

SIGN_MARKERS = frozenset({">", "<", "^", "-"})

TIMESTAMP_DIGITS = 10

# LEGACY: every timestamp is shifted by +5 minutes. Carried over from the
# first deployment where commit times showed 5 minutes off the console.
# The cause was never identified; keep until the owners confirm it can go.
LEGACY_TIMESTAMP_OFFSET_MS = 5 * 60 * 1000

_HEX = frozenset("0123456789abcdefABCDEF")


def is_revision_id(value: str) -> bool:
    """True for a 40 character hexadecimal id."""
    return len(value) == ID_LENGTH and all(c in _HEX for c in value)


def split_parent_ids(token: str) -> Optional[Tuple[str, ...]]:
    """
    Split a concatenated parent token into 40 character ids.

    Returns:
        Tuple of ids (empty for an empty token), or None when the token
        length is not a whole number of separated ids
    """
    if not token:
        return ()
    if (len(token) + 1) % PARENT_STRIDE != 0:
        return None
    count = (len(token) + 1) // PARENT_STRIDE
    return tuple(
        token[i * PARENT_STRIDE:i * PARENT_STRIDE + ID_LENGTH]
        for i in range(count)
    )


def seconds_to_millis(seconds: int, offset_ms: int = LEGACY_TIMESTAMP_OFFSET_MS) -> int:
    """Convert epoch seconds to the millisecond timestamp stored on records."""
    return seconds * 1000 + offset_ms


@dataclass(frozen=True)
class RevisionRecord:
    """A single commit as decoded from the log stream."""
    id: str
    parent_ids: Tuple[str, ...] = ()
    author_name: str = ""
    subject: str = ""
    body: str = ""
    timestamp_millis: int = 0
    sign_marker: Optional[str] = None  # Only in dual-branch walks
    encoding: str = "utf-8"

    def __post_init__(self):
        if len(self.id) != ID_LENGTH:
            raise ValueError(f"revision id must be {ID_LENGTH} characters: {self.id!r}")
        if self.sign_marker is not None and self.sign_marker not in SIGN_MARKERS:
            raise ValueError(f"invalid sign marker: {self.sign_marker!r}")

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def is_merge(self) -> bool:
        return len(self.parent_ids) > 1

    @property
    def is_root(self) -> bool:
        return not self.parent_ids

    @property
    def timestamp(self) -> datetime:
        """Timestamp as an aware UTC datetime (offset included)."""
        return datetime.fromtimestamp(self.timestamp_millis / 1000, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parent_ids": list(self.parent_ids),
            "author_name": self.author_name,
            "subject": self.subject,
            "body": self.body,
            "timestamp_millis": self.timestamp_millis,
            "sign_marker": self.sign_marker,
            "encoding": self.encoding,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RevisionRecord':
        return cls(
            id=data["id"],
            parent_ids=tuple(data.get("parent_ids", ())),
            author_name=data.get("author_name", ""),
            subject=data.get("subject", ""),
            body=data.get("body", ""),
            timestamp_millis=data.get("timestamp_millis", 0),
            sign_marker=data.get("sign_marker"),
            encoding=data.get("encoding", "utf-8"),
        )


@dataclass(frozen=True)
class RevisionSnapshot(Sequence):
    """
    Immutable ordered view of the records decoded in one generation.

    Attributes:
        records: Records in the order git emitted them
        generation: 0 for the first batch, +1 after every resync marker
        final: True only for the snapshot that closes the walk
    """
    records: Tuple[RevisionRecord, ...] = field(default_factory=tuple)
    generation: int = 0
    final: bool = False

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: Union[int, slice]):
        return self.records[index]

    def __iter__(self) -> Iterator[RevisionRecord]:
        return iter(self.records)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(r.id for r in self.records)

    @property
    def fingerprint(self) -> str:
        """Order-sensitive digest of the record ids (cheap change detection)."""
        h = xxhash.xxh64()
        for record in self.records:
            h.update(record.id.encode("utf-8"))
        return h.hexdigest()

    def find(self, revision_id: str) -> Optional[RevisionRecord]:
        """Find a record by full id or unique prefix."""
        matches = [r for r in self.records if r.id.startswith(revision_id)]
        if len(matches) == 1:
            return matches[0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation": self.generation,
            "final": self.final,
            "fingerprint": self.fingerprint,
            "records": [r.to_dict() for r in self.records],
        }

    def to_json(self, indent: bool = False) -> bytes:
        option = orjson.OPT_INDENT_2 if indent else 0
        return orjson.dumps(self.to_dict(), option=option)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RevisionSnapshot':
        return cls(
            records=tuple(RevisionRecord.from_dict(r) for r in data.get("records", [])),
            generation=data.get("generation", 0),
            final=data.get("final", False),
        )

    @classmethod
    def from_json(cls, payload: Union[bytes, str]) -> 'RevisionSnapshot':
        return cls.from_dict(orjson.loads(payload))


EMPTY_SNAPSHOT = RevisionSnapshot()
