"""
BatchPublisher -- Generations of decoded records, published as snapshots

The publisher owns the one mutable list in the system: the working batch of
the current generation. Everything it hands out is an immutable snapshot
copied from that list.

Publishing:
- publish()          checkpoint; the working batch keeps growing
- start_generation() after a resync marker; the working batch restarts empty
- publish(trim=True) final snapshot; the publisher is sealed afterwards
"""

import logging
from typing import Callable, List, Optional

from .records import RevisionRecord, RevisionSnapshot, EMPTY_SNAPSHOT


logger = logging.getLogger(__name__)

SnapshotListener = Callable[[RevisionSnapshot], None]


class BatchPublisher:
    """Accumulates records and publishes read-only snapshots."""

    def __init__(self, listener: Optional[SnapshotListener] = None):
        """
        Args:
            listener: Called with every published snapshot, in order
        """
        self._listener = listener
        self._working: List[RevisionRecord] = []
        self._latest: RevisionSnapshot = EMPTY_SNAPSHOT
        self._generation = 0
        self._sealed = False
        self.publish_count = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def latest(self) -> RevisionSnapshot:
        """Most recently published snapshot (empty before the first publish)."""
        return self._latest

    @property
    def pending(self) -> int:
        """Records in the working batch."""
        return len(self._working)

    def append(self, record: RevisionRecord) -> None:
        if self._sealed:
            raise RuntimeError("publisher is sealed; the walk already finished")
        self._working.append(record)

    def start_generation(self) -> None:
        """Begin a new, empty generation. Earlier snapshots stay untouched."""
        if self._sealed:
            raise RuntimeError("publisher is sealed; the walk already finished")
        self._working = []
        self._generation += 1

    def publish(self, trim: bool = False) -> RevisionSnapshot:
        """
        Publish the working batch as a snapshot.

        Args:
            trim: Final publish. Releases the working batch and seals the
                publisher; allowed exactly once.
        """
        if self._sealed:
            raise RuntimeError("final snapshot already published")

        snapshot = RevisionSnapshot(
            records=tuple(self._working),
            generation=self._generation,
            final=trim,
        )
        if trim:
            self._working = []
            self._sealed = True

        self._latest = snapshot
        self.publish_count += 1
        logger.debug("Published generation %d with %d records (final=%s)",
                     snapshot.generation, len(snapshot), trim)

        if self._listener is not None:
            self._listener(snapshot)
        return snapshot
