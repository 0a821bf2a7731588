"""
Anomalies -- Recoverable irregularities found while decoding a walk

The walk prefers partial history over a hard failure. Instead of swallowing
problems, every irregularity becomes an Anomaly in the WalkResult so the
caller decides how strict to be.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class AnomalyKind(Enum):
    """What went wrong, and what the walk did about it."""
    MALFORMED_PARENTS = "malformed_parents"          # record dropped
    MALFORMED_ID = "malformed_id"                    # record dropped
    MALFORMED_TIMESTAMP = "malformed_timestamp"      # record dropped
    UNEXPECTED_TERMINATOR = "unexpected_terminator"  # record kept
    INVALID_SIGN_MARKER = "invalid_sign_marker"      # record kept
    UNKNOWN_ENCODING = "unknown_encoding"            # record kept, default encoding
    TRUNCATED_RECORD = "truncated_record"            # partial record dropped, walk ends
    SUBPROCESS_FAILURE = "subprocess_failure"        # git exited non-zero
    UNHANDLED_FAILURE = "unhandled_failure"          # walk aborted

    @property
    def drops_record(self) -> bool:
        return self in (
            AnomalyKind.MALFORMED_PARENTS,
            AnomalyKind.MALFORMED_ID,
            AnomalyKind.MALFORMED_TIMESTAMP,
            AnomalyKind.TRUNCATED_RECORD,
        )


@dataclass(frozen=True)
class Anomaly:
    """
    One recoverable problem.

    Attributes:
        kind: Classification
        message: Human-readable detail
        record_id: Id of the affected record, when it was read
        ordinal: Position of the affected record in the stream (0-based)
    """
    kind: AnomalyKind
    message: str
    record_id: Optional[str] = None
    ordinal: Optional[int] = None

    def __str__(self) -> str:
        where = f" at record {self.ordinal}" if self.ordinal is not None else ""
        return f"{self.kind.value}{where}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "record_id": self.record_id,
            "ordinal": self.ordinal,
        }
