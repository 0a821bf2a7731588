"""
RecordDecoder -- Per-record state machine over the token stream

One call to decode() consumes exactly one record's worth of tokens:

    id -> encoding -> author -> subject -> body -> parents -> timestamp
       -> [sign marker, dual-branch walks only] -> terminator

and reports one of four outcomes:
- RECORD:  a fully decoded RevisionRecord
- RESYNC:  the id position held git's "Final output" marker instead of an id
- DROPPED: the record was malformed and skipped up to its terminator
- END:     no more data

Recovery rules:
- Bad parent list, id or timestamp: drop the record, skip to its terminator,
  keep walking
- Bad sign marker or terminator byte: keep the record, report an anomaly
- Stream ends mid-record: drop the partial record, stop
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .anomalies import Anomaly, AnomalyKind
from .records import (
    RevisionRecord, TIMESTAMP_DIGITS, LEGACY_TIMESTAMP_OFFSET_MS, SIGN_MARKERS,
    ID_LENGTH, is_revision_id, split_parent_ids, seconds_to_millis,
)
from .tokenizer import Tokenizer, FIELD_SEPARATOR, RECORD_TERMINATOR, resolve_encoding


# Second character of git's "Final output: ..." line (--early-output)
FINAL_OUTPUT_MARKER = "i"


def is_resync_marker(token: str) -> bool:
    """True when an id-position token is git's final-output marker."""
    return len(token) > 1 and token[1] == FINAL_OUTPUT_MARKER


def marker_resume_id(token: str) -> Optional[str]:
    """
    Id of the record that follows a final-output marker.

    The marker line and the next id arrive in the same token; the id is the
    trailing 40 characters. A shorter token means no records follow.
    """
    if len(token) < ID_LENGTH:
        return None
    return token[-ID_LENGTH:]


class DecoderState(Enum):
    """Field the decoder expects next."""
    EXPECT_ID = "id"
    EXPECT_ENCODING = "encoding"
    EXPECT_AUTHOR = "author"
    EXPECT_SUBJECT = "subject"
    EXPECT_BODY = "body"
    EXPECT_PARENTS = "parents"
    EXPECT_TIMESTAMP = "timestamp"
    EXPECT_SIGN_MARKER = "sign"
    EXPECT_TERMINATOR = "terminator"
    DONE = "done"


class DecodeStatus(Enum):
    RECORD = "record"
    RESYNC = "resync"
    DROPPED = "dropped"
    END = "end"


@dataclass
class DecodeResult:
    """
    Outcome of one decode() call.

    Attributes:
        status: What happened
        record: The decoded record (RECORD only)
        marker: The raw marker token (RESYNC only)
        anomalies: Problems seen while decoding this record
        end_of_stream: True when the stream ran out while finishing this
            record; the walk must stop after handling it
    """
    status: DecodeStatus
    record: Optional[RevisionRecord] = None
    marker: Optional[str] = None
    anomalies: List[Anomaly] = field(default_factory=list)
    end_of_stream: bool = False


class RecordDecoder:
    """
    Decodes records one at a time from a Tokenizer.

    Not thread-safe; one decoder per walk.
    """

    def __init__(self, tokenizer: Tokenizer, dual_branch: bool = False,
                 timestamp_offset_ms: int = LEGACY_TIMESTAMP_OFFSET_MS):
        self.tokenizer = tokenizer
        self.dual_branch = dual_branch
        self.timestamp_offset_ms = timestamp_offset_ms
        self.state = DecoderState.EXPECT_ID
        self.ordinal = 0  # Records started so far (markers excluded)

    def decode(self, resume_id: Optional[str] = None) -> DecodeResult:
        """
        Decode the next record.

        Args:
            resume_id: Id recovered from a final-output marker. When given,
                the id token is not read from the stream.
        """
        if resume_id is None:
            self.state = DecoderState.EXPECT_ID
            token = self.tokenizer.next_token(FIELD_SEPARATOR)
            if token is None:
                self.state = DecoderState.DONE
                return DecodeResult(DecodeStatus.END, end_of_stream=True)
            if is_resync_marker(token):
                return DecodeResult(DecodeStatus.RESYNC, marker=token)
            record_id = token
        else:
            record_id = resume_id

        ordinal = self.ordinal
        self.ordinal += 1
        anomalies: List[Anomaly] = []

        if not is_revision_id(record_id):
            return self._drop(
                AnomalyKind.MALFORMED_ID,
                f"invalid revision id: {record_id[:60]!r}",
                None, ordinal, anomalies,
            )

        # Encoding applies to author, subject and body of this record only
        self.state = DecoderState.EXPECT_ENCODING
        encoding_name = self.tokenizer.next_token()
        if encoding_name is None:
            return self._truncated(record_id, ordinal, anomalies)
        try:
            encoding = resolve_encoding(encoding_name or self.tokenizer.default_encoding)
        except LookupError:
            anomalies.append(Anomaly(
                AnomalyKind.UNKNOWN_ENCODING,
                f"unknown encoding {encoding_name!r}, using {self.tokenizer.default_encoding}",
                record_id, ordinal,
            ))
            encoding = resolve_encoding(self.tokenizer.default_encoding)

        texts = []
        for state in (DecoderState.EXPECT_AUTHOR, DecoderState.EXPECT_SUBJECT,
                      DecoderState.EXPECT_BODY):
            self.state = state
            text = self.tokenizer.next_token(FIELD_SEPARATOR, encoding)
            if text is None:
                return self._truncated(record_id, ordinal, anomalies)
            texts.append(text)
        author, subject, body = texts

        # Ids are ASCII hex, independent of the commit encoding
        self.state = DecoderState.EXPECT_PARENTS
        parent_token = self.tokenizer.next_token()
        if parent_token is None:
            return self._truncated(record_id, ordinal, anomalies)
        parents = split_parent_ids(parent_token)
        if parents is None:
            return self._drop(
                AnomalyKind.MALFORMED_PARENTS,
                f"invalid parents: {len(parent_token)}",
                record_id, ordinal, anomalies,
            )

        self.state = DecoderState.EXPECT_TIMESTAMP
        seconds = self.tokenizer.read_fixed_digits(TIMESTAMP_DIGITS)
        if seconds is None:
            if self.tokenizer.at_end:
                return self._truncated(record_id, ordinal, anomalies)
            return self._drop(
                AnomalyKind.MALFORMED_TIMESTAMP,
                "timestamp field has no digits",
                record_id, ordinal, anomalies,
            )

        sign = None
        if self.dual_branch:
            self.state = DecoderState.EXPECT_SIGN_MARKER
            separator = self.tokenizer.read_byte()
            char = self.tokenizer.read_char() if separator is not None else None
            if char is None:
                return self._truncated(record_id, ordinal, anomalies)
            if char in SIGN_MARKERS:
                sign = char
            else:
                anomalies.append(Anomaly(
                    AnomalyKind.INVALID_SIGN_MARKER,
                    f"sign not correct: {char!r}",
                    record_id, ordinal,
                ))

        record = RevisionRecord(
            id=record_id,
            parent_ids=parents,
            author_name=author,
            subject=subject,
            body=body,
            timestamp_millis=seconds_to_millis(seconds, self.timestamp_offset_ms),
            sign_marker=sign,
            encoding=encoding,
        )

        self.state = DecoderState.EXPECT_TERMINATOR
        terminator = self.tokenizer.read_byte()
        self.state = DecoderState.DONE
        if terminator is None:
            return DecodeResult(DecodeStatus.RECORD, record=record,
                                anomalies=anomalies, end_of_stream=True)
        if terminator != RECORD_TERMINATOR:
            anomalies.append(Anomaly(
                AnomalyKind.UNEXPECTED_TERMINATOR,
                f"expected record terminator, got byte 0x{terminator:02x}",
                record_id, ordinal,
            ))
        return DecodeResult(DecodeStatus.RECORD, record=record, anomalies=anomalies)

    def _drop(self, kind: AnomalyKind, message: str, record_id: Optional[str],
              ordinal: int, anomalies: List[Anomaly]) -> DecodeResult:
        """Discard the in-progress record and realign on the next one."""
        anomalies.append(Anomaly(kind, message, record_id, ordinal))
        found_terminator = self.tokenizer.skip_record(RECORD_TERMINATOR)
        self.state = DecoderState.EXPECT_ID
        return DecodeResult(DecodeStatus.DROPPED, anomalies=anomalies,
                            end_of_stream=not found_terminator)

    def _truncated(self, record_id: str, ordinal: int,
                   anomalies: List[Anomaly]) -> DecodeResult:
        anomalies.append(Anomaly(
            AnomalyKind.TRUNCATED_RECORD,
            f"stream ended while reading {self.state.value}",
            record_id, ordinal,
        ))
        self.state = DecoderState.DONE
        return DecodeResult(DecodeStatus.DROPPED, anomalies=anomalies, end_of_stream=True)
