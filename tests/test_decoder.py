"""
Tests for RecordDecoder -- one record per decode() call

These tests validate:
- Field decoding in wire order, per-record encodings
- Final-output marker detection and resume ids
- Recovery: malformed records are dropped, neighbours survive
- Dual-branch sign markers
"""

import pytest

from revstream.core.anomalies import AnomalyKind
from revstream.core.decoder import (
    RecordDecoder, DecodeStatus, DecoderState, is_resync_marker, marker_resume_id,
)
from revstream.core.source import BytesSource
from revstream.core.tokenizer import Tokenizer
from tests.factories import (
    DEFAULT_TIMESTAMP, join_records, make_id, record_bytes, with_final_output,
)


def decoder_for(data: bytes, dual_branch: bool = False, offset: int = 0) -> RecordDecoder:
    return RecordDecoder(Tokenizer(BytesSource(data)), dual_branch=dual_branch,
                         timestamp_offset_ms=offset)


def decode_all(decoder: RecordDecoder):
    """Decode until END or end_of_stream; returns the list of results."""
    results = []
    while True:
        result = decoder.decode()
        results.append(result)
        if result.status is DecodeStatus.END or result.end_of_stream:
            return results


class TestMarkers:

    def test_final_output_line_is_marker(self):
        assert is_resync_marker("Final output: 3 done\n" + make_id(1))
        assert not is_resync_marker(make_id(1))
        assert not is_resync_marker("")

    def test_resume_id_is_trailing_forty(self):
        assert marker_resume_id("Final output: 3 done\n" + make_id(7)) == make_id(7)

    def test_short_marker_has_no_resume_id(self):
        assert marker_resume_id("Final output: 0 done\n") is None


class TestDecodeRecord:

    def test_all_fields(self):
        data = record_bytes(make_id(2), parents=[make_id(1)], author="Ada",
                            subject="Add parser", body="Line one\nLine two")
        result = decoder_for(data).decode()

        assert result.status is DecodeStatus.RECORD
        record = result.record
        assert record.id == make_id(2)
        assert record.parent_ids == (make_id(1),)
        assert record.author_name == "Ada"
        assert record.subject == "Add parser"
        assert record.body == "Line one\nLine two"
        assert record.timestamp_millis == DEFAULT_TIMESTAMP * 1000
        assert record.sign_marker is None
        assert record.encoding == "utf-8"
        assert result.anomalies == []

    def test_last_record_ends_stream(self):
        result = decoder_for(record_bytes(make_id(1))).decode()
        assert result.status is DecodeStatus.RECORD
        assert result.end_of_stream

    def test_terminated_record_does_not_end_stream(self):
        data = join_records([record_bytes(make_id(2)), record_bytes(make_id(1))])
        result = decoder_for(data).decode()
        assert result.status is DecodeStatus.RECORD
        assert not result.end_of_stream

    def test_legacy_offset_applied(self):
        data = record_bytes(make_id(1), timestamp=1609459200)
        record = decoder_for(data, offset=300_000).decode().record
        assert record.timestamp_millis == 1609459500000

    def test_merge_parents(self):
        parents = [make_id(n) for n in (1, 2, 3)]
        record = decoder_for(record_bytes(make_id(9), parents=parents)).decode().record
        assert record.parent_ids == tuple(parents)

    def test_declared_encoding_applies_to_text(self):
        data = record_bytes(make_id(1), author="Zoë", subject="Café",
                            encoding="ISO-8859-1", text_encoding="latin-1")
        record = decoder_for(data).decode().record
        assert record.author_name == "Zoë"
        assert record.subject == "Café"
        assert record.encoding == "iso8859-1"

    def test_encoding_does_not_leak_to_next_record(self):
        data = join_records([
            record_bytes(make_id(2), author="Zoë", encoding="ISO-8859-1", text_encoding="latin-1"),
            record_bytes(make_id(1), author="Zoë"),
        ])
        decoder = decoder_for(data)
        assert decoder.decode().record.author_name == "Zoë"
        assert decoder.decode().record.author_name == "Zoë"

    def test_unknown_encoding_falls_back(self):
        data = record_bytes(make_id(1), author="Ada", encoding="x-unknown-enc")
        result = decoder_for(data).decode()
        assert result.status is DecodeStatus.RECORD
        assert result.record.author_name == "Ada"
        assert [a.kind for a in result.anomalies] == [AnomalyKind.UNKNOWN_ENCODING]

    def test_empty_stream_is_end(self):
        decoder = decoder_for(b"")
        result = decoder.decode()
        assert result.status is DecodeStatus.END
        assert decoder.state is DecoderState.DONE

    def test_ordinal_counts_records(self):
        data = join_records([record_bytes(make_id(n)) for n in (3, 2, 1)])
        decoder = decoder_for(data)
        decode_all(decoder)
        assert decoder.ordinal == 3


class TestResync:

    def test_marker_reported_with_token(self):
        data = with_final_output(record_bytes(make_id(5)))
        result = decoder_for(data).decode()
        assert result.status is DecodeStatus.RESYNC
        assert marker_resume_id(result.marker) == make_id(5)

    def test_resume_id_continues_record(self):
        data = with_final_output(record_bytes(make_id(5), subject="After marker"))
        decoder = decoder_for(data)
        marker = decoder.decode().marker
        result = decoder.decode(resume_id=marker_resume_id(marker))
        assert result.status is DecodeStatus.RECORD
        assert result.record.id == make_id(5)
        assert result.record.subject == "After marker"


class TestRecovery:

    def test_malformed_parents_dropped_next_record_survives(self):
        data = join_records([
            record_bytes(make_id(3), parents_token="a" * 50),
            record_bytes(make_id(2)),
        ])
        results = decode_all(decoder_for(data))

        assert results[0].status is DecodeStatus.DROPPED
        assert results[0].anomalies[0].kind is AnomalyKind.MALFORMED_PARENTS
        assert results[0].anomalies[0].record_id == make_id(3)
        assert "50" in results[0].anomalies[0].message
        assert results[1].status is DecodeStatus.RECORD
        assert results[1].record.id == make_id(2)

    def test_malformed_id_dropped(self):
        data = join_records([record_bytes("abc123"), record_bytes(make_id(1))])
        results = decode_all(decoder_for(data))
        assert results[0].status is DecodeStatus.DROPPED
        assert results[0].anomalies[0].kind is AnomalyKind.MALFORMED_ID
        assert results[1].record.id == make_id(1)

    def test_missing_timestamp_dropped(self):
        data = join_records([
            record_bytes(make_id(2), timestamp_token="never"),
            record_bytes(make_id(1)),
        ])
        results = decode_all(decoder_for(data))
        assert results[0].anomalies[0].kind is AnomalyKind.MALFORMED_TIMESTAMP
        assert results[1].record.id == make_id(1)

    def test_short_timestamp_keeps_alignment(self):
        data = join_records([
            record_bytes(make_id(2), timestamp_token="12345"),
            record_bytes(make_id(1)),
        ])
        results = decode_all(decoder_for(data))
        assert results[0].record.timestamp_millis == 12345 * 1000
        assert results[1].record.id == make_id(1)

    def test_unexpected_terminator_keeps_record(self):
        data = record_bytes(make_id(2)) + b"X" + record_bytes(make_id(1))
        result = decoder_for(data).decode()
        assert result.status is DecodeStatus.RECORD
        assert result.anomalies[0].kind is AnomalyKind.UNEXPECTED_TERMINATOR

    def test_truncated_record(self):
        data = join_records([record_bytes(make_id(2))]) + b"\x00" + make_id(1).encode() + b"\x01\x01Ada"
        results = decode_all(decoder_for(data))
        assert results[0].status is DecodeStatus.RECORD
        last = results[-1]
        assert last.status is DecodeStatus.DROPPED
        assert last.end_of_stream
        assert last.anomalies[0].kind is AnomalyKind.TRUNCATED_RECORD

    def test_drop_at_end_of_stream(self):
        data = record_bytes(make_id(1), parents_token="bad")
        result = decoder_for(data).decode()
        assert result.status is DecodeStatus.DROPPED
        assert result.end_of_stream


class TestDualBranch:

    @pytest.mark.parametrize("sign", [">", "<", "^", "-"])
    def test_valid_signs(self, sign):
        data = record_bytes(make_id(1), sign=sign)
        record = decoder_for(data, dual_branch=True).decode().record
        assert record.sign_marker == sign

    def test_invalid_sign_keeps_record(self):
        data = record_bytes(make_id(1), sign="?")
        result = decoder_for(data, dual_branch=True).decode()
        assert result.status is DecodeStatus.RECORD
        assert result.record.sign_marker is None
        assert result.anomalies[0].kind is AnomalyKind.INVALID_SIGN_MARKER

    def test_single_branch_ignores_sign_field(self):
        data = join_records([record_bytes(make_id(2)), record_bytes(make_id(1))])
        results = decode_all(decoder_for(data, dual_branch=False))
        assert [r.record.id for r in results] == [make_id(2), make_id(1)]
