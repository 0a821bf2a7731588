"""
Tests for Records -- RevisionRecord and RevisionSnapshot

These tests validate:
- Parent token splitting (stride 41)
- Timestamp conversion with the legacy offset
- Snapshot immutability, lookup, fingerprint and JSON export
"""

import dataclasses

import pytest

from revstream.core.records import (
    RevisionRecord, RevisionSnapshot, EMPTY_SNAPSHOT,
    LEGACY_TIMESTAMP_OFFSET_MS, is_revision_id, split_parent_ids, seconds_to_millis,
)
from tests.factories import make_id


class TestParentSplitting:

    def test_empty_token_is_root(self):
        assert split_parent_ids("") == ()

    @pytest.mark.parametrize("count", [1, 2, 3, 5])
    def test_whole_number_of_ids(self, count):
        ids = [make_id(n) for n in range(1, count + 1)]
        token = " ".join(ids)
        assert len(token) == 41 * count - 1
        assert split_parent_ids(token) == tuple(ids)

    @pytest.mark.parametrize("length", [1, 39, 41, 50, 80])
    def test_rejects_other_lengths(self, length):
        assert split_parent_ids("a" * length) is None


class TestIds:

    def test_valid_id(self):
        assert is_revision_id(make_id(1))
        assert is_revision_id("ABCDEF" + "0" * 34)

    def test_invalid_ids(self):
        assert not is_revision_id("")
        assert not is_revision_id("abc")
        assert not is_revision_id("g" * 40)
        assert not is_revision_id(make_id(1) + "0")


class TestTimestamp:

    def test_legacy_offset_is_five_minutes(self):
        assert LEGACY_TIMESTAMP_OFFSET_MS == 300_000
        assert seconds_to_millis(1609459200) == 1609459500000

    def test_offset_can_be_disabled(self):
        assert seconds_to_millis(1609459200, offset_ms=0) == 1609459200000

    def test_datetime_is_utc(self):
        record = RevisionRecord(id=make_id(1), timestamp_millis=1609459200000)
        assert record.timestamp.year == 2021
        assert record.timestamp.utcoffset().total_seconds() == 0


class TestRevisionRecord:

    def test_rejects_short_id(self):
        with pytest.raises(ValueError):
            RevisionRecord(id="abc")

    def test_rejects_unknown_sign(self):
        with pytest.raises(ValueError):
            RevisionRecord(id=make_id(1), sign_marker="?")

    def test_is_frozen(self):
        record = RevisionRecord(id=make_id(1))
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.subject = "changed"

    def test_kinds(self):
        root = RevisionRecord(id=make_id(1))
        merge = RevisionRecord(id=make_id(3), parent_ids=(make_id(1), make_id(2)))
        assert root.is_root and not root.is_merge
        assert merge.is_merge and not merge.is_root
        assert merge.short_id == make_id(3)[:7]

    def test_dict_round_trip(self):
        record = RevisionRecord(
            id=make_id(2), parent_ids=(make_id(1),), author_name="Ada",
            subject="Fix", body="Details", timestamp_millis=42, sign_marker="<",
        )
        assert RevisionRecord.from_dict(record.to_dict()) == record


class TestRevisionSnapshot:

    def snapshot(self, count=3, **kwargs):
        records = tuple(RevisionRecord(id=make_id(n)) for n in range(1, count + 1))
        return RevisionSnapshot(records=records, **kwargs)

    def test_sequence_behaviour(self):
        snap = self.snapshot(3)
        assert len(snap) == 3
        assert snap[0].id == make_id(1)
        assert [r.id for r in snap] == list(snap.ids)
        assert make_id(2) in snap.ids

    def test_records_are_a_tuple(self):
        snap = self.snapshot(2)
        assert isinstance(snap.records, tuple)
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.records = ()

    def test_find_by_prefix(self):
        snap = RevisionSnapshot(records=(
            RevisionRecord(id="abc" + "0" * 37),
            RevisionRecord(id="abd" + "0" * 37),
        ))
        assert snap.find("abc").id == "abc" + "0" * 37
        assert snap.find("ab") is None  # ambiguous
        assert snap.find("fff") is None

    def test_fingerprint_is_order_sensitive(self):
        snap = self.snapshot(3)
        reversed_snap = RevisionSnapshot(records=tuple(reversed(snap.records)))
        assert snap.fingerprint == self.snapshot(3).fingerprint
        assert snap.fingerprint != reversed_snap.fingerprint

    def test_json_export(self):
        snap = self.snapshot(2, generation=1, final=True)
        restored = RevisionSnapshot.from_json(snap.to_json(indent=True))
        assert restored == snap
        assert b'"fingerprint"' in snap.to_json()

    def test_empty_snapshot(self):
        assert len(EMPTY_SNAPSHOT) == 0
        assert EMPTY_SNAPSHOT.generation == 0
        assert not EMPTY_SNAPSHOT.final
