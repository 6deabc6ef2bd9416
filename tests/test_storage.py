"""Tests for the record codec and data file."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest

from meetbook.errors import DataFormatError
from meetbook.models import Contact, FutureMeeting, PastMeeting
from meetbook.storage import DataFile, RecordCodec
from meetbook.storage.codec import format_date, parse_date

WHEN = datetime(2013, 9, 1, 14, 30, 0)


@pytest.fixture
def codec() -> RecordCodec:
    return RecordCodec()


@pytest.fixture
def alice() -> Contact:
    return Contact(1, "Alice", "met at PyCon")


@pytest.fixture
def bob() -> Contact:
    return Contact(2, "Bob", "")


class TestDates:
    def test_format(self):
        assert format_date(WHEN) == "2013/09/01 14:30:00"

    def test_parse(self):
        assert parse_date("2013/09/01 14:30:00") == WHEN

    def test_parse_bad(self):
        with pytest.raises(DataFormatError):
            parse_date("01-09-2013")


class TestEncode:
    def test_contact_row(self, codec: RecordCodec, alice: Contact):
        assert codec.encode_contact(alice) == ["CONTACT", "1", "Alice", "met at PyCon"]

    def test_past_meeting_row(self, codec: RecordCodec, alice: Contact, bob: Contact):
        m = PastMeeting(5, WHEN, frozenset({bob, alice}), "agreed")
        assert codec.encode_meeting(m) == [
            "PASTMEETING", "5", "2013/09/01 14:30:00", "agreed", "1±2",
        ]

    def test_future_meeting_row(self, codec: RecordCodec, bob: Contact):
        m = FutureMeeting(6, WHEN, frozenset({bob}))
        assert codec.encode_meeting(m) == ["FUTUREMEETING", "6", "2013/09/01 14:30:00", "2"]

    def test_contacts_before_meetings(self, codec: RecordCodec, alice: Contact):
        rows = codec.encode([alice], [FutureMeeting(1, WHEN, frozenset({alice}))])
        assert [r[0] for r in rows] == ["CONTACT", "FUTUREMEETING"]

    def test_custom_attendee_delimiter(self, alice: Contact, bob: Contact):
        codec = RecordCodec(delimiter="|", attendee_delimiter=",")
        m = FutureMeeting(1, WHEN, frozenset({alice, bob}))
        assert codec.encode_meeting(m)[-1] == "1,2"


class TestDecode:
    def test_meetings_resolve_to_loaded_contacts(self, codec: RecordCodec):
        rows = [
            ["FUTUREMEETING", "3", "2013/09/01 14:30:00", "1±2"],
            ["CONTACT", "1", "Alice", ""],
            ["CONTACT", "2", "Bob", "x"],
        ]
        snapshot = codec.decode(rows)
        meeting = snapshot.meetings[3]
        assert isinstance(meeting, FutureMeeting)
        for attendee in meeting.attendees:
            assert attendee is snapshot.contacts[attendee.id]

    def test_past_meeting(self, codec: RecordCodec):
        rows = [
            ["CONTACT", "1", "Alice", ""],
            ["PASTMEETING", "4", "2013/09/01 14:30:00", "lunch", "1"],
        ]
        meeting = codec.decode(rows).meetings[4]
        assert isinstance(meeting, PastMeeting)
        assert meeting.notes == "lunch"
        assert meeting.date == WHEN

    def test_short_rows_skipped(self, codec: RecordCodec):
        rows = [
            ["CONTACT", "1", "Alice"],
            ["PASTMEETING", "4", "2013/09/01 14:30:00", "1"],
            ["FUTUREMEETING", "5"],
            [],
        ]
        snapshot = codec.decode(rows)
        assert snapshot.contacts == {}
        assert snapshot.meetings == {}

    def test_bad_values_skipped(self, codec: RecordCodec, caplog):
        rows = [
            ["CONTACT", "one", "Alice", ""],
            ["CONTACT", "2", "Bob", ""],
            ["FUTUREMEETING", "3", "not a date", "2"],
            ["WHATEVER", "1", "2", "3"],
            ["FUTUREMEETING", "4", "2013/09/01 14:30:00", "2"],
        ]
        with caplog.at_level(logging.WARNING, logger="meetbook.storage.codec"):
            snapshot = codec.decode(rows)
        assert list(snapshot.contacts) == [2]
        assert list(snapshot.meetings) == [4]
        assert "Line 1" in caplog.text
        assert "Line 3" in caplog.text

    def test_unknown_attendee_skips_meeting(self, codec: RecordCodec):
        rows = [
            ["CONTACT", "1", "Alice", ""],
            ["FUTUREMEETING", "2", "2013/09/01 14:30:00", "1±9"],
            ["PASTMEETING", "3", "2013/09/01 14:30:00", "", ""],
        ]
        snapshot = codec.decode(rows)
        assert snapshot.meetings == {}
        assert list(snapshot.contacts) == [1]


class TestDataFile:
    def test_write_then_read(self, tmp_path: Path, alice: Contact, bob: Contact):
        alice.add_notes("likes & dislikes")
        meetings = [
            PastMeeting(1, WHEN, frozenset({alice, bob}), 'said "hi"\nthen left'),
            FutureMeeting(2, WHEN, frozenset({bob})),
        ]
        data_file = DataFile(tmp_path / "contacts.txt")
        assert data_file.write([alice, bob], meetings) is True

        snapshot = data_file.read()
        assert snapshot.contacts[1].notes == "met at PyCon\nlikes & dislikes"
        assert snapshot.contacts[2].notes == ""
        assert list(snapshot.meetings.values()) == meetings

    def test_plain_text_format(self, tmp_path: Path, alice: Contact):
        path = tmp_path / "contacts.txt"
        DataFile(path).write([alice], [FutureMeeting(9, WHEN, frozenset({alice}))])
        assert path.read_text(encoding="utf-8").splitlines() == [
            "CONTACT&1&Alice&met at PyCon",
            "FUTUREMEETING&9&2013/09/01 14:30:00&1",
        ]

    def test_reads_hand_written_file(self, tmp_path: Path):
        path = tmp_path / "contacts.txt"
        path.write_text(
            "CONTACT&1&Alice&\n"
            "garbage\n"
            "PASTMEETING&2&2013/09/01 14:30:00&notes&1\n",
            encoding="utf-8",
        )
        snapshot = DataFile(path).read()
        assert snapshot.contacts[1].name == "Alice"
        assert snapshot.meetings[2].notes == "notes"

    def test_read_missing(self, tmp_path: Path):
        assert DataFile(tmp_path / "nope.txt").read() is None

    def test_creates_parent_dir(self, tmp_path: Path, alice: Contact):
        path = tmp_path / "nested" / "dir" / "contacts.txt"
        assert DataFile(path).write([alice], []) is True
        assert path.exists()
        assert not path.with_suffix(".txt.tmp").exists()

    def test_failed_write_keeps_previous(self, tmp_path: Path, alice: Contact, monkeypatch):
        path = tmp_path / "contacts.txt"
        data_file = DataFile(path)
        data_file.write([alice], [])
        before = path.read_text(encoding="utf-8")

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("meetbook.storage.datafile.os.replace", boom)
        assert data_file.write([alice, Contact(2, "Bob")], []) is False
        assert path.read_text(encoding="utf-8") == before
        assert not path.with_suffix(".txt.tmp").exists()

    def test_oversized_field_round_trips(self, tmp_path: Path, alice: Contact):
        big = Contact(2, "Bob", "x" * 200_000)
        data_file = DataFile(tmp_path / "contacts.txt")
        assert data_file.write([alice, big], []) is True

        snapshot = data_file.read()
        assert snapshot.contacts[2].notes == "x" * 200_000
        assert snapshot.contacts[1].name == "Alice"

    def test_invalid_utf8_is_a_format_error(self, tmp_path: Path):
        path = tmp_path / "contacts.txt"
        path.write_bytes(b"CONTACT&1&Al\xffice&\n")
        with pytest.raises(DataFormatError):
            DataFile(path).read()

    def test_stray_quote_skips_only_its_row(self, tmp_path: Path, caplog):
        path = tmp_path / "contacts.txt"
        path.write_text(
            'CONTACT&1&Alice&"hi" there\n'
            "CONTACT&2&Bob&\n"
            "FUTUREMEETING&3&2013/09/01 14:30:00&2\n",
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING, logger="meetbook.storage.datafile"):
            snapshot = DataFile(path).read()
        assert list(snapshot.contacts) == [2]
        assert list(snapshot.meetings) == [3]
        assert "line 1" in caplog.text

    def test_unterminated_quote_is_logged(self, tmp_path: Path, caplog):
        path = tmp_path / "contacts.txt"
        path.write_text(
            "CONTACT&1&Alice&\n"
            'CONTACT&2&Bob&"never closed\n'
            "CONTACT&3&Carol&\n",
            encoding="utf-8",
        )
        with caplog.at_level(logging.WARNING, logger="meetbook.storage.datafile"):
            snapshot = DataFile(path).read()
        assert list(snapshot.contacts) == [1]
        assert "unexpected end of data" in caplog.text
