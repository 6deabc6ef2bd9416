"""Record codec: entities <-> delimited rows.

Row layouts (shown with the default ``&`` / ``±`` delimiters)::

    CONTACT&id&name&notes
    PASTMEETING&id&date&notes&attendeeId±attendeeId
    FUTUREMEETING&id&date&attendeeId±attendeeId
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from meetbook.errors import DataFormatError
from meetbook.models import Contact, FutureMeeting, Meeting, PastMeeting

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

CONTACT = "CONTACT"
PAST_MEETING = "PASTMEETING"
FUTURE_MEETING = "FUTUREMEETING"

# Minimum field count per record kind; shorter rows are skipped.
MIN_FIELDS = {CONTACT: 4, PAST_MEETING: 5, FUTURE_MEETING: 4}


def format_date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def parse_date(text: str) -> datetime:
    try:
        return datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError as e:
        raise DataFormatError(f"Bad date {text!r}: expected yyyy/MM/dd HH:mm:ss") from e


def _parse_id(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError as e:
        raise DataFormatError(f"Bad id {text!r}") from e


@dataclass
class Snapshot:
    """Everything a data file holds, keyed by id."""

    contacts: dict[int, Contact] = field(default_factory=dict)
    meetings: dict[int, Meeting] = field(default_factory=dict)


class RecordCodec:
    """Encode/decode contacts and meetings as rows of text fields."""

    def __init__(self, delimiter: str = "&", attendee_delimiter: str = "±") -> None:
        self.delimiter = delimiter
        self.attendee_delimiter = attendee_delimiter

    # ── Encoding ──────────────────────────────────────────────

    def encode(
        self, contacts: Iterable[Contact], meetings: Iterable[Meeting]
    ) -> list[list[str]]:
        """Contacts first, then meetings, so a reader can resolve attendees."""
        rows = [self.encode_contact(c) for c in contacts]
        rows.extend(self.encode_meeting(m) for m in meetings)
        return rows

    def encode_contact(self, contact: Contact) -> list[str]:
        return [CONTACT, str(contact.id), contact.name, contact.notes]

    def encode_meeting(self, meeting: Meeting) -> list[str]:
        attendees = self.attendee_delimiter.join(str(i) for i in meeting.attendee_ids)
        if isinstance(meeting, PastMeeting):
            return [
                PAST_MEETING,
                str(meeting.id),
                format_date(meeting.date),
                meeting.notes,
                attendees,
            ]
        return [FUTURE_MEETING, str(meeting.id), format_date(meeting.date), attendees]

    # ── Decoding ──────────────────────────────────────────────

    def decode(self, rows: Iterable[list[str]]) -> Snapshot:
        """Rebuild entities from rows in two passes: contacts, then meetings.

        Malformed rows are logged and skipped, never fatal.
        """
        snapshot = Snapshot()
        meeting_rows: list[tuple[int, list[str]]] = []

        for lineno, row in enumerate(rows, start=1):
            if not row:
                continue
            kind = row[0].strip()
            if kind not in MIN_FIELDS:
                logger.warning("Line %d: unknown record kind %r, skipped", lineno, kind)
                continue
            if len(row) < MIN_FIELDS[kind]:
                logger.warning(
                    "Line %d: %s needs %d fields, got %d, skipped",
                    lineno, kind, MIN_FIELDS[kind], len(row),
                )
                continue
            if kind == CONTACT:
                try:
                    contact = self.decode_contact(row)
                except DataFormatError as e:
                    logger.warning("Line %d: %s, skipped", lineno, e)
                    continue
                snapshot.contacts[contact.id] = contact
            else:
                meeting_rows.append((lineno, row))

        for lineno, row in meeting_rows:
            try:
                meeting = self.decode_meeting(row, snapshot.contacts)
            except DataFormatError as e:
                logger.warning("Line %d: %s, skipped", lineno, e)
                continue
            snapshot.meetings[meeting.id] = meeting

        return snapshot

    def decode_contact(self, row: list[str]) -> Contact:
        return Contact(id=_parse_id(row[1]), name=row[2], notes=row[3])

    def decode_meeting(self, row: list[str], contacts: dict[int, Contact]) -> Meeting:
        meeting_id = _parse_id(row[1])
        date = parse_date(row[2])
        if row[0].strip() == PAST_MEETING:
            notes, attendee_field = row[3], row[4]
        else:
            notes, attendee_field = None, row[3]
        attendees = self._resolve_attendees(attendee_field, contacts)
        if notes is None:
            return FutureMeeting(meeting_id, date, attendees)
        return PastMeeting(meeting_id, date, attendees, notes)

    def _resolve_attendees(
        self, text: str, contacts: dict[int, Contact]
    ) -> frozenset[Contact]:
        ids = [_parse_id(t) for t in text.split(self.attendee_delimiter) if t.strip()]
        if not ids:
            raise DataFormatError("Meeting has no attendees")
        missing = [i for i in ids if i not in contacts]
        if missing:
            raise DataFormatError(f"Unknown attendee id(s) {missing}")
        return frozenset(contacts[i] for i in ids)
