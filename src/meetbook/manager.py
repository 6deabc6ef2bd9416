"""ContactManager: the in-memory repository of contacts and meetings.

Responsibilities:
1. Own the canonical Contact objects and every Meeting, keyed by id
2. Allocate ids (contacts and meetings each draw from one counter)
3. Enforce temporal rules: past/future is decided by date vs. now at call time
4. Turn a FutureMeeting into a PastMeeting when notes are attached
5. Flush to / reload from the data file
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import TYPE_CHECKING, Callable, Iterable

from meetbook.errors import (
    ContactManagerError,
    InvalidArgumentError,
    InvalidStateError,
    NullReferenceError,
)
from meetbook.models import Contact, FutureMeeting, Meeting, PastMeeting

if TYPE_CHECKING:
    from meetbook.config import MeetbookConfig
    from meetbook.storage import DataFile

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class IdAllocator:
    """Monotonic id counter. Ids start at 1 and are never reused."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value

    def reseed(self, highest_used: int) -> None:
        """Continue after ``highest_used`` (e.g. the largest id just loaded)."""
        self._next = max(highest_used, 0) + 1

    @property
    def next_id(self) -> int:
        return self._next


def _sorted(meetings: Iterable[Meeting]) -> list[Meeting]:
    """Deduplicate by id and order chronologically."""
    unique = {m.id: m for m in meetings}
    return sorted(unique.values(), key=lambda m: (m.date, m.id))


class ContactManager:
    """Stores contacts and meetings and answers queries about them."""

    def __init__(self, store: DataFile | None = None, clock: Clock | None = None) -> None:
        self.store = store
        self._clock = clock or datetime.now
        self._contacts: dict[int, Contact] = {}
        self._meetings: dict[int, Meeting] = {}
        self._contact_ids = IdAllocator()
        self._meeting_ids = IdAllocator()  # shared by future and past meetings
        self._load_failed = False

    @classmethod
    def from_config(cls, config: MeetbookConfig, clock: Clock | None = None) -> ContactManager:
        """Build a manager backed by the configured data file and load it."""
        from meetbook.storage import DataFile, RecordCodec

        codec = RecordCodec(config.storage.delimiter, config.storage.attendee_delimiter)
        manager = cls(DataFile(config.storage.data_file, codec), clock=clock)
        manager.load()
        return manager

    def now(self) -> datetime:
        return self._clock()

    @property
    def contacts(self) -> list[Contact]:
        return [self._contacts[i] for i in sorted(self._contacts)]

    @property
    def meetings(self) -> list[Meeting]:
        return [self._meetings[i] for i in sorted(self._meetings)]

    # ── Contacts ──────────────────────────────────────────────

    def add_contact(self, name: str, notes: str) -> int:
        """Create a contact and return its id."""
        if name is None or notes is None:
            raise NullReferenceError("Contact name and notes must be supplied")
        contact_id = self._contact_ids.allocate()
        self._contacts[contact_id] = Contact(contact_id, name, notes)
        logger.info("Added contact %d: %s", contact_id, name)
        return contact_id

    def add_contact_notes(self, contact_id: int, text: str) -> None:
        """Append a line to a contact's notes."""
        contact = self._require_contact(contact_id)
        if text is None:
            raise NullReferenceError("Notes must be supplied")
        contact.add_notes(text)
        logger.debug("Appended notes to contact %d", contact_id)

    def find_contacts_by_ids(self, *ids: int) -> set[Contact]:
        """Return the contacts with the given ids. Every id must exist."""
        unknown = [i for i in ids if i not in self._contacts]
        if unknown:
            raise InvalidArgumentError(f"Unknown contact id(s): {unknown}")
        return {self._contacts[i] for i in ids}

    def find_contacts_by_name(self, substring: str) -> set[Contact]:
        """Return contacts whose name contains ``substring`` (case-sensitive)."""
        if substring is None:
            raise NullReferenceError("Search string must be supplied")
        return {c for c in self._contacts.values() if substring in c.name}

    def _require_contact(self, contact_id: int) -> Contact:
        contact = self._contacts.get(contact_id)
        if contact is None:
            raise InvalidArgumentError(f"Unknown contact id: {contact_id}")
        return contact

    def _resolve_attendees(self, attendee_ids: Iterable[int]) -> frozenset[Contact]:
        ids = set(attendee_ids)
        if not ids:
            raise InvalidArgumentError("A meeting needs at least one attendee")
        return frozenset(self.find_contacts_by_ids(*ids))

    # ── Creating meetings ─────────────────────────────────────

    def add_future_meeting(self, attendee_ids: Iterable[int], date: datetime) -> int:
        """Schedule a meeting strictly after now and return its id."""
        if attendee_ids is None or date is None:
            raise NullReferenceError("Attendees and date must be supplied")
        if date <= self.now():
            raise InvalidArgumentError(f"Meeting date {date} is not in the future")
        attendees = self._resolve_attendees(attendee_ids)

        meeting_id = self._meeting_ids.allocate()
        self._meetings[meeting_id] = FutureMeeting(meeting_id, date, attendees)
        logger.info("Scheduled meeting %d on %s", meeting_id, date)
        return meeting_id

    def add_new_past_meeting(
        self, attendee_ids: Iterable[int], date: datetime, notes: str
    ) -> int:
        """Record a meeting that took place and return its id.

        The date is not checked against now: a PastMeeting dated in the
        future is accepted, and date-based queries then treat it as future.
        """
        if attendee_ids is None or date is None or notes is None:
            raise NullReferenceError("Attendees, date and notes must be supplied")
        attendees = self._resolve_attendees(attendee_ids)

        meeting_id = self._meeting_ids.allocate()
        self._meetings[meeting_id] = PastMeeting(meeting_id, date, attendees, notes)
        if date > self.now():
            logger.warning("Past meeting %d recorded with future date %s", meeting_id, date)
        logger.info("Recorded past meeting %d on %s", meeting_id, date)
        return meeting_id

    # ── Looking up meetings ───────────────────────────────────

    def get_meeting(self, meeting_id: int) -> Meeting | None:
        return self._meetings.get(meeting_id)

    def get_future_meeting(self, meeting_id: int) -> FutureMeeting | None:
        """Return the meeting if it is still ahead of now, None if unknown.

        A PastMeeting recorded with a future date comes back as a
        FutureMeeting without its notes; use get_meeting for the record.
        """
        meeting = self._meetings.get(meeting_id)
        if meeting is None:
            return None
        if not meeting.is_future(self.now()):
            raise InvalidArgumentError(f"Meeting {meeting_id} is in the past")
        if isinstance(meeting, PastMeeting):
            return meeting.to_future()
        return meeting

    def get_past_meeting(self, meeting_id: int) -> PastMeeting | None:
        """Return the meeting if it has happened, None if unknown.

        A scheduled meeting whose date has passed comes back as a
        PastMeeting with empty notes; the stored record is not changed.
        """
        meeting = self._meetings.get(meeting_id)
        if meeting is None:
            return None
        if meeting.is_future(self.now()):
            raise InvalidArgumentError(f"Meeting {meeting_id} is in the future")
        return self._as_past(meeting)

    def get_future_meetings_for_contact(self, contact_id: int) -> list[Meeting]:
        self._require_contact(contact_id)
        now = self.now()
        return _sorted(
            m for m in self._meetings.values()
            if m.attended_by(contact_id) and m.is_future(now)
        )

    def get_past_meetings_for_contact(self, contact_id: int) -> list[PastMeeting]:
        self._require_contact(contact_id)
        now = self.now()
        return _sorted(
            self._as_past(m) for m in self._meetings.values()
            if m.attended_by(contact_id) and m.is_past(now)
        )

    def get_meetings_on_date(self, day: date) -> list[Meeting]:
        """All meetings, past or future, on the calendar day of ``day``."""
        if day is None:
            raise NullReferenceError("Date must be supplied")
        if isinstance(day, datetime):
            day = day.date()
        return _sorted(m for m in self._meetings.values() if m.date.date() == day)

    @staticmethod
    def _as_past(meeting: Meeting) -> PastMeeting:
        if isinstance(meeting, FutureMeeting):
            return meeting.to_past()
        return meeting

    # ── Notes ─────────────────────────────────────────────────

    def add_meeting_notes(self, meeting_id: int, text: str) -> None:
        """Attach notes to a meeting that has taken place.

        A FutureMeeting is replaced by a PastMeeting with the same id, date
        and attendees. An existing PastMeeting has its notes overwritten.
        """
        meeting = self._meetings.get(meeting_id)
        if meeting is None:
            raise InvalidArgumentError(f"Unknown meeting id: {meeting_id}")
        if meeting.is_future(self.now()):
            raise InvalidStateError(f"Meeting {meeting_id} has not happened yet")
        if text is None:
            raise NullReferenceError("Notes must be supplied")

        if isinstance(meeting, FutureMeeting):
            replacement = meeting.to_past(text)
            logger.info("Meeting %d converted to past meeting", meeting_id)
        else:
            replacement = meeting.with_notes(text)
        del self._meetings[meeting_id]
        self._meetings[meeting_id] = replacement

    # ── Persistence ───────────────────────────────────────────

    def save(self) -> bool:
        """Write everything to the data file. Returns False on failure.

        Refuses to write if the last load() could not read an existing file,
        so the unread records are not overwritten.
        """
        if self.store is None:
            logger.warning("No data file configured, nothing saved")
            return False
        if self._load_failed:
            logger.error("Not saving: %s failed to load and would be overwritten", self.store.path)
            return False
        return self.store.write(self.contacts, self.meetings)

    flush = save

    def load(self) -> bool:
        """Replace in-memory state with the data file's contents.

        Returns False, leaving the manager empty, if the file is missing or
        unreadable. After an unreadable file, save() is refused until a later
        load() succeeds.
        """
        self._contacts = {}
        self._meetings = {}
        self._contact_ids.reseed(0)
        self._meeting_ids.reseed(0)
        self._load_failed = False
        if self.store is None:
            return False
        try:
            snapshot = self.store.read()
        except (OSError, ContactManagerError):
            logger.exception("Failed to load %s", self.store.path)
            self._load_failed = True
            return False
        if snapshot is None:
            return False

        self._contacts = snapshot.contacts
        self._meetings = snapshot.meetings
        self._contact_ids.reseed(max(self._contacts, default=0))
        self._meeting_ids.reseed(max(self._meetings, default=0))
        return True
