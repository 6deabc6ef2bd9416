"""Entity model: contacts and the two meeting variants.

Meetings are immutable. Whether a meeting counts as past or future is
decided by comparing its date with "now" at the moment of asking, never by
which variant stored it: ``ContactManager.add_new_past_meeting`` may record
a PastMeeting dated in the future.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime


@dataclass(eq=False)
class Contact:
    """A person the user knows. Identity is the id alone."""

    id: int
    name: str
    notes: str = ""

    def set_notes(self, notes: str) -> None:
        self.notes = notes

    def add_notes(self, note: str) -> None:
        """Append a note on a new line."""
        self.notes = f"{self.notes}\n{note}" if self.notes else note

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Contact):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class Meeting:
    """Base meeting: id, date and the attending contacts."""

    id: int
    date: datetime
    attendees: frozenset[Contact] = field(default_factory=frozenset)

    def is_future(self, now: datetime) -> bool:
        return self.date > now

    def is_past(self, now: datetime) -> bool:
        return not self.is_future(now)

    def attended_by(self, contact_id: int) -> bool:
        return any(c.id == contact_id for c in self.attendees)

    @property
    def attendee_ids(self) -> list[int]:
        return sorted(c.id for c in self.attendees)

    def __lt__(self, other: Meeting) -> bool:
        if not isinstance(other, Meeting):
            return NotImplemented
        return self.date < other.date


@dataclass(frozen=True)
class FutureMeeting(Meeting):
    """A scheduled meeting. Carries no notes."""

    def to_past(self, notes: str = "") -> PastMeeting:
        return PastMeeting(self.id, self.date, self.attendees, notes)


@dataclass(frozen=True)
class PastMeeting(Meeting):
    """A meeting that took place, with notes on what happened."""

    notes: str = ""

    def with_notes(self, notes: str) -> PastMeeting:
        return replace(self, notes=notes)

    def to_future(self) -> FutureMeeting:
        return FutureMeeting(self.id, self.date, self.attendees)
