"""Interactive text menu over a ContactManager."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Callable, TextIO

from meetbook.connectors.parsing import (
    blank_to_none,
    parse_datetime,
    parse_day,
    parse_id,
    parse_id_list,
)
from meetbook.errors import ContactManagerError
from meetbook.models import Contact, Meeting, PastMeeting
from meetbook.storage.codec import format_date

if TYPE_CHECKING:
    from meetbook.manager import ContactManager

logger = logging.getLogger(__name__)

MENU = """\
*************************
*****CONTACT MANAGER*****
*************************

CONTACTS
--------
J. Add a new contact
K. List contacts for provided IDs
L. Search for contact names
N. Add notes to a contact

MEETINGS
--------
A. Add a new meeting to be held in the future
B. Search for a past meeting using a meeting ID
C. Search for a future meeting using a meeting ID
D. Search for a meeting using a meeting ID

E. List future meetings for a given contact
F. List past and future meetings for a given date
G. List past meetings for a given contact

H. Create a record for a meeting that took place in the past
I. Add notes to a meeting

GENERAL
-------
M. Save all data to disk
Q. Quit (saves first)"""


def format_contact(contact: Contact) -> str:
    line = f"[{contact.id}] {contact.name}"
    if contact.notes:
        notes = contact.notes.replace("\n", "\n    ")
        line += f"\n    {notes}"
    return line


def format_meeting(meeting: Meeting) -> str:
    names = ", ".join(
        f"{c.name} ({c.id})" for c in sorted(meeting.attendees, key=lambda c: c.id)
    )
    line = f"Meeting {meeting.id} | {format_date(meeting.date)} | with: {names}"
    if isinstance(meeting, PastMeeting) and meeting.notes:
        line += f"\n    notes: {meeting.notes}"
    return line


class CLIConnector:
    """Lettered-menu REPL: reads from stdin, writes to stdout."""

    def __init__(
        self,
        manager: ContactManager,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        self.manager = manager
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._running = False
        self._commands: dict[str, Callable[[], None]] = {
            "a": self.add_future_meeting,
            "b": self.show_past_meeting,
            "c": self.show_future_meeting,
            "d": self.show_meeting,
            "e": self.list_future_meetings_for_contact,
            "f": self.list_meetings_on_date,
            "g": self.list_past_meetings_for_contact,
            "h": self.record_past_meeting,
            "i": self.add_meeting_notes,
            "j": self.add_contact,
            "k": self.list_contacts_by_ids,
            "l": self.search_contacts_by_name,
            "m": self.save,
            "n": self.add_contact_notes,
            "q": self.stop,
        }

    # ── I/O helpers ───────────────────────────────────────────

    def _print(self, text: str = "") -> None:
        self._stdout.write(text + "\n")
        self._stdout.flush()

    def _read_line(self) -> str:
        raw = self._stdin.readline()
        if not raw:
            raise EOFError
        return raw.rstrip("\r\n")

    def _ask(self, prompt: str) -> str | None:
        """Prompt for a line; blank input comes back as None."""
        self._stdout.write(prompt)
        self._stdout.flush()
        return blank_to_none(self._read_line())

    def _print_meetings(self, meetings: list[Meeting], empty: str) -> None:
        if not meetings:
            self._print(empty)
        for meeting in meetings:
            self._print(format_meeting(meeting))

    def _print_contacts(self, contacts: set[Contact], empty: str) -> None:
        if not contacts:
            self._print(empty)
        for contact in sorted(contacts, key=lambda c: c.id):
            self._print(format_contact(contact))

    # ── Main loop ─────────────────────────────────────────────

    def run(self) -> None:
        """Show the menu until the user quits or input ends. Always saves on the way out."""
        self._running = True
        try:
            while self._running:
                self._print()
                self._print(MENU)
                choice = (self._ask("> ") or "").strip().lower()
                command = self._commands.get(choice[:1])
                if command is None:
                    self._print("Error! Unknown selection.")
                    continue
                try:
                    command()
                except (ContactManagerError, ValueError) as e:
                    self._print(f"Error: {e}")
        except (EOFError, KeyboardInterrupt):
            logger.info("Input ended, saving before exit")
            self.manager.save()
            self._print("\nBye!")

    def stop(self) -> None:
        self.save()
        self._running = False
        self._print("Bye!")

    # ── Contact commands ──────────────────────────────────────

    def add_contact(self) -> None:
        name = self._ask("Enter name for new contact: ")
        notes = self._ask("Enter note for new contact: ")
        contact_id = self.manager.add_contact(name, notes)
        self._print(f"Contact {contact_id} added.")

    def list_contacts_by_ids(self) -> None:
        ids = parse_id_list(self._ask("Enter contact IDs: ")) or []
        self._print_contacts(self.manager.find_contacts_by_ids(*ids), "No contacts.")

    def search_contacts_by_name(self) -> None:
        text = self._ask("Enter search string for contacts: ")
        self._print_contacts(self.manager.find_contacts_by_name(text), "No matching contacts.")

    def add_contact_notes(self) -> None:
        contact_id = parse_id(self._ask("Enter contact ID: "))
        text = self._ask("Enter notes to add: ")
        self.manager.add_contact_notes(contact_id, text)
        self._print("Notes added.")

    # ── Meeting commands ──────────────────────────────────────

    def add_future_meeting(self) -> None:
        date = parse_datetime(self._ask("Enter date for future meeting (yyyy/MM/dd HH:mm:ss): "))
        ids = parse_id_list(self._ask("Enter ID of attendees: "))
        meeting_id = self.manager.add_future_meeting(ids, date)
        self._print(f"Meeting {meeting_id} scheduled.")

    def record_past_meeting(self) -> None:
        date = parse_datetime(self._ask("Enter date of past meeting (yyyy/MM/dd HH:mm:ss): "))
        ids = parse_id_list(self._ask("Enter ID of attendees for past meeting: "))
        notes = self._ask("Enter notes for past meeting: ") or ""
        meeting_id = self.manager.add_new_past_meeting(ids, date, notes)
        self._print(f"Past meeting {meeting_id} recorded.")

    def add_meeting_notes(self) -> None:
        meeting_id = parse_id(self._ask("Enter meeting ID: "))
        text = self._ask("Enter notes for meeting: ")
        self.manager.add_meeting_notes(meeting_id, text)
        self._print("Notes added.")

    def _show(self, lookup: Callable[[int], Meeting | None], prompt: str) -> None:
        meeting_id = parse_id(self._ask(prompt))
        meeting = lookup(meeting_id)
        self._print(format_meeting(meeting) if meeting else "Meeting not found.")

    def show_past_meeting(self) -> None:
        self._show(self.manager.get_past_meeting, "Enter past meeting ID: ")

    def show_future_meeting(self) -> None:
        self._show(self.manager.get_future_meeting, "Enter future meeting ID: ")

    def show_meeting(self) -> None:
        self._show(self.manager.get_meeting, "Enter meeting ID: ")

    def list_future_meetings_for_contact(self) -> None:
        contact_id = parse_id(self._ask("Enter contact ID: "))
        self._print_meetings(
            self.manager.get_future_meetings_for_contact(contact_id),
            "No future meetings scheduled with contact.",
        )

    def list_past_meetings_for_contact(self) -> None:
        contact_id = parse_id(self._ask("Enter contact ID: "))
        self._print_meetings(
            self.manager.get_past_meetings_for_contact(contact_id),
            "No past meetings occurred with contact.",
        )

    def list_meetings_on_date(self) -> None:
        day = parse_day(self._ask("Enter date to list meetings on (yyyy/MM/dd): "))
        self._print_meetings(
            self.manager.get_meetings_on_date(day), "No meetings found for provided date."
        )

    # ── General ───────────────────────────────────────────────

    def save(self) -> None:
        if self.manager.save():
            self._print("Data saved.")
        else:
            self._print("Save failed, see log.")
