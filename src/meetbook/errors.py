"""Error types raised by the contact manager."""

from __future__ import annotations


class ContactManagerError(Exception):
    """Base class for all meetbook errors."""


class InvalidArgumentError(ContactManagerError, ValueError):
    """A referenced id is unknown, a date is on the wrong side of now,
    or an attendee set is empty."""


class InvalidStateError(ContactManagerError, RuntimeError):
    """The target meeting is not in a state that allows the operation."""


class NullReferenceError(InvalidArgumentError, TypeError):
    """A required argument was not supplied (``None``)."""


class DataFormatError(ContactManagerError, ValueError):
    """A persisted record could not be decoded."""
