"""Persistence adapter: one delimited text file, one record per row.

Layout of the data file (default ``~/.meetbook/contacts.txt``)::

    CONTACT&1&Alice&met at PyCon
    CONTACT&2&Bob&
    PASTMEETING&1&2013/09/01 14:30:00&agreed on budget&1±2
    FUTUREMEETING&2&2030/01/15 09:00:00&2

Free text that contains the delimiter or a line break is quoted csv-style.
"""

from meetbook.storage.codec import DATE_FORMAT, RecordCodec, Snapshot
from meetbook.storage.datafile import DataFile

__all__ = ["DATE_FORMAT", "DataFile", "RecordCodec", "Snapshot"]
