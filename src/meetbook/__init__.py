"""meetbook: personal contact and meeting record-keeper."""

__version__ = "0.1.0"
