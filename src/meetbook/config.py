"""Configuration loading from environment variables and meetbook.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_DATA_FILE = Path.home() / ".meetbook" / "contacts.txt"
_CONFIG_FILENAME = "meetbook.toml"


@dataclass
class StorageConfig:
    """Where and how the data file is written."""

    data_file: Path = _DEFAULT_DATA_FILE
    delimiter: str = "&"
    attendee_delimiter: str = "±"

    def __post_init__(self) -> None:
        self.data_file = Path(self.data_file).expanduser()
        for label, value in [
            ("delimiter", self.delimiter),
            ("attendee_delimiter", self.attendee_delimiter),
        ]:
            if len(value) != 1:
                raise ValueError(f"{label} must be a single character, got {value!r}")
        if self.delimiter == self.attendee_delimiter:
            raise ValueError("delimiter and attendee_delimiter must differ")


@dataclass
class MeetbookConfig:
    """Top-level meetbook configuration."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> MeetbookConfig:
    """Load configuration from environment variables and optional meetbook.toml.

    Priority: environment variables > meetbook.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    else:
        # Search current dir and ~/.meetbook/
        for candidate in [
            Path.cwd() / _CONFIG_FILENAME,
            Path.home() / ".meetbook" / _CONFIG_FILENAME,
        ]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text(encoding="utf-8"))
                break

    storage_data = file_data.get("storage", {})

    return MeetbookConfig(
        storage=StorageConfig(
            data_file=Path(
                os.getenv(
                    "MEETBOOK_DATA_FILE",
                    storage_data.get("data_file", str(_DEFAULT_DATA_FILE)),
                )
            ),
            delimiter=os.getenv("MEETBOOK_DELIMITER", storage_data.get("delimiter", "&")),
            attendee_delimiter=os.getenv(
                "MEETBOOK_ATTENDEE_DELIMITER", storage_data.get("attendee_delimiter", "±")
            ),
        ),
        log_level=os.getenv("MEETBOOK_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
