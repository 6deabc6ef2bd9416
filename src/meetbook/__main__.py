"""Entry point: python -m meetbook [menu]

- No args / "menu": Interactive contact manager menu
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from meetbook.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _run_menu(config_path: Path | None = None) -> None:
    """Interactive menu mode."""
    config = load_config(config_path)
    _setup_logging(config.log_level)

    from meetbook.connectors.cli import CLIConnector
    from meetbook.manager import ContactManager

    manager = ContactManager.from_config(config)
    CLIConnector(manager).run()


def main() -> None:
    cmd = sys.argv[1] if len(sys.argv) > 1 else "menu"
    config_path = Path(sys.argv[2]) if len(sys.argv) > 2 else None

    if cmd in ("menu", "repl"):
        _run_menu(config_path)
    else:
        print("Usage: python -m meetbook [menu [CONFIG.toml]]")
        print("  menu    Interactive contact manager (default)")
        sys.exit(1)


if __name__ == "__main__":
    main()
