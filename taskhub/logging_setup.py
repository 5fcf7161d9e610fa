# taskhub/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep console output readable:
    - taskhub.* logs pass through at the configured level
    - sqlalchemy / uvicorn access noise only from WARNING up
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("taskhub"):
            return True
        if name.startswith("sqlalchemy") or name == "uvicorn.access":
            return record.levelno >= logging.WARNING
        return True


def setup_logging(
    *,
    level: str | int = "INFO",
    log_file: str | Path | None = None,
) -> None:
    """
    Configure root logging once, early in startup.

    Console handler always; file handler only when log_file is given.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    logging.captureWarnings(True)
