# === FILE: seo_scout/logger.py ===
"""Logging setup for **SEOScout**.

Every module logs through the ``SEOScout`` logger (or a child obtained from
:func:`get_logger`). Console records go to *stderr*: stdout belongs to the
command output (the JSON report of ``seo-scout audit`` and the raw event
stream of ``audit --events``), so logs must never end up there.

An optional rotating file receives the same records. :func:`configure` swaps
the handlers at runtime; the CLI calls it once ``--log-level``,
``--log-file`` and ``--log-format`` are parsed.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOGGER_NAME: Final[str] = "SEOScout"

_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


class ConsoleHandler(logging.StreamHandler):
    """StreamHandler bound to whatever ``sys.stderr`` is at emit time.

    click's CliRunner and pytest swap ``sys.stderr`` while they run; looking
    it up lazily keeps records out of streams that are already closed.
    """

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        super().__init__(stream)
        self._fixed = stream is not None

    @property
    def stream(self) -> TextIO:  # type: ignore[override]
        return self._stream if self._fixed else sys.stderr

    @stream.setter
    def stream(self, value: TextIO) -> None:
        self._stream = value


def _console_handler(fmt: str, stream: Optional[TextIO]) -> logging.Handler:
    handler = ConsoleHandler(stream)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the project logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Rotating logfile in addition to the console. *None* → console only.
    log_format
        Format string for :class:`logging.Formatter`.
    stream
        Console stream; *None* follows ``sys.stderr``.
    replace_handlers
        *True* closes and drops the current handlers first.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_console_handler(log_format, stream))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace all handlers; what the CLI calls on start-up."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def get_logger(suffix: str) -> logging.Logger:
    """Child of the project logger, e.g. ``SEOScout.scheduler``."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}")


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger", "ConsoleHandler", "DEFAULT_FORMAT", "LOGGER_NAME"]
