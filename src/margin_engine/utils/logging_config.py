"""Logging setup for margin-engine entrypoints.

Library modules only create `logger = logging.getLogger(__name__)`; scripts
and apps call :func:`setup_logging` once.

Console records get a `shortname` attribute (last component of the logger
name), so console formats may use `%(shortname)s`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

_LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

# Chatty dependencies pinned to WARNING unless `quiet_third_party=False`.
_THIRD_PARTY_LOGGERS = ("exchange_calendars",)


class _ShortNameFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.shortname = record.name.rsplit(".", 1)[-1]
        return True


class _ColorFormatter(logging.Formatter):
    """Colors the level name only; meant for console handlers."""

    _RESET = "\033[0m"
    _COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self._RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def coerce_level(level: int | str) -> int:
    """Accept `logging.INFO`, `"info"` or `"20"`."""
    if isinstance(level, int):
        return level
    text = str(level).strip().upper()
    if text.isdigit():
        return int(text)
    try:
        return _LEVELS[text]
    except KeyError as e:
        raise ValueError(f"Unknown logging level: {level!r}") from e


def setup_logging(
    level: int | str = "INFO",
    *,
    fmt_console: str = "%(asctime)s %(levelname)s %(name)s - %(message)s",
    fmt_file: str = "%(asctime)s %(levelname)s %(name)s - %(message)s",
    datefmt: str = "%Y-%m-%d %H:%M:%S",
    log_file: str | Path | None = None,
    module_levels: Mapping[str, int | str] | None = None,
    colored: bool = False,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger (uses `force=True`, safe to call again)."""
    console = logging.StreamHandler()
    console.addFilter(_ShortNameFilter())
    formatter_cls = _ColorFormatter if colored else logging.Formatter
    console.setFormatter(formatter_cls(fmt=fmt_console, datefmt=datefmt))
    handlers: list[logging.Handler] = [console]

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(fmt=fmt_file, datefmt=datefmt))
        handlers.append(file_handler)

    logging.basicConfig(level=coerce_level(level), handlers=handlers, force=True)

    for name, lvl in (module_levels or {}).items():
        logging.getLogger(name).setLevel(coerce_level(lvl))

    if quiet_third_party:
        for name in _THIRD_PARTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
