from __future__ import annotations

from typing import Any, Mapping

from margin_engine.utils.logging_config import setup_logging


DEFAULT_LOGGING: dict[str, Any] = {
    "level": "INFO",
    "format": "%(asctime)s %(levelname)s %(shortname)s - %(message)s",
    "file": None,
    "color": True,
}

_LOGGING_KEYS = ("level", "format", "file", "color")


def add_logging_args(parser) -> None:
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (e.g., INFO, DEBUG).",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional log file path.",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        help="Console log format string.",
    )
    parser.add_argument(
        "--color",
        dest="log_color",
        action="store_true",
        help="Enable colored console logs.",
    )
    parser.add_argument(
        "--no-color",
        dest="log_color",
        action="store_false",
        help="Disable colored console logs.",
    )
    parser.set_defaults(log_color=None)


def collect_logging_overrides(args) -> dict[str, Any]:
    """Map parsed `--log-*` flags onto logging config keys."""
    values = {
        "level": getattr(args, "log_level", None),
        "file": getattr(args, "log_file", None),
        "format": getattr(args, "log_format", None),
        "color": getattr(args, "log_color", None),
    }
    return {key: value for key, value in values.items() if value is not None}


def normalize_logging_config(config: Mapping[str, Any] | None) -> dict[str, Any]:
    merged = dict(DEFAULT_LOGGING)
    for key in _LOGGING_KEYS:
        if config and config.get(key) is not None:
            merged[key] = config[key]
    return merged


def setup_logging_from_config(config: Mapping[str, Any] | None) -> None:
    log_cfg = normalize_logging_config(config)
    setup_logging(
        log_cfg["level"],
        fmt_console=log_cfg["format"],
        log_file=log_cfg["file"],
        colored=bool(log_cfg["color"]),
    )
