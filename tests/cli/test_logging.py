from __future__ import annotations

import argparse
import importlib
import logging

import pytest


def _parse(argv: list[str]) -> argparse.Namespace:
    mod = importlib.import_module("margin_engine.cli.logging")
    parser = argparse.ArgumentParser()
    mod.add_logging_args(parser)
    return parser.parse_args(argv)


def test_normalize_logging_config_defaults() -> None:
    mod = importlib.import_module("margin_engine.cli.logging")
    normalized = mod.normalize_logging_config(None)
    assert normalized == mod.DEFAULT_LOGGING


def test_normalize_logging_config_overrides() -> None:
    mod = importlib.import_module("margin_engine.cli.logging")
    cfg = {
        "level": "DEBUG",
        "format": "%(message)s",
        "file": "log.txt",
        "color": False,
    }
    normalized = mod.normalize_logging_config(cfg)
    assert normalized["level"] == "DEBUG"
    assert normalized["format"] == "%(message)s"
    assert normalized["file"] == "log.txt"
    assert normalized["color"] is False


def test_normalize_logging_config_skips_none() -> None:
    mod = importlib.import_module("margin_engine.cli.logging")
    normalized = mod.normalize_logging_config({"level": None, "unknown": 1})
    assert normalized == mod.DEFAULT_LOGGING


def test_collect_logging_overrides_only_set_flags() -> None:
    mod = importlib.import_module("margin_engine.cli.logging")
    assert mod.collect_logging_overrides(_parse([])) == {}
    assert mod.collect_logging_overrides(
        _parse(["--log-level", "DEBUG", "--no-color"])
    ) == {"level": "DEBUG", "color": False}


def test_setup_logging_from_config_uses_normalized(monkeypatch) -> None:
    mod = importlib.import_module("margin_engine.cli.logging")

    captured: dict[str, object] = {}

    def _setup_logging(level, *, fmt_console, log_file, colored):
        captured["level"] = level
        captured["fmt_console"] = fmt_console
        captured["log_file"] = log_file
        captured["colored"] = colored

    monkeypatch.setattr(mod, "setup_logging", _setup_logging)

    mod.setup_logging_from_config({"level": "WARNING", "color": False})

    assert captured == {
        "level": "WARNING",
        "fmt_console": mod.DEFAULT_LOGGING["format"],
        "log_file": None,
        "colored": False,
    }


@pytest.mark.parametrize(
    ("value", "expected"),
    [("info", logging.INFO), ("WARN", logging.WARNING), ("10", 10), (30, 30)],
)
def test_coerce_level(value, expected) -> None:
    mod = importlib.import_module("margin_engine.utils.logging_config")
    assert mod.coerce_level(value) == expected


def test_coerce_level_unknown_raises() -> None:
    mod = importlib.import_module("margin_engine.utils.logging_config")
    with pytest.raises(ValueError, match="Unknown logging level"):
        mod.coerce_level("LOUD")
