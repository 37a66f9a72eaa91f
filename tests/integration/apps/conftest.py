from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def run_help(capsys):
    def _run(mod, expected: str) -> None:
        with pytest.raises(SystemExit) as exc:
            mod.main(["--help"])
        assert exc.value.code == 0
        assert expected in capsys.readouterr().out

    return _run


@pytest.fixture
def run_print_config(capsys):
    """Run an app with `--print-config` and return the merged config."""

    def _run(mod, config_path: str | Path | None, *args: str) -> dict[str, Any]:
        argv = [] if config_path is None else ["--config", str(config_path)]
        mod.main([*argv, *args, "--print-config"])
        return json.loads(capsys.readouterr().out)

    return _run


@pytest.fixture
def assert_paths_exist():
    def _assert(cfg: dict[str, Any], paths: list[tuple[str, ...]]) -> None:
        for keys in paths:
            cur: Any = cfg
            for key in keys:
                assert key in cur, f"missing config key: {'.'.join(keys)}"
                cur = cur[key]

    return _assert
