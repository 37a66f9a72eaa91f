from .config import (
    add_config_arg,
    build_config,
    deep_merge,
    load_yaml_config,
    resolve_path,
)
from .logging import (
    DEFAULT_LOGGING,
    add_logging_args,
    collect_logging_overrides,
    normalize_logging_config,
    setup_logging_from_config,
)

__all__ = [
    "DEFAULT_LOGGING",
    "add_config_arg",
    "add_logging_args",
    "build_config",
    "collect_logging_overrides",
    "deep_merge",
    "load_yaml_config",
    "normalize_logging_config",
    "resolve_path",
    "setup_logging_from_config",
]
