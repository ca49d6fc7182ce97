"""Environment loading for CLI commands."""

import os
from pathlib import Path

from dotenv import dotenv_values

from lanpool.config import config
from lanpool.exceptions import UsageError
from lanpool.utils.logger import get_logger

logger = get_logger(__name__)


def load_environment(env_file: Path | None = None) -> dict[str, str]:
    """
    Process environment overlaid with an optional env file.

    Values from the file win over the process environment. Keys without a
    value in the file are ignored.
    """
    environ = dict(os.environ)
    if env_file is not None:
        values = dotenv_values(env_file)
        environ.update({k: v for k, v in values.items() if v is not None})
        logger.debug(f"Loaded {len(values)} variables from {env_file}")
    return environ


def first_set(environ: dict[str, str], *names: str) -> str:
    """First non-empty value among the given variable names."""
    for name in names:
        value = environ.get(name, "").strip()
        if value:
            return value
    return ""


def apply_config(environ: dict[str, str]) -> None:
    """
    Apply ``LANPOOL_*`` overrides to the global config.

    Raises:
        UsageError: If a variable has a malformed value.
    """
    try:
        config.apply_env(environ)
    except ValueError as e:
        raise UsageError(f"Invalid configuration: {e}")
