"""User env file helpers for the CLI."""

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import dotenv_values

from opsagents.config.paths import env_path


def load_env_values(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Load env file values and overlay environment variables.

    Empty values are dropped so an unset variable never hides a value from
    the env file.

    Args:
        path: Env file to read. Defaults to the user ``.env``.
        environ: Process environment to overlay. Defaults to ``os.environ``.

    Returns:
        Combined env file and environment variable values.
    """
    path = path or env_path()
    environ = os.environ if environ is None else environ

    values: dict[str, str] = {}
    if path.exists():
        values.update({key: value for key, value in dotenv_values(path).items() if value})
    for key, value in environ.items():
        if value:
            values[key] = value
    return values
