"""Where OpsAgents keeps its configuration file and ``.env``."""

import os
from pathlib import Path

from platformdirs import user_config_dir

CONFIG_PATH_ENV_VAR = "OPSAGENTS_CONFIG"
USER_DIR = Path(user_config_dir("opsagents"))


def cli_config_path(override: str | Path | None = None) -> Path:
    """Resolve the configuration file: ``--config``, then ``OPSAGENTS_CONFIG``.

    Falls back to ``config.json`` in the per-user configuration directory.
    """
    chosen = override or os.environ.get(CONFIG_PATH_ENV_VAR, "").strip()
    if chosen:
        return Path(chosen).expanduser()
    return USER_DIR / "config.json"


def env_path() -> Path:
    """Return the ``.env`` file holding credentials and pass-through secrets."""
    return USER_DIR / ".env"
