"""Read and write the CLI configuration file."""

import json
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from opsagents.cli.configuration.models import CliConfig


class ConfigError(RuntimeError):
    """Configuration related errors."""


def load_config(path: Path) -> CliConfig:
    """Load CLI configuration from disk.

    A missing file yields the defaults.

    Args:
        path: Configuration file to read.

    Returns:
        The loaded configuration object.
    """
    if not path.exists():
        return CliConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid configuration file {path}: expected a JSON object.")

    try:
        return CliConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid configuration file {path}: {_describe_fields(exc)}"
        ) from exc


def save_config(config: CliConfig, path: Path) -> Path:
    """Write the configuration, replacing any previous file in one step.

    Args:
        config: Configuration object to save.
        path: Destination file.

    Returns:
        The saved configuration file path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(config.model_dump(mode="json"), indent=2) + "\n"
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def remember_efs_volume(config: CliConfig, path: Path, volume_id: str) -> bool:
    """Store the database volume id so later deploys and clean-ups use it.

    Args:
        config: Configuration the deployment ran with.
        path: Configuration file to update.
        volume_id: EFS file system id reported by the deployment.

    Returns:
        True when the file was updated.
    """
    if config.ecs.efs_volume_id == volume_id:
        return False
    updated = config.model_copy(
        update={"ecs": config.ecs.model_copy(update={"efs_volume_id": volume_id})}
    )
    save_config(updated, path)
    return True


def _describe_fields(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
