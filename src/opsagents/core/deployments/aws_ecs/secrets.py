"""Secrets Manager helpers for ECS deployment."""

import logging
import secrets
import string
from collections.abc import Callable, Mapping

from opsagents.core.deployments.aws_ecs.errors import (
    ProviderError,
    ResourceAlreadyExistsError,
    SecretCreationError,
)
from opsagents.core.deployments.aws_ecs.models import SecretKind, SecretReferences
from opsagents.core.deployments.aws_ecs.provider import InfrastructureProvider

logger = logging.getLogger(__name__)

SECRET_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_secret_value(length: int) -> str:
    """Return a random secret drawn from letters, digits and ``!@#$%^&*``."""
    if length <= 0:
        raise ValueError("Secret length must be positive.")
    return "".join(secrets.choice(SECRET_ALPHABET) for _ in range(length))


def create_secrets(
    provider: InfrastructureProvider,
    prefix: str,
    environ: Mapping[str, str],
    reporter: Callable[[str], None] | None = None,
) -> SecretReferences:
    """Create the deployment secrets and return their ARNs by kind.

    Generated secrets are always created. Secrets sourced from the environment
    are created only when the variable holds a non-empty value. A secret that
    already exists from an earlier deploy is reused with its stored value.

    Raises:
        SecretCreationError: When any secret cannot be stored. Secrets created
            before the failure stay in place and are listed on the error.
    """
    references: SecretReferences = {}
    for kind in SecretKind:
        value = _secret_value(kind, environ)
        if value is None:
            logger.debug("Skipping secret %s, %s is not set", kind.name, kind.source_env)
            continue

        name = kind.secret_name(prefix)
        if reporter:
            reporter(f"Creating secret {name}")
        try:
            references[kind] = _create_or_reuse(provider, name, value, kind, reporter)
        except ProviderError as exc:
            created = {item.secret_name(prefix): arn for item, arn in references.items()}
            raise SecretCreationError(
                f"Failed to create secret {name}: {exc}",
                created=created,
            ) from exc

    return references


def _create_or_reuse(
    provider: InfrastructureProvider,
    name: str,
    value: str,
    kind: SecretKind,
    reporter: Callable[[str], None] | None,
) -> str:
    """Create a secret, or return the ARN of the one already stored under ``name``."""
    try:
        return provider.create_secret(name, value, kind.description)
    except ResourceAlreadyExistsError:
        arn = provider.find_secret(name)
        if arn is None:
            raise
    if reporter:
        reporter(f"Secret {name} already exists, reusing it")
    return arn


def _secret_value(kind: SecretKind, environ: Mapping[str, str]) -> str | None:
    """Return the value to store, or None when an optional secret is absent."""
    if kind.is_generated:
        return generate_secret_value(kind.length)
    value = environ.get(kind.source_env or "", "")
    return value or None
