"""Error types raised by the ECS deployment workflow."""


class DeploymentError(RuntimeError):
    """A deployment or clean-up step failed."""

    def __init__(self, message: str, step: str | None = None) -> None:
        """Record the failing step alongside the message."""
        super().__init__(message)
        self.step = step


class ProviderError(DeploymentError):
    """The infrastructure provider rejected a call."""

    def __init__(self, message: str, code: str | None = None) -> None:
        """Record the provider error code alongside the message."""
        super().__init__(message)
        self.code = code


class ResourceAlreadyExistsError(ProviderError):
    """A create call failed because the named resource already exists."""


class ResourceNotFoundError(ProviderError):
    """The named resource does not exist."""


class WaitTimeoutError(DeploymentError):
    """A bounded wait exceeded its deadline."""


class NetworkDiscoveryError(DeploymentError):
    """Default network placement could not be discovered."""


class SecretCreationError(DeploymentError):
    """Registering one of the generated secrets failed.

    Secrets registered earlier in the same call are not rolled back; they are
    listed in ``created`` so callers can report or remove them.
    """

    def __init__(self, message: str, created: dict[str, str]) -> None:
        """Keep the secret names and ARNs created before the failure."""
        super().__init__(message, step="secrets")
        self.created = created
