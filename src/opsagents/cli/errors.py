"""Turn deployment failures into console messages with a next step."""

from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    ProfileNotFound,
)

from opsagents.cli.ui import console
from opsagents.core.deployments.aws_ecs.errors import (
    DeploymentError,
    NetworkDiscoveryError,
    SecretCreationError,
    WaitTimeoutError,
)

AUTH_ERROR_CODES = frozenset(
    {
        "ExpiredToken",
        "ExpiredTokenException",
        # spellchecker:ignore-next-line
        "UnrecognizedClientException",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "AccessDenied",
        "AccessDeniedException",
    }
)

AUTH_HINT = (
    "Set AWS_PROFILE or AWS_ACCESS_KEY_ID/AWS_SECRET_ACCESS_KEY, or run "
    "'aws sso login --profile <profile>' and retry."
)
ENDPOINT_HINT = "Check network connectivity and the region in 'opsagents config show'."
NETWORK_HINT = "Set ecs.vpc_id and ecs.subnet_ids in the configuration file."
WAIT_HINT = "The service may still settle; check it with 'opsagents status'."


def describe_failure(exc: BaseException, action: str) -> tuple[str, str | None]:
    """Return the headline and an optional hint for a failed command.

    Args:
        exc: Raised exception.
        action: What was being attempted, for example ``Deployment``.

    Returns:
        The message to print in red and the follow-up hint, if any.
    """
    if is_aws_auth_error(exc):
        return (
            "AWS authentication failed. Your credentials are missing, invalid, or expired.",
            AUTH_HINT,
        )
    if is_aws_endpoint_error(exc):
        return "Could not reach the AWS endpoint from this environment.", ENDPOINT_HINT

    headline = f"{action} failed: {exc}"
    if isinstance(exc, DeploymentError) and exc.step:
        headline = f"{action} failed at step '{exc.step}': {exc}"

    if isinstance(exc, WaitTimeoutError):
        return headline, WAIT_HINT
    if isinstance(exc, NetworkDiscoveryError):
        return headline, NETWORK_HINT
    if isinstance(exc, SecretCreationError) and exc.created:
        names = ", ".join(sorted(exc.created))
        return headline, f"These secrets were created and left in place: {names}"
    return headline, None


def report_aws_error(exc: BaseException, action: str) -> None:
    """Print a failed command's headline and hint."""
    headline, hint = describe_failure(exc, action)
    console.print(f"[red]{headline}[/red]")
    if hint:
        console.print(f"[dim]{hint}[/dim]")


def is_aws_auth_error(exc: BaseException) -> bool:
    """Return true when an exception chain indicates AWS auth issues."""
    for item in exception_chain(exc):
        if isinstance(item, (NoCredentialsError, ProfileNotFound)):
            return True
        if isinstance(item, ClientError):
            code = str(item.response.get("Error", {}).get("Code", ""))
            if code in AUTH_ERROR_CODES:
                return True
        if "security token included in the request is expired" in str(item).lower():
            return True
    return False


def is_aws_endpoint_error(exc: BaseException) -> bool:
    """Return true when an exception chain indicates endpoint or region errors."""
    return any(
        isinstance(item, (EndpointConnectionError, NoRegionError))
        for item in exception_chain(exc)
    )


def exception_chain(exc: BaseException) -> list[BaseException]:
    """Return exceptions in cause/context order, starting with ``exc``."""
    chain: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        chain.append(current)
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return chain
