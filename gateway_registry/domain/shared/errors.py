"""
Domain exceptions.

Typed exceptions for explicit error handling.
Callers catch the narrowest type they can act on; everything else propagates.
"""

from __future__ import annotations

from typing import Optional


# ═══════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════


class DomainError(Exception):
    """
    Base exception for all gateway registry errors.

    Allows catching all registry errors with single except clause.
    """

    pass


# ═══════════════════════════════════════════════════════════
# REGISTRY EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class RegistryError(DomainError):
    """Base exception for registry state and publishing."""

    pass


class MalformedRegistryEntryError(RegistryError):
    """
    A stored registry file could not be decoded.

    Raised when:
    - The `# $url` header line is missing
    - The file was hand-edited and lost its header

    Example:
        >>> raise MalformedRegistryEntryError("catalog.graphql")
    """

    def __init__(self, file_name: str, reason: str = "missing '# $url' header") -> None:
        super().__init__(f"Malformed registry entry '{file_name}': {reason}")
        self.file_name = file_name
        self.reason = reason


class ReleaseError(RegistryError):
    """
    Release candidate could not be published.

    Raised when:
    - There are no loaded services to publish
    - The release name slugifies to an empty branch name
    """

    pass


# ═══════════════════════════════════════════════════════════
# EXTERNAL SERVICE EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ExternalServiceError(DomainError):
    """
    External service call failed.

    Base class for remote GraphQL services and the version-control host.
    """

    pass


class TransportError(ExternalServiceError):
    """
    Remote GraphQL request failed at the transport level.

    Raised when:
    - Network unreachable / connection refused
    - Non-2xx HTTP status
    - Response body is not JSON

    Example:
        >>> raise TransportError("http://localhost:4001/graphql", "HTTP 502")
    """

    def __init__(
        self, url: str, message: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class SDLUnavailableError(ExternalServiceError):
    """
    Service answered but did not return its SDL.

    Raised when the `{ _sdl }` probe returns GraphQL errors or no string.
    """

    pass


class VersionControlError(ExternalServiceError):
    """
    Version-control host rejected a request.

    Example:
        >>> raise VersionControlError("Bad credentials", status=401)
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class BranchExistsError(VersionControlError):
    """Branch reference already exists (HTTP 422 on ref creation)."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"Reference already exists: {branch}", status=422)
        self.branch = branch


class BranchNotFoundError(VersionControlError):
    """Branch reference does not exist (HTTP 404 on ref lookup)."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"Reference not found: {branch}", status=404)
        self.branch = branch


# ═══════════════════════════════════════════════════════════
# CONFIGURATION EXCEPTIONS
# ═══════════════════════════════════════════════════════════


class ConfigurationError(DomainError):
    """
    Registry configuration is invalid or incomplete.

    Raised when:
    - An endpoint has no URL for the current environment
    - Required environment variables are missing
    - Two services share a name
    """

    pass
