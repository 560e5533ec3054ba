"""
Registry value objects.

Immutable, validated records passed between the registry, the
version-control host and the gateway builder.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gateway_registry.domain.shared.errors import ConfigurationError


class ServiceDescriptor(BaseModel):
    """
    One GraphQL service known to the gateway.

    Produced by live introspection or by decoding a registry file.
    A fresh set is built on every load cycle.

    Example:
        >>> d = ServiceDescriptor(
        ...     name="catalog",
        ...     url="http://localhost:4001/graphql",
        ...     sdl="type Query { ok: Boolean }",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique service name")
    url: str = Field(..., min_length=1, description="Resolved endpoint URL")
    sdl: str = Field(..., description="Raw schema text")


class EndpointConfig(BaseModel):
    """
    Configured service endpoint with one URL per environment.

    Example:
        >>> ep = EndpointConfig(
        ...     name="catalog",
        ...     url={"development": "http://localhost:4001/graphql"},
        ... )
        >>> ep.url_for("development")
        'http://localhost:4001/graphql'
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    url: Dict[str, str] = Field(default_factory=dict)

    def url_for(self, env: str) -> str:
        """Resolve the endpoint URL for an environment."""
        try:
            return self.url[env]
        except KeyError:
            raise ConfigurationError(
                f"Endpoint '{self.name}' has no URL for environment '{env}'"
            ) from None

    def registry_url(self) -> Optional[str]:
        """URL recorded in registry files: production first, then development."""
        return self.url.get("production") or self.url.get("development")


class RegistryFile(BaseModel):
    """
    Tree entry written to the version-control host.

    `mode` and `type` follow git tree conventions for a regular file.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    contents: str
    mode: str = "100644"
    type: str = "blob"


class BranchHead(BaseModel):
    """Branch reference and the commit it points at."""

    model_config = ConfigDict(frozen=True)

    branch: str
    sha: str


class PullRequest(BaseModel):
    """Pull request opened for a release branch."""

    model_config = ConfigDict(frozen=True)

    branch: str
    number: int
    url: Optional[str] = None


class ReleaseCandidate(BaseModel):
    """
    Published release candidate.

    `name` is the slugified branch name, `version` the commit SHA.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Ensure the branch name is not blank."""
        if not v.strip():
            raise ValueError("Release name cannot be empty")
        return v
