"""
Registry file codec.

Each service is stored as `{registry_path}/{name}.graphql`:

    # $url http://catalog:4001/graphql
    <blank line>
    type Query { ... }

The header keeps the endpoint next to the schema so a pull request diff
shows both.
"""

from __future__ import annotations

import re
from typing import Optional

from gateway_registry.domain.registry.models import RegistryFile, ServiceDescriptor
from gateway_registry.domain.shared.errors import MalformedRegistryEntryError

FILE_SUFFIX = ".graphql"
URL_HEADER = "# $url "
URL_HEADER_RE = re.compile(r"# \$url ([^\r\n]+)(?:\r?\n|$)")


def slugify(name: str) -> str:
    """Collapse whitespace runs to single hyphens and trim the ends.

    >>> slugify("  spring   release\\t2 ")
    'spring-release-2'
    """
    return "-".join(name.split())


def registry_file_path(registry_path: str, service_name: str) -> str:
    """Path of the registry file for a service."""
    base = registry_path.strip("/")
    filename = f"{service_name}{FILE_SUFFIX}"
    return f"{base}/{filename}" if base else filename


def service_name_from_file(file_name: str) -> str:
    """Strip the `.graphql` suffix from a tree entry name."""
    if file_name.endswith(FILE_SUFFIX):
        return file_name[: -len(FILE_SUFFIX)]
    return file_name


def encode_contents(url: str, sdl: str) -> str:
    """Render the file body: header, blank line, raw SDL."""
    if not url or "\n" in url or "\r" in url:
        raise ValueError(f"Registry URL must be a single non-empty line: {url!r}")
    return f"{URL_HEADER}{url}\n\n{sdl}"


def encode_registry_file(
    registry_path: str, descriptor: ServiceDescriptor, url: Optional[str] = None
) -> RegistryFile:
    """Encode one descriptor as a tree entry.

    Args:
        registry_path: Directory inside the repository holding the registry
        descriptor: Service to persist
        url: Override for the recorded endpoint (defaults to descriptor.url)
    """
    return RegistryFile(
        path=registry_file_path(registry_path, descriptor.name),
        contents=encode_contents(url or descriptor.url, descriptor.sdl),
    )


def decode_registry_entry(file_name: str, text: str) -> ServiceDescriptor:
    """Decode a stored registry file back into a descriptor.

    Raises:
        MalformedRegistryEntryError: header line not found
    """
    match = URL_HEADER_RE.search(text)
    if match is None:
        raise MalformedRegistryEntryError(file_name)

    sdl = text[: match.start()] + text[match.end():]
    # header is followed by one separator line
    if match.start() == 0:
        if sdl.startswith("\r\n"):
            sdl = sdl[2:]
        elif sdl.startswith("\n"):
            sdl = sdl[1:]

    return ServiceDescriptor(
        name=service_name_from_file(file_name),
        url=match.group(1),
        sdl=sdl,
    )
