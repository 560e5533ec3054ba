"""
Registry change detection.

Compares the published registry with live services to tell whether a
release candidate is needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from graphql import GraphQLError, build_schema, print_schema

from gateway_registry.domain.registry.models import ServiceDescriptor


@dataclass(frozen=True)
class RegistryChanges:
    """Service names added, removed or changed between two descriptor sets."""

    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    changed: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)

    def as_dict(self) -> Dict[str, List[str]]:
        return {"added": self.added, "removed": self.removed, "changed": self.changed}


def normalize_sdl(sdl: str) -> str:
    """Canonical SDL text; formatting-only edits normalize to the same string."""
    try:
        return print_schema(build_schema(sdl, assume_valid_sdl=True))
    except (GraphQLError, TypeError):
        return sdl.strip()


def diff_services(
    published: Sequence[ServiceDescriptor], live: Sequence[ServiceDescriptor]
) -> RegistryChanges:
    """Diff two descriptor sets by service name.

    A service counts as changed when its URL or normalized SDL differs.
    """
    before = {s.name: s for s in published}
    after = {s.name: s for s in live}

    changed = []
    for name in sorted(before.keys() & after.keys()):
        old, new = before[name], after[name]
        if old.url != new.url or normalize_sdl(old.sdl) != normalize_sdl(new.sdl):
            changed.append(name)

    return RegistryChanges(
        added=sorted(after.keys() - before.keys()),
        removed=sorted(before.keys() - after.keys()),
        changed=changed,
    )
