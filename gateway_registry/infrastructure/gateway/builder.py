"""
Default gateway builder.

Turns service descriptors into the subschema configuration a stitching
engine consumes: one validated graphql-core schema plus a remote
executor per service. Type merging itself is left to the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import structlog
from graphql import GraphQLError, GraphQLSchema, build_schema

from gateway_registry.domain.registry.models import ServiceDescriptor
from gateway_registry.domain.shared.errors import ConfigurationError
from gateway_registry.domain.shared.ports.remote_executor import (
    ExecutorFactory,
    IRemoteExecutor,
)
from gateway_registry.infrastructure.remote.executor import make_remote_executor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Subschema:
    """One service as seen by the gateway."""

    name: str
    url: str
    schema: GraphQLSchema
    executor: IRemoteExecutor


@dataclass(frozen=True)
class GatewaySchema:
    """Subschemas making up one gateway build."""

    subschemas: Tuple[Subschema, ...] = field(default_factory=tuple)

    def __getitem__(self, name: str) -> Subschema:
        for subschema in self.subschemas:
            if subschema.name == name:
                return subschema
        raise KeyError(name)

    @property
    def service_names(self) -> List[str]:
        return [s.name for s in self.subschemas]

    def root_fields(self) -> Dict[str, List[str]]:
        """Query root field names exposed by each service."""
        fields: Dict[str, List[str]] = {}
        for s in self.subschemas:
            query_type = s.schema.query_type
            fields[s.name] = sorted(query_type.fields) if query_type else []
        return fields


def build_gateway_schema(
    services: Sequence[ServiceDescriptor],
    executor_factory: Optional[ExecutorFactory] = None,
    assume_valid_sdl: bool = False,
) -> GatewaySchema:
    """Validate every service's SDL and pair it with an executor.

    Raises:
        ConfigurationError: duplicate service names or invalid SDL
    """
    factory: Callable[[str], IRemoteExecutor] = executor_factory or make_remote_executor
    subschemas: List[Subschema] = []
    seen = set()

    for service in services:
        if service.name in seen:
            raise ConfigurationError(f"Duplicate service name: {service.name}")
        seen.add(service.name)

        try:
            schema = build_schema(service.sdl, assume_valid_sdl=assume_valid_sdl)
        except (GraphQLError, TypeError) as e:
            raise ConfigurationError(f"Invalid SDL for service '{service.name}': {e}") from e

        subschemas.append(
            Subschema(
                name=service.name,
                url=service.url,
                schema=schema,
                executor=factory(service.url),
            )
        )

    logger.info("Gateway schema built", services=[s.name for s in subschemas])
    return GatewaySchema(subschemas=tuple(subschemas))
