"""Domain ports (interfaces for infrastructure adapters)."""

from gateway_registry.domain.shared.ports.remote_executor import (
    BuildSchema,
    ExecutorFactory,
    IRemoteExecutor,
)
from gateway_registry.domain.shared.ports.version_control import IVersionControlClient

__all__ = [
    "BuildSchema",
    "ExecutorFactory",
    "IRemoteExecutor",
    "IVersionControlClient",
]
