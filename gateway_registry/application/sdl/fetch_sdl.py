"""
SDL probe.

Every service in the gateway answers `{ _sdl }` with its full schema.
At cold start the service may not be listening yet, so the probe runs
under a bounded retry policy; exhausting it is fatal.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict

import structlog
from graphql import GraphQLSchema, build_schema

from gateway_registry.domain.shared.errors import SDLUnavailableError
from gateway_registry.domain.shared.ports.remote_executor import IRemoteExecutor
from gateway_registry.infrastructure.retry import (
    GATEWAY_STARTUP_POLICY,
    REGISTRY_PROBE_POLICY,
    RetryPolicy,
    Sleep,
    retry_async,
)

logger = structlog.get_logger(__name__)

SDL_QUERY = "{ _sdl }"


def _extract_sdl(url: str, result: Dict[str, Any]) -> str:
    errors = result.get("errors")
    if errors:
        messages = "; ".join(
            err.get("message", str(err)) if isinstance(err, dict) else str(err)
            for err in errors
        )
        raise SDLUnavailableError(f"{url}: GraphQL errors: {messages}")

    data = result.get("data") or {}
    sdl = data.get("_sdl")
    if not isinstance(sdl, str):
        raise SDLUnavailableError(f"{url}: response has no _sdl string")
    return sdl


async def fetch_sdl(
    executor: IRemoteExecutor,
    policy: RetryPolicy = REGISTRY_PROBE_POLICY,
    sleep: Sleep = asyncio.sleep,
) -> str:
    """Fetch a service's SDL, retrying while it is unreachable.

    Args:
        executor: Executor bound to the service URL
        policy: Attempt budget and fixed delay
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        The `data._sdl` string

    Raises:
        The last attempt's error once the budget is exhausted
    """

    async def probe() -> str:
        result = await executor.execute(SDL_QUERY)
        return _extract_sdl(executor.url, result)

    sdl = await retry_async(probe, policy, sleep=sleep)
    logger.debug("Fetched SDL", url=executor.url, length=len(sdl))
    return sdl


async def fetch_remote_schema(
    executor: IRemoteExecutor,
    policy: RetryPolicy = GATEWAY_STARTUP_POLICY,
    assume_valid_sdl: bool = False,
    sleep: Sleep = asyncio.sleep,
) -> GraphQLSchema:
    """Fetch a service's SDL and build a graphql-core schema from it.

    Used by gateways at cold start, so the default policy waits out the
    startup window of their subschemas. `assume_valid_sdl` skips
    validation, for code-first services that use directives without
    printing their definitions.
    """
    sdl = await fetch_sdl(executor, policy, sleep=sleep)
    return build_schema(sdl, assume_valid_sdl=assume_valid_sdl)
