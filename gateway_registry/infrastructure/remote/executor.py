"""
Remote GraphQL executor.

Sends one `{query, variables}` POST per call to a service endpoint and
returns the parsed JSON body. No retry; timeouts are the transport's.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

import httpx
import structlog
from graphql import DocumentNode, print_ast

from gateway_registry.domain.shared.errors import TransportError

logger = structlog.get_logger(__name__)


class RemoteExecutor:
    """
    Executes GraphQL documents against one service URL.

    The response envelope (`data`, `errors`) is returned as-is;
    interpreting `errors` is the caller's job.

    Example:
        >>> executor = RemoteExecutor("http://localhost:4001/graphql")
        >>> result = await executor.execute("{ _sdl }")
        >>> result["data"]["_sdl"]
    """

    DEFAULT_TIMEOUT_S = 30.0

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        """Initialize executor.

        Args:
            url: Service GraphQL endpoint
            client: Shared HTTP client; a short-lived one is opened per call if omitted
            timeout_s: Timeout for per-call clients
        """
        self.url = url
        self._client = client
        self._timeout_s = timeout_s

    async def execute(
        self,
        document: Union[str, DocumentNode],
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Execute a document and return the parsed JSON response.

        Raises:
            TransportError: network failure, non-2xx status or non-JSON body
        """
        query = document if isinstance(document, str) else print_ast(document)
        payload = {"query": query, "variables": variables or {}}

        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                    response = await client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            logger.debug("Remote request failed", url=self.url, error=str(e))
            raise TransportError(self.url, f"request failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                self.url,
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TransportError(
                self.url, "response is not JSON", status_code=response.status_code
            ) from e

        if not isinstance(result, dict):
            raise TransportError(
                self.url, "response is not a JSON object", status_code=response.status_code
            )
        return result

    def __repr__(self) -> str:
        return f"RemoteExecutor('{self.url}')"


def make_remote_executor(url: str) -> RemoteExecutor:
    """Default executor factory used by the registry."""
    return RemoteExecutor(url)
