"""Remote executor and schema builder ports."""

from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Sequence, Union

from graphql import DocumentNode

from gateway_registry.domain.registry.models import ServiceDescriptor


class IRemoteExecutor(Protocol):
    """
    Executes one GraphQL document against a remote service.

    Returns the parsed JSON body. The `{data, errors}` envelope is not
    interpreted; callers check `errors` themselves.
    """

    url: str

    async def execute(
        self,
        document: Union[str, DocumentNode],
        variables: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        ...


ExecutorFactory = Callable[[str], IRemoteExecutor]

# Gateway builders may be sync or async.
BuildSchema = Callable[[Sequence[ServiceDescriptor]], Union[Any, Awaitable[Any]]]
