"""Test doubles shared across the suite."""

from typing import Any, Dict, List, Optional, Sequence, Union

CATALOG_SDL = "type Query { products: [String] }"
REVIEWS_SDL = "type Query { reviews: [String] }"

Outcome = Union[Dict[str, Any], BaseException]


class FakeExecutor:
    """Remote executor returning scripted outcomes in order.

    The last outcome repeats once the script is exhausted.
    """

    def __init__(self, url: str, outcomes: Sequence[Outcome]) -> None:
        self.url = url
        self._outcomes: List[Outcome] = list(outcomes)
        self.calls: List[Any] = []

    async def execute(
        self, document: Any, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        self.calls.append(document)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def sdl_response(sdl: str) -> Dict[str, Any]:
    return {"data": {"_sdl": sdl}}


class RecordingSleep:
    """Awaitable sleep that records requested delays without waiting."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)
