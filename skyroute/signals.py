# ABOUTME: Injected event sources for waypoint visibility and network quality.
# ABOUTME: Protocols the scheduler and planner subscribe to, plus replayable implementations.

import asyncio
from collections.abc import AsyncIterator, Iterable
from typing import Protocol


class VisibilitySignal(Protocol):
    """Emits waypoint indices as their on-screen cards become observable.

    Delivery is at-least-once: an index may be emitted repeatedly.
    """

    def __aiter__(self) -> AsyncIterator[int]: ...


class NetworkQualitySignal(Protocol):
    """Supplies the current effective connection type (e.g. "4g", "slow-2g")."""

    def effective_type(self) -> str: ...


class StaticNetworkQuality:
    """Network quality fixed at construction time."""

    def __init__(self, effective_type: str = "unknown"):
        self._effective_type = effective_type

    def effective_type(self) -> str:
        return self._effective_type


class VisibilityQueue:
    """Visibility signal fed by ``mark_visible`` and closed with ``close``.

    Iteration ends once the queue is closed and drained.
    """

    _CLOSED = object()

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()

    def mark_visible(self, index: int) -> None:
        self._queue.put_nowait(index)

    def close(self) -> None:
        self._queue.put_nowait(self._CLOSED)

    async def __aiter__(self) -> AsyncIterator[int]:
        while True:
            item = await self._queue.get()
            if item is self._CLOSED:
                return
            yield item


class ReplayVisibility:
    """Replays a fixed sequence of visibility events, for tests and batch runs."""

    def __init__(self, indices: Iterable[int]):
        self._indices = list(indices)

    async def __aiter__(self) -> AsyncIterator[int]:
        for index in self._indices:
            yield index
