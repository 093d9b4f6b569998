# ABOUTME: Visibility-gated weather fetch scheduling, one state machine per waypoint.
# ABOUTME: Pure reducers transition FetchState snapshots; FetchScheduler drives the async fetches.

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from pydantic import BaseModel, ConfigDict

from skyroute.models import Coordinate, FetchStatus, Waypoint, WeatherPayload, WeatherSample
from skyroute.signals import VisibilitySignal

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Weather request timed out"

WeatherFetcher = Callable[[Coordinate], Awaitable[WeatherPayload]]


class FetchState(BaseModel):
    """Immutable snapshot of every waypoint's retrieval state for one session.

    ``generation`` changes whenever the waypoint set is replaced, so completions
    belonging to an earlier route can be recognised and dropped.
    """

    model_config = ConfigDict(frozen=True)

    generation: int = 0
    samples: dict[int, WeatherSample] = {}

    def ordered(self) -> list[WeatherSample]:
        return [self.samples[i] for i in sorted(self.samples)]


# Reducers: one per event type, each returning a new snapshot.


def start_session(state: FetchState, waypoints: Iterable[Waypoint]) -> FetchState:
    """Replace the waypoint set with fresh Pending samples."""
    return FetchState(
        generation=state.generation + 1,
        samples={wp.index: WeatherSample(waypoint=wp) for wp in waypoints},
    )


def clear_session(state: FetchState) -> FetchState:
    return FetchState(generation=state.generation + 1)


def mark_visible(state: FetchState, index: int) -> tuple[FetchState, bool]:
    """Apply a visibility event. Returns the new state and whether a fetch should start.

    Only a Pending waypoint moves (to Loading); every other case is a no-op.
    """
    sample = state.samples.get(index)
    if sample is None or sample.status != FetchStatus.PENDING:
        return state, False
    loading = WeatherSample(waypoint=sample.waypoint, status=FetchStatus.LOADING)
    return FetchState(generation=state.generation, samples={**state.samples, index: loading}), True


def _finish(state: FetchState, generation: int, index: int, **terminal) -> FetchState:
    if generation != state.generation:
        return state
    sample = state.samples.get(index)
    if sample is None or sample.status != FetchStatus.LOADING:
        return state
    done = WeatherSample(waypoint=sample.waypoint, **terminal)
    return FetchState(generation=state.generation, samples={**state.samples, index: done})


def resolve(state: FetchState, generation: int, index: int, payload: WeatherPayload) -> FetchState:
    """Apply a successful fetch completion. Stale or unexpected completions are ignored."""
    return _finish(state, generation, index, status=FetchStatus.RESOLVED, payload=payload)


def fail(state: FetchState, generation: int, index: int, message: str) -> FetchState:
    """Apply a failed fetch completion. Stale or unexpected completions are ignored."""
    return _finish(state, generation, index, status=FetchStatus.FAILED, error=message)


class FetchScheduler:
    """Owns the FetchState of a session and runs weather fetches as waypoints become visible.

    Each waypoint is fetched at most once per session. Fetches run concurrently
    with no global throttle; a failure only affects its own waypoint.
    """

    def __init__(
        self,
        fetch_weather: WeatherFetcher,
        timeout: float | None = None,
        on_change: Callable[[FetchState], None] | None = None,
    ):
        self._fetch_weather = fetch_weather
        self._timeout = timeout or None
        self._on_change = on_change
        self._state = FetchState()
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> FetchState:
        return self._state

    def samples(self) -> list[WeatherSample]:
        return self._state.ordered()

    def _commit(self, new_state: FetchState) -> None:
        if new_state is self._state:
            return
        self._state = new_state
        if self._on_change is not None:
            self._on_change(new_state)

    def load(self, waypoints: Iterable[Waypoint]) -> None:
        """Start a new session over ``waypoints``. In-flight fetches of the old session are discarded."""
        self._commit(start_session(self._state, waypoints))
        logger.info(f"Scheduler session {self._state.generation} with {len(self._state.samples)} waypoints")

    def reset(self) -> None:
        self._commit(clear_session(self._state))

    def on_visible(self, index: int) -> asyncio.Task | None:
        """Handle a visibility event; returns the fetch task if one was started."""
        new_state, should_fetch = mark_visible(self._state, index)
        if not should_fetch:
            return None
        waypoint = new_state.samples[index].waypoint
        run = self._run(new_state.generation, waypoint)
        try:
            task = asyncio.create_task(run)
        except RuntimeError:
            # No running loop: the waypoint stays Pending
            run.close()
            raise
        self._commit(new_state)
        logger.info(f"Fetching weather for waypoint {index} at ({waypoint.coordinate.latitude}, {waypoint.coordinate.longitude})")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def consume(self, signal: VisibilitySignal) -> None:
        """Subscribe to a visibility signal until it is exhausted."""
        async for index in signal:
            self.on_visible(index)

    async def wait_idle(self) -> None:
        """Wait until no fetch is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _fetch(self, coordinate: Coordinate) -> WeatherPayload | None:
        """Run one fetch under the timeout. Returns None if the timeout expired.

        Exceptions raised by the fetcher itself, TimeoutError included, propagate unchanged.
        """
        if self._timeout is None:
            return await self._fetch_weather(coordinate)
        fetch = asyncio.ensure_future(self._fetch_weather(coordinate))
        done, _ = await asyncio.wait({fetch}, timeout=self._timeout)
        if not done:
            fetch.cancel()
            return None
        return fetch.result()

    async def _run(self, generation: int, waypoint: Waypoint) -> None:
        try:
            payload = await self._fetch(waypoint.coordinate)
        except Exception as e:
            logger.warning(f"Weather fetch for waypoint {waypoint.index} failed: {e}")
            self._commit(fail(self._state, generation, waypoint.index, str(e) or type(e).__name__))
        else:
            if payload is None:
                logger.warning(f"Weather fetch for waypoint {waypoint.index} timed out after {self._timeout}s")
                self._commit(fail(self._state, generation, waypoint.index, TIMEOUT_MESSAGE))
                return
            if generation != self._state.generation:
                logger.info(f"Discarding weather for waypoint {waypoint.index} from replaced session {generation}")
            self._commit(resolve(self._state, generation, waypoint.index, payload))
