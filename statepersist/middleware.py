"""Store middleware driving Persistor load/save from dispatched actions."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from statepersist.actions import LoadedAction, PersistorErrorAction, PersistSignal, classify

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from statepersist.persistor import Persistor
    from statepersist.store import StoreLike

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistMiddleware(Generic[T]):
    """Load on LoadAction, save after every other action.

    Every action is passed on unchanged first. The load or save then runs
    as a task on the running event loop; with no running loop it runs to
    completion inside ``dispatch`` instead. Failures never reach the dispatcher: they are logged,
    published on the persistor's error stream and signalled with a
    PersistorErrorAction.

    Saves are not queued. Two actions dispatched back to back may have
    their writes land in either order unless the storage engine serializes
    writes itself; callers needing ordering must serialize dispatches or
    use such an engine.
    """

    def __init__(self, persistor: Persistor[T]):
        self.persistor = persistor
        self._pending: set[asyncio.Task] = set()

    def __call__(self, store: StoreLike, action: Any, next_dispatch: Callable[[Any], None]) -> None:
        next_dispatch(action)

        match classify(action):
            case PersistSignal.ERROR:
                # Don't run load/save on error
                return
            case PersistSignal.LOAD:
                self._spawn(lambda: self._load(store))
            case _:
                # Snapshot now, right after the reducer ran for this action
                state = store.state
                self._spawn(lambda: self._save(store, state))

    @property
    def pending(self) -> int:
        """Number of load/save tasks not yet finished."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait until every spawned load/save task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def start(self, store: StoreLike) -> T | None:
        """See ``Persistor.start``."""
        return await self.persistor.start(store)

    def _spawn(self, make_coro: Callable[[], Coroutine[Any, Any, None]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous host: finish the work before dispatch returns
            asyncio.run(self._run_to_completion(make_coro()))
            return
        task = loop.create_task(make_coro())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_to_completion(self, coro: Coroutine[Any, Any, None]) -> None:
        await coro
        # Actions dispatched meanwhile (LoadedAction, errors) spawned tasks on this loop
        await self.drain()

    async def _load(self, store: StoreLike) -> None:
        try:
            state = await self.persistor.load()
        except Exception as e:
            self._fail(store, e)
            return
        store.dispatch(LoadedAction(state))

    async def _save(self, store: StoreLike, state: T) -> None:
        try:
            await self.persistor.save(state)
        except Exception as e:
            self._fail(store, e)

    def _fail(self, store: StoreLike, error: Exception) -> None:
        logger.warning(f"Errored in middleware: {error}")
        self.persistor.error_stream.emit(error)
        store.dispatch(PersistorErrorAction())
