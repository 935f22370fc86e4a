"""Minimal dispatch store used to host the persistence middleware.

Any host exposing ``state`` and ``dispatch`` satisfies ``StoreLike``; the
``Store`` here is a small reference implementation with a reducer and a
synchronous middleware chain.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

S = TypeVar("S")

Reducer = Callable[[S, Any], S]
NextDispatcher = Callable[[Any], None]
Middleware = Callable[[Any, Any, NextDispatcher], None]


@runtime_checkable
class StoreLike(Protocol):
    """What the persistence middleware needs from a host store."""

    @property
    def state(self) -> Any: ...

    def dispatch(self, action: Any) -> None: ...


class Store(Generic[S]):
    """Reducer-driven state container.

    Each middleware is called as ``middleware(store, action, next_dispatch)``
    in the order given; the innermost ``next_dispatch`` runs the reducer.
    """

    def __init__(
        self,
        reducer: Reducer[S],
        initial_state: S,
        middleware: Sequence[Middleware] = (),
    ):
        self._reducer = reducer
        self._state = initial_state
        self._dispatch = self._build_chain(list(middleware))

    @property
    def state(self) -> S:
        return self._state

    def dispatch(self, action: Any) -> None:
        self._dispatch(action)

    def _reduce(self, action: Any) -> None:
        self._state = self._reducer(self._state, action)

    def _build_chain(self, middleware: list) -> NextDispatcher:
        dispatch: NextDispatcher = self._reduce
        for mw in reversed(middleware):
            dispatch = self._wrap(mw, dispatch)
        return dispatch

    def _wrap(self, mw: Callable, next_dispatch: NextDispatcher) -> NextDispatcher:
        def dispatch(action: Any) -> None:
            mw(self, action, next_dispatch)

        return dispatch
