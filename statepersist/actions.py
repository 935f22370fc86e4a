"""Dispatch signals consumed and produced by the persistence middleware."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

T = TypeVar("T")


class PersistSignal(Enum):
    """Tag carried by every persistence action."""

    LOAD = "load"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class LoadAction:
    """Request that the persisted state be loaded."""

    signal: ClassVar[PersistSignal] = PersistSignal.LOAD


@dataclass(frozen=True)
class LoadedAction(Generic[T]):
    """State was loaded; ``state`` is None when nothing was persisted."""

    state: T | None = None

    signal: ClassVar[PersistSignal] = PersistSignal.LOADED


@dataclass(frozen=True)
class PersistorErrorAction:
    """A load or save failed. The error itself goes out on the error stream."""

    signal: ClassVar[PersistSignal] = PersistSignal.ERROR


def classify(action: Any) -> PersistSignal | None:
    """Return the persistence tag of ``action``, or None for any other action."""
    signal = getattr(action, "signal", None)
    return signal if isinstance(signal, PersistSignal) else None
