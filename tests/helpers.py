"""Test helpers shared across the statepersist test suite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from statepersist.actions import LoadedAction
from statepersist.storage import MemoryStorage

DEFAULT_DISK = '{ "version": -1, "state": { "counter": 0 } }'


@dataclass
class CounterState:
    """Application state used across the tests."""

    counter: int = 0

    @classmethod
    def from_json(cls, data: Any) -> CounterState:
        return cls(counter=data["counter"])


@dataclass(frozen=True)
class SetCounterAction:
    value: int


def counter_reducer(state: CounterState, action: Any) -> CounterState:
    """Reducer handling counter updates and loaded state."""
    if isinstance(action, SetCounterAction):
        return CounterState(counter=action.value)
    if isinstance(action, LoadedAction) and action.state is not None:
        return action.state
    return state


class RecordingStorage(MemoryStorage):
    """MemoryStorage that records every call and can be told to fail."""

    def __init__(self, initial: str | None = DEFAULT_DISK):
        super().__init__(initial)
        self.loads = 0
        self.saves: list[str] = []
        self.fail_load: Exception | None = None
        self.fail_save: Exception | None = None

    async def load(self) -> str | None:
        self.loads += 1
        if self.fail_load is not None:
            raise self.fail_load
        return await super().load()

    async def save(self, content: str) -> None:
        if self.fail_save is not None:
            raise self.fail_save
        self.saves.append(content)
        await super().save(content)
