"""statepersist Quickstart: Surviving a Restart

This script persists a small counter store to a JSON file. Run it several
times: each run loads the previous counter, migrates it if the file was
written by an older version, increments it and saves it back.

Run with:
    python examples/quickstart.py
"""

import asyncio
from dataclasses import dataclass

from statepersist import (
    FileStorage,
    LoadedAction,
    MigrationRegistry,
    Persistor,
    PersistSettings,
    Store,
)


@dataclass
class AppState:
    counter: int = 0
    label: str = "clicks"


@dataclass(frozen=True)
class Increment:
    pass


def reducer(state: AppState, action) -> AppState:
    if isinstance(action, Increment):
        return AppState(counter=state.counter + 1, label=state.label)
    if isinstance(action, LoadedAction) and action.state is not None:
        return action.state
    return state


migrations = MigrationRegistry()


@migrations.register(1)
def add_label(state):
    # Version 0 files only stored the counter
    return {**state, "label": "clicks"}


async def main():
    settings = PersistSettings(version=1, storage_path="data/quickstart.json", indent=2)
    persistor = Persistor.from_settings(
        settings,
        storage=FileStorage.from_settings(settings),
        decoder=lambda data: AppState(**data),
        migrations=migrations,
    )
    persistor.error_stream.subscribe(lambda error: print(f"Persist error: {error}"))

    middleware = persistor.create_middleware()
    store = Store(reducer, AppState(), middleware=[middleware])

    loaded = await persistor.start(store)
    print(f"Loaded: {loaded}")

    store.dispatch(Increment())
    await middleware.drain()
    print(f"Saved:  {store.state} -> {settings.storage_path}")


if __name__ == "__main__":
    asyncio.run(main())
