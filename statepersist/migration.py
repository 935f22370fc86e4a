"""Schema migration: walk saved state forward to the running version.

A registry maps a version number to the function that turns state shaped
for the closest lower registered version into state shaped for that
version. Keys need not be contiguous.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from statepersist.errors import InvalidVersionError, TransformationError

logger = logging.getLogger(__name__)

Migration = Callable[[Any], Any]


class MigrationRegistry(Mapping[int, Migration]):
    """Read-only mapping of version -> migration, with decorator registration.

    Usage:
        migrations = MigrationRegistry()

        @migrations.register(1)
        def add_counter(state):
            return {**state, "counter": 0}

    Keys are unique by construction; registering an existing version
    replaces the old function.
    """

    def __init__(self, migrations: Mapping[int, Migration] | None = None):
        self._migrations: dict[int, Migration] = {}
        for version, migration in (migrations or {}).items():
            self.add(version, migration)

    def register(self, version: int) -> Callable[[Migration], Migration]:
        """Decorator to register a migration that produces ``version``."""

        def decorator(migration: Migration) -> Migration:
            self.add(version, migration)
            return migration

        return decorator

    def add(self, version: int, migration: Migration) -> None:
        if isinstance(version, bool) or not isinstance(version, int):
            raise TypeError(f"Migration version must be an int, got {version!r}")
        if version in self._migrations:
            logger.warning(f"Migration for version {version} already registered, overriding")
        self._migrations[version] = migration
        logger.debug(f"Registered migration: {version}")

    def next_version(self, saved_version: int) -> int | None:
        """Lowest registered version strictly greater than ``saved_version``."""
        candidates = [v for v in self._migrations if v > saved_version]
        return min(candidates) if candidates else None

    def path(self, saved_version: int, target_version: int) -> list[int]:
        """Versions whose migrations would run, in order.

        Raises:
            InvalidVersionError: If the target is behind the saved version or
                no chain of registered versions lands exactly on it
        """
        if saved_version > target_version:
            raise InvalidVersionError(
                f'Version "{saved_version}" is higher than current version "{target_version}".',
                saved_version=saved_version,
                target_version=target_version,
            )

        steps: list[int] = []
        current = saved_version
        while current < target_version:
            nxt = self.next_version(current)
            if nxt is None:
                raise InvalidVersionError(
                    f'No more migrations after version "{current}"',
                    saved_version=saved_version,
                    target_version=target_version,
                )
            if nxt > target_version:
                raise InvalidVersionError(
                    f'No migration path from "{current}" to "{target_version}"',
                    saved_version=saved_version,
                    target_version=target_version,
                )
            steps.append(nxt)
            current = nxt
        return steps

    def __getitem__(self, version: int) -> Migration:
        return self._migrations[version]

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._migrations))

    def __len__(self) -> int:
        return len(self._migrations)

    def __repr__(self) -> str:
        return f"MigrationRegistry(versions={list(self)})"


class MigrationResolver:
    """Bring saved plain state up to the target version."""

    def __init__(self, registry: Mapping[int, Migration] | None = None):
        if isinstance(registry, MigrationRegistry):
            self.registry = registry
        else:
            self.registry = MigrationRegistry(registry)

    def resolve(self, saved_version: int, target_version: int, saved_state: Any) -> Any:
        """Apply each needed migration once, in increasing version order.

        The whole path is computed before any migration runs, so an
        unreachable target fails without calling a single migration.

        Raises:
            InvalidVersionError: Downgrade requested or no path exists
            TransformationError: A migration function raised
        """
        steps = self.registry.path(saved_version, target_version)

        state = saved_state
        for version in steps:
            try:
                state = self.registry[version](state)
            except Exception as e:
                raise TransformationError(
                    f'Migration to version "{version}": {e}', phase="load", cause=e
                ) from e
            logger.debug(f"Migrated state to version {version}")
        return state


def resolve(
    saved_version: int,
    target_version: int,
    saved_state: Any,
    registry: Mapping[int, Migration] | None = None,
) -> Any:
    """Functional shortcut for ``MigrationResolver(registry).resolve(...)``."""
    return MigrationResolver(registry).resolve(saved_version, target_version, saved_state)
