"""Tests for migration registry and resolution.

Verifies:
- Each migration runs exactly once, in increasing version order
- Sparse registries are walked through their registered keys
- Downgrades and gaps fail with InvalidVersionError before any migration
- Raising migrations surface as TransformationError
"""

from __future__ import annotations

import logging

import pytest

from statepersist.errors import InvalidVersionError, TransformationError
from statepersist.migration import MigrationRegistry, MigrationResolver, resolve


def tracking_registry(versions, calls):
    """Registry whose migrations append their version to ``state`` and ``calls``."""
    registry = MigrationRegistry()
    for version in versions:

        def migrate(state, version=version):
            calls.append(version)
            return state + [version]

        registry.add(version, migrate)
    return registry


class TestMigrationResolver:
    """Test version chain resolution."""

    def test_same_version_runs_nothing(self):
        calls = []
        registry = tracking_registry([1, 2], calls)

        assert MigrationResolver(registry).resolve(2, 2, ["saved"]) == ["saved"]
        assert calls == []

    def test_contiguous_chain_runs_each_step_once(self):
        calls = []
        registry = tracking_registry([3, 1, 2], calls)

        result = MigrationResolver(registry).resolve(0, 3, [])

        assert result == [1, 2, 3]
        assert calls == [1, 2, 3]

    def test_sparse_chain_uses_closest_forward_step(self):
        calls = []
        registry = tracking_registry([2, 5, 9], calls)

        result = MigrationResolver(registry).resolve(1, 9, [])

        assert result == [2, 5, 9]

    def test_starts_after_saved_version(self):
        """Migrations at or below the saved version never run."""
        calls = []
        registry = tracking_registry([0, 1, 2], calls)

        MigrationResolver(registry).resolve(1, 2, [])

        assert calls == [2]

    def test_unversioned_state_migrates_fully(self, counter_migrations):
        """Version -1 walks every registered migration up to the target."""
        assert resolve(-1, 1, {"counter": 0}, counter_migrations) == {"counter": 6}

    def test_partial_migration_from_old_version(self, counter_migrations):
        assert resolve(0, 1, {"counter": 0}, counter_migrations) == {"counter": 1}

    def test_downgrade_fails_without_running_migrations(self):
        calls = []
        registry = tracking_registry([1, 2], calls)

        with pytest.raises(InvalidVersionError) as exc_info:
            MigrationResolver(registry).resolve(5, 1, [])

        assert calls == []
        assert exc_info.value.saved_version == 5
        assert exc_info.value.target_version == 1

    def test_gap_fails_without_touching_state(self):
        """No key above an intermediate version: fail before migrating anything."""
        calls = []
        registry = tracking_registry([1, 2], calls)
        saved = ["original"]

        with pytest.raises(InvalidVersionError, match='No more migrations after version "2"'):
            MigrationResolver(registry).resolve(0, 4, saved)

        assert calls == []
        assert saved == ["original"]

    def test_step_past_target_fails_without_migrating(self):
        """A registry whose next key overshoots the target has no valid path."""
        calls = []
        registry = tracking_registry([2], calls)

        with pytest.raises(InvalidVersionError, match='No migration path from "0" to "1"'):
            MigrationResolver(registry).resolve(0, 1, [])

        assert calls == []

    def test_overshoot_after_partial_chain_fails(self):
        calls = []
        registry = tracking_registry([1, 3], calls)

        with pytest.raises(InvalidVersionError):
            MigrationResolver(registry).resolve(0, 2, [])

        assert calls == []
        assert registry.path(0, 3) == [1, 3]

    def test_empty_registry_cannot_advance(self):
        with pytest.raises(InvalidVersionError):
            resolve(0, 1, {}, None)

    def test_failing_migration_is_transformation_error(self):
        registry = MigrationRegistry({1: lambda state: state["missing"]})

        with pytest.raises(TransformationError) as exc_info:
            MigrationResolver(registry).resolve(0, 1, {})

        assert isinstance(exc_info.value.cause, KeyError)
        assert 'version "1"' in str(exc_info.value)


class TestMigrationRegistry:
    """Test registry construction and lookup."""

    def test_register_decorator(self):
        registry = MigrationRegistry()

        @registry.register(2)
        def rename(state):
            return {"count": state["counter"]}

        assert registry[2] is rename
        assert 2 in registry
        assert len(registry) == 1

    def test_iterates_in_version_order(self):
        registry = MigrationRegistry({3: str, 1: str, 2: str})

        assert list(registry) == [1, 2, 3]

    def test_next_version(self):
        registry = MigrationRegistry({0: str, 4: str})

        assert registry.next_version(-1) == 0
        assert registry.next_version(0) == 4
        assert registry.next_version(4) is None

    def test_path(self):
        registry = MigrationRegistry({0: str, 4: str, 7: str})

        assert registry.path(-1, 7) == [0, 4, 7]
        assert registry.path(4, 4) == []

    def test_override_logs_warning(self, caplog):
        registry = MigrationRegistry()
        registry.add(1, str)

        with caplog.at_level(logging.WARNING, logger="statepersist.migration"):
            registry.add(1, repr)

        assert registry[1] is repr
        assert "already registered" in caplog.text

    def test_rejects_non_integer_versions(self):
        registry = MigrationRegistry()

        with pytest.raises(TypeError):
            registry.add("1", str)
        with pytest.raises(TypeError):
            registry.add(True, str)

    def test_resolver_accepts_plain_dict(self, counter_migrations):
        resolver = MigrationResolver(counter_migrations)

        assert isinstance(resolver.registry, MigrationRegistry)
        assert list(resolver.registry) == [0, 1]
