"""statepersist: versioned persistence of store state across restarts.

Provides the Persistor (load/save with migrations and transforms), the
store middleware that drives it, storage engines and the error hierarchy.
"""

from __future__ import annotations

from statepersist.actions import LoadAction, LoadedAction, PersistorErrorAction, PersistSignal
from statepersist.codec import VersionedCodec, VersionedEnvelope
from statepersist.config import PersistSettings
from statepersist.errors import (
    InvalidVersionError,
    PersistError,
    SerializationError,
    StorageError,
    TransformationError,
)
from statepersist.events import EventStream
from statepersist.middleware import PersistMiddleware
from statepersist.migration import Migration, MigrationRegistry, MigrationResolver
from statepersist.persistor import Persistor
from statepersist.storage import FileStorage, MemoryStorage, StorageEngine
from statepersist.store import Store, StoreLike
from statepersist.transforms import RawTransformer, RawTransforms, Transformer, Transforms

__all__ = [
    "Persistor",
    "PersistMiddleware",
    "PersistSettings",
    "LoadAction",
    "LoadedAction",
    "PersistorErrorAction",
    "PersistSignal",
    "PersistError",
    "StorageError",
    "SerializationError",
    "TransformationError",
    "InvalidVersionError",
    "StorageEngine",
    "FileStorage",
    "MemoryStorage",
    "Transformer",
    "Transforms",
    "RawTransformer",
    "RawTransforms",
    "Migration",
    "MigrationRegistry",
    "MigrationResolver",
    "VersionedCodec",
    "VersionedEnvelope",
    "EventStream",
    "Store",
    "StoreLike",
]
