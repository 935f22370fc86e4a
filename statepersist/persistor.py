"""Persistor: versioned load/save of application state.

Load path:  storage -> raw transforms -> parse envelope -> migrate -> decode
            -> typed transforms
Save path:  typed transforms -> encode envelope -> raw transforms -> storage

Every failure is wrapped into one of the ``statepersist.errors`` kinds and
raised to the caller of ``load``/``save``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from statepersist.actions import LoadAction
from statepersist.codec import Encoder, VersionedCodec
from statepersist.errors import InvalidVersionError, SerializationError, StorageError
from statepersist.events import EventStream
from statepersist.migration import Migration, MigrationResolver
from statepersist.storage import StorageEngine
from statepersist.transforms import RawTransforms, TransformPipeline, Transforms

if TYPE_CHECKING:
    from statepersist.config import PersistSettings
    from statepersist.middleware import PersistMiddleware
    from statepersist.store import StoreLike

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[Any], T]


class Persistor(Generic[T]):
    """Save and load state of type ``T`` through a storage engine."""

    def __init__(
        self,
        storage: StorageEngine,
        decoder: Decoder[T],
        version: int = -1,
        migrations: Mapping[int, Migration] | None = None,
        transforms: Transforms[T] | None = None,
        raw_transforms: RawTransforms | None = None,
        encoder: Encoder | None = None,
        indent: int | None = None,
        debug: bool = False,
    ):
        """Initialize persistor.

        Args:
            storage: Engine the envelope string is read from and written to
            decoder: Turns migrated plain state into ``T``
            version: Version the running code expects (-1 = unversioned)
            migrations: Version -> migration function, see MigrationRegistry
            transforms: Typed transforms run after decode / before encode
            raw_transforms: String transforms run before parse / after encode
            encoder: Turns ``T`` into plain JSON data (default: ``to_plain``)
            indent: JSON indent for the saved envelope
            debug: Log every load/save phase at DEBUG
        """
        self.storage = storage
        self.decoder = decoder
        self.version = version
        self.debug = debug
        self.pipeline: TransformPipeline[T] = TransformPipeline(transforms, raw_transforms)
        self.resolver = MigrationResolver(migrations)
        self.codec = VersionedCodec(encoder=encoder, indent=indent)

        self._load_stream: EventStream[T | None] = EventStream("load")
        self._error_stream: EventStream[Exception] = EventStream("error")
        self._loaded = False

    @classmethod
    def from_settings(
        cls,
        settings: PersistSettings,
        storage: StorageEngine,
        decoder: Decoder[T],
        **kwargs: Any,
    ) -> Persistor[T]:
        """Build a persistor taking version, indent and debug from settings."""
        kwargs.setdefault("version", settings.version)
        kwargs.setdefault("indent", settings.indent)
        kwargs.setdefault("debug", settings.debug)
        return cls(storage, decoder, **kwargs)

    @property
    def loaded(self) -> bool:
        """True once a load has succeeded."""
        return self._loaded

    @property
    def load_stream(self) -> EventStream[T | None]:
        """Stream of states after each successful load."""
        return self._load_stream

    @property
    def error_stream(self) -> EventStream[Exception]:
        """Stream of errors caught by the middleware."""
        return self._error_stream

    async def load(self) -> T | None:
        """Load state from storage.

        Returns None when storage holds nothing.

        Raises:
            StorageError, SerializationError, TransformationError,
            InvalidVersionError
        """
        self._debug("Starting loading")

        try:
            raw = await self.storage.load()
        except Exception as e:
            raise StorageError(f"Load: {e}", phase="load", cause=e) from e

        state: T | None = None
        if raw:
            state = self._restore(raw)

        self._debug("Done loading")

        self._loaded = True
        self._load_stream.emit(state)
        return state

    async def save(self, state: T) -> None:
        """Save ``state`` to storage.

        Raises:
            StorageError, SerializationError, TransformationError
        """
        self._debug("Start saving")

        state = self.pipeline.apply_save_typed(state)
        raw = self.codec.encode(state, self.version)
        raw = self.pipeline.apply_save_raw(raw)

        try:
            await self.storage.save(raw)
        except Exception as e:
            raise StorageError(f"Save: {e}", phase="save", cause=e) from e

        self._debug("Done saving")

    def create_middleware(self) -> PersistMiddleware[T]:
        """Middleware that loads on LoadAction and saves after every other action."""
        from statepersist.middleware import PersistMiddleware

        return PersistMiddleware(self)

    async def start(self, store: StoreLike) -> T | None:
        """Dispatch a LoadAction to ``store`` and wait for the loaded state.

        ``store`` must have this persistor's middleware installed. If the load
        fails, the error published on the error stream is raised here instead.
        Do not call twice concurrently: both calls resolve on the first load.
        """
        self._debug("Starting")

        result: asyncio.Future[T | None] = asyncio.get_running_loop().create_future()

        def on_loaded(state: T | None) -> None:
            if not result.done():
                result.set_result(state)

        def on_error(error: Exception) -> None:
            if getattr(error, "phase", None) == "load" and not result.done():
                result.set_exception(error)

        # Subscribe before dispatching; streams do not replay
        unsubscribe_loaded = self._load_stream.subscribe(on_loaded)
        unsubscribe_error = self._error_stream.subscribe(on_error)
        try:
            store.dispatch(LoadAction())
            return await result
        finally:
            unsubscribe_loaded()
            unsubscribe_error()

    def _restore(self, raw: str) -> T:
        raw = self.pipeline.apply_load_raw(raw)
        envelope = self.codec.decode(raw)

        if envelope.version > self.version:
            # The version saved is higher than the current version, something is wrong
            raise InvalidVersionError(
                f'Version "{envelope.version}" is higher than current version "{self.version}".',
                saved_version=envelope.version,
                target_version=self.version,
            )

        plain = envelope.state
        if envelope.version < self.version:
            self._debug(f"Migrating from version {envelope.version} to {self.version}")
            plain = self.resolver.resolve(envelope.version, self.version, plain)

        try:
            state = self.decoder(plain)
        except Exception as e:
            raise SerializationError(f"Load decode state: {e}", phase="load", cause=e) from e

        return self.pipeline.apply_load_typed(state)

    def _debug(self, message: str) -> None:
        if self.debug:
            logger.debug(f"Persistor debug: {message}")
