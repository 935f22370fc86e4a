"""Storage engines: durable string read/write used by the Persistor."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from statepersist.config import PersistSettings


@runtime_checkable
class StorageEngine(Protocol):
    """Backend that loads and saves the whole persisted string."""

    async def load(self) -> str | None:
        """Return the saved content, or None when nothing is saved."""
        ...

    async def save(self, content: str) -> None:
        """Replace the saved content."""
        ...


class MemoryStorage:
    """Keep the persisted string in memory. Used for tests."""

    def __init__(self, initial: str | None = None):
        self.content = initial

    async def load(self) -> str | None:
        return self.content

    async def save(self, content: str) -> None:
        self.content = content

    def clear(self) -> None:
        self.content = None


class FileStorage:
    """Persist the whole string to a single file.

    Writes go to a temp file next to the target which is then renamed over
    it, so a crash mid-write leaves the previous content intact. Blocking
    file I/O runs in a worker thread.
    """

    def __init__(self, path: str | Path, encoding: str = "utf-8", atomic: bool = True):
        self.path = Path(path)
        self.encoding = encoding
        self.atomic = atomic

    @classmethod
    def from_settings(cls, settings: PersistSettings) -> FileStorage:
        return cls(settings.storage_path, encoding=settings.encoding, atomic=settings.atomic_writes)

    async def load(self) -> str | None:
        return await asyncio.to_thread(self._read)

    async def save(self, content: str) -> None:
        await asyncio.to_thread(self._write, content)

    def clear(self) -> None:
        """Delete the persisted file if it exists."""
        self.path.unlink(missing_ok=True)

    def _read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding=self.encoding)

    def _write(self, content: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.atomic:
            self.path.write_text(content, encoding=self.encoding)
            return

        # Atomic write: write to temp file, then rename
        temp_path = self.path.with_name(f".{self.path.name}.tmp")
        try:
            with open(temp_path, "w", encoding=self.encoding) as f:
                f.write(content)
            os.replace(temp_path, self.path)
        finally:
            # Clean up temp file if it still exists
            if temp_path.exists():
                temp_path.unlink()

    def __repr__(self) -> str:
        return f"FileStorage({str(self.path)!r})"
