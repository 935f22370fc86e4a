"""Versioned envelope codec: wrap state as {"version", "state"} JSON."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from statepersist.errors import SerializationError

Encoder = Callable[[Any], Any]


def to_plain(state: Any) -> Any:
    """Default conversion of typed state into a JSON-compatible value.

    Pydantic models dump in JSON mode, dataclass instances go through
    ``dataclasses.asdict``, objects exposing ``to_json()`` use it. Anything
    else is returned unchanged and left to the JSON encoder.
    """
    if isinstance(state, BaseModel):
        return state.model_dump(mode="json")
    if dataclasses.is_dataclass(state) and not isinstance(state, type):
        return dataclasses.asdict(state)
    to_json = getattr(state, "to_json", None)
    if callable(to_json):
        return to_json()
    return state


@dataclass(frozen=True)
class VersionedEnvelope:
    """Saved state together with the version its shape belongs to."""

    version: int
    state: Any

    def to_dict(self) -> dict[str, Any]:
        return {"version": self.version, "state": self.state}


class VersionedCodec:
    """Encode and decode the on-disk envelope string."""

    def __init__(self, encoder: Encoder | None = None, indent: int | None = None):
        self.encoder = encoder or to_plain
        self.indent = indent

    def encode(self, state: Any, version: int) -> str:
        """Serialize ``state`` at ``version`` to an envelope string.

        Raises:
            SerializationError: If the state cannot be converted or encoded
        """
        try:
            envelope = VersionedEnvelope(version=version, state=self.encoder(state))
            return json.dumps(envelope.to_dict(), indent=self.indent, allow_nan=False)
        except Exception as e:
            raise SerializationError(f"Save: {e}", phase="save", cause=e) from e

    def decode(self, raw: str) -> VersionedEnvelope:
        """Parse an envelope string.

        The parsed value must be an object whose ``version`` is an integer;
        a missing ``state`` key decodes as ``None``.

        Raises:
            SerializationError: On malformed JSON or envelope shape
        """
        try:
            data = json.loads(raw)
        except (ValueError, TypeError) as e:
            raise SerializationError(f"Load: {e}", phase="load", cause=e) from e

        if not isinstance(data, dict):
            raise SerializationError(
                f"Load: expected a JSON object envelope, got {type(data).__name__}", phase="load"
            )

        version = data.get("version")
        if isinstance(version, bool) or not isinstance(version, int):
            raise SerializationError(
                f'Load: envelope "version" must be an integer, got {version!r}', phase="load"
            )

        return VersionedEnvelope(version=version, state=data.get("state"))
