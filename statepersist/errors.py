"""Structured error hierarchy for statepersist."""

from __future__ import annotations


class PersistError(Exception):
    """Base for all statepersist errors.

    Args:
        message: Human readable description
        phase: "load" or "save" when the failure happened inside one of them
        cause: Original exception that was wrapped, if any
    """

    def __init__(
        self,
        message: str,
        phase: str | None = None,
        cause: BaseException | None = None,
    ):
        self.phase = phase
        self.cause = cause
        super().__init__(message)


class StorageError(PersistError):
    """Storage backend load or save failed."""

    pass


class SerializationError(PersistError):
    """Envelope parsing/encoding or state decoding failed."""

    pass


class TransformationError(PersistError):
    """A transform or migration function raised."""

    pass


class InvalidVersionError(PersistError):
    """Saved version is ahead of the running version, or unreachable."""

    def __init__(
        self,
        message: str,
        saved_version: int | None = None,
        target_version: int | None = None,
        phase: str | None = "load",
    ):
        self.saved_version = saved_version
        self.target_version = target_version
        super().__init__(message, phase=phase)
