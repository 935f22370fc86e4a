"""Configuration settings for statepersist.

Uses Pydantic Settings for validation and environment variable support.
All settings can be overridden via STATEPERSIST_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class PersistSettings(BaseSettings):
    """Settings for a Persistor and its file storage."""

    # Version the running code expects; -1 means unversioned
    version: int = -1

    # Log each load/save phase at DEBUG
    debug: bool = False

    # File storage
    storage_path: str = "data/state.json"
    encoding: str = "utf-8"
    atomic_writes: bool = True  # temp file + rename

    # Envelope JSON pretty-printing (None = compact)
    indent: int | None = Field(default=None, ge=0)

    model_config = {"env_prefix": "STATEPERSIST_"}
