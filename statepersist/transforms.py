"""Ordered transform pipeline applied around load and save.

Typed transforms operate on the decoded application state; raw transforms
operate on the serialized envelope string. Each list runs strictly in the
declared order.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from statepersist.errors import TransformationError

T = TypeVar("T")
V = TypeVar("V")

Transformer = Callable[[T], T]
RawTransformer = Callable[[str], str]


@dataclass
class Transforms(Generic[T]):
    """Transforms applied to typed state after decode and before encode."""

    on_load: list[Transformer[T]] = field(default_factory=list)
    on_save: list[Transformer[T]] = field(default_factory=list)


@dataclass
class RawTransforms:
    """Transforms applied to the serialized envelope string."""

    on_load: list[RawTransformer] = field(default_factory=list)
    on_save: list[RawTransformer] = field(default_factory=list)


def _run(value: V, steps: Sequence[Callable[[V], V]], label: str, phase: str) -> V:
    for step in steps:
        try:
            value = step(value)
        except Exception as e:
            raise TransformationError(f"{label}: {e}", phase=phase, cause=e) from e
    return value


class TransformPipeline(Generic[T]):
    """Apply typed and raw transforms for each phase."""

    def __init__(
        self,
        transforms: Transforms[T] | None = None,
        raw_transforms: RawTransforms | None = None,
    ):
        self.transforms = transforms or Transforms()
        self.raw_transforms = raw_transforms or RawTransforms()

    def apply_load_raw(self, raw: str) -> str:
        """Run raw on-load transforms before the envelope is parsed."""
        return _run(raw, self.raw_transforms.on_load, "Load raw transformation", "load")

    def apply_save_raw(self, raw: str) -> str:
        """Run raw on-save transforms after the envelope is encoded."""
        return _run(raw, self.raw_transforms.on_save, "Save raw transformation", "save")

    def apply_load_typed(self, state: T) -> T:
        """Run typed on-load transforms after the state is decoded."""
        return _run(state, self.transforms.on_load, "Load transformation", "load")

    def apply_save_typed(self, state: T) -> T:
        """Run typed on-save transforms before the state is encoded."""
        return _run(state, self.transforms.on_save, "Save transformation", "save")
