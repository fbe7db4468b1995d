"""Surface state models.

A surface is always in exactly one of four states, modelled as a
discriminated union on ``kind``:

    idle -> loading -> ready | error

``ready`` covers every in-book transition (advance, jump, search).
``error`` is left only by a fresh import, which goes back to ``loading``.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class IdleState(BaseModel):
    """No active book."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["idle"] = "idle"


class LoadingState(BaseModel):
    """A cache lookup or extraction is in flight."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["loading"] = "loading"


class ReadyState(BaseModel):
    """Excerpts and the current position are available."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ready"] = "ready"
    content_hash: str
    title: str
    segments: list[str]
    chapters: list[str] | None = None
    current_index: int = 0

    @property
    def total(self) -> int:
        return len(self.segments)

    @property
    def is_last(self) -> bool:
        return self.current_index >= len(self.segments) - 1

    def clamp(self, index: int) -> int:
        """Clamp an index into ``[0, len(segments))``."""
        return max(0, min(index, len(self.segments) - 1))

    def in_range(self, index: int) -> bool:
        return 0 <= index < len(self.segments)


class ErrorState(BaseModel):
    """The last import attempt failed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str


SurfaceState = Annotated[
    IdleState | LoadingState | ReadyState | ErrorState,
    Field(discriminator="kind"),
]
