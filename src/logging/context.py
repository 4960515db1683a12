# src/logging/context.py — v1
"""Contextual logging support — attach artifact, mode and generation to log records.

Each analysis runs in its own asyncio task, so context variables set by one
artifact's pipeline never leak into another's log lines.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_artifact_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "artifact_id", default=None
)
_mode: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "mode", default=None
)
_generation: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "generation", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    artifact_id: str | None = None
    mode: str | None = None
    generation: int | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        artifact_id=_artifact_id.get(),
        mode=_mode.get(),
        generation=_generation.get(),
    )


def set_analysis_context(artifact_id: str, mode: str, generation: int) -> None:
    """Set per-analysis context (called once per pipeline invocation)."""
    _artifact_id.set(artifact_id)
    _mode.set(mode)
    _generation.set(generation)


def clear_context() -> None:
    """Reset all context variables."""
    _artifact_id.set(None)
    _mode.set(None)
    _generation.set(None)
