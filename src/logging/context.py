# src/logging/context.py - v2
"""Contextual logging support: attach request_id, run_id and stage to records.

Context variables are per asyncio task, so concurrent requests served by the
same process never see each other's identifiers.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Snapshot of the current logging context."""

    request_id: str | None = None
    run_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        run_id=_run_id.get(),
        stage=_stage.get(),
    )


def set_request_context(request_id: str | None, run_id: str | None = None) -> None:
    """Set request-level context (called once per identification request)."""
    _request_id.set(request_id)
    _run_id.set(run_id)


@contextmanager
def stage_context(stage: str) -> Iterator[None]:
    """Tag every record emitted inside the block with the stage name."""
    token = _stage.set(stage)
    try:
        yield
    finally:
        _stage.reset(token)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _run_id.set(None)
    _stage.set(None)
