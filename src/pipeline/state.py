# src/pipeline/state.py - v2
"""Per-request pipeline state.

A PipelineRun is created for every identification request and records the
ordered states it visited, so the cascade can be audited in logs and tests.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from reelfinder.core.models import IdentifiedContent


class PipelineStep(str, Enum):
    """States of the identification cascade, in order."""

    CACHE_LOOKUP = "cache_lookup"
    DIRECT_ID = "direct_id"
    FUZZY_CATALOG = "fuzzy_catalog"
    AI_FALLBACK = "ai_fallback"
    ENRICHMENT = "enrichment"
    CACHE_WRITE = "cache_write"
    DONE = "done"


class PipelineRun(BaseModel):
    """State accumulated by one request as it moves through the cascade."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    input_hash: str = ""
    content_type: str = ""
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    trace: list[PipelineStep] = Field(default_factory=list)
    resolved_by: str | None = None
    cache_hit: bool = False
    hit_count: int = 0
    results: list[IdentifiedContent] = Field(default_factory=list)

    def visit(self, step: PipelineStep) -> None:
        """Record entry into a state (consecutive repeats collapse)."""
        if not self.trace or self.trace[-1] is not step:
            self.trace.append(step)

    @property
    def finished(self) -> bool:
        return bool(self.trace) and self.trace[-1] is PipelineStep.DONE

    def trace_str(self) -> str:
        return " -> ".join(step.value for step in self.trace)
