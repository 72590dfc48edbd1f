# src/pipeline/stages/base_stage.py - v1
"""Standard interface for resolution stages.

A stage either produces results (the cascade stops there) or produces an
empty list (the cascade moves on). Expected upstream failures are absorbed
here so concrete stages only implement the happy path.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from reelfinder.core.errors import UPSTREAM_ERRORS
from reelfinder.core.models import ContentQuery, IdentifiedContent
from reelfinder.logging.context import stage_context
from reelfinder.pipeline.state import PipelineStep

logger = logging.getLogger(__name__)


class BaseStage(ABC):
    """One step of the identification cascade."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique stage identifier (e.g., 'video_link', 'catalog_search')."""

    @property
    @abstractmethod
    def step(self) -> PipelineStep:
        """Pipeline state this stage belongs to."""

    @property
    def available(self) -> bool:
        """False when the collaborators this stage needs are not configured."""
        return True

    def applies_to(self, query: ContentQuery) -> bool:
        """Whether this stage handles the given query kind."""
        return True

    async def run(self, query: ContentQuery) -> list[IdentifiedContent]:
        """Run the stage; never raises for expected upstream failures.

        Returns:
            Identified titles, or [] to let the next stage try.
        """
        if not self.applies_to(query):
            return []
        if not self.available:
            logger.info("Stage %s skipped: not configured", self.name)
            return []

        with stage_context(self.name):
            try:
                results = await self.resolve(query)
            except UPSTREAM_ERRORS as e:
                logger.warning("Stage %s absorbed upstream failure: %s", self.name, e)
                return []

        if results:
            logger.info("Stage %s resolved %d result(s)", self.name, len(results))
        else:
            logger.info("Stage %s: no result", self.name)
        return results

    @abstractmethod
    async def resolve(self, query: ContentQuery) -> list[IdentifiedContent]:
        """Stage logic. May raise UpstreamUnavailable/UpstreamMalformed."""
