# src/pipeline/stages/ai_identifier.py - v2
"""Generative-model fallback identification.

Images go to the vision backend first (better OCR of on-screen titles and
platform branding); if it finds nothing or fails, the text backend is asked
to list every title visible in the image. Text and URL queries only use the
text backend; URLs are first condensed into page context.

Both backends answer JSON. A "not found" sentinel is an empty result; a
response that is not JSON is UpstreamMalformed, absorbed like any other
upstream failure.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from reelfinder.core.errors import UPSTREAM_ERRORS, UpstreamMalformed, UpstreamUnavailable
from reelfinder.core.models import ContentQuery, IdentifiedContent, ImageQuery, MediaKind
from reelfinder.core.retry import RetryConfig, with_retry
from reelfinder.llm.base_client import BaseLLMClient
from reelfinder.llm.models import ImageInput, LLMResponse, Message
from reelfinder.pipeline.stages.base_stage import BaseStage
from reelfinder.pipeline.state import PipelineStep
from reelfinder.providers.web_page import WebPageClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

IMAGE_LIST_INSTRUCTION = "Identify all movies/TV shows/videos in this image. Be specific with titles."

_CONFIDENCE_WORDS = {"high": 0.95, "medium": 0.8}
VISION_LOW_CONFIDENCE = 0.7
TEXT_LOW_CONFIDENCE = 0.6

_KINDS = {
    "movie": MediaKind.MOVIE,
    "film": MediaKind.MOVIE,
    "tv": MediaKind.SERIES,
    "series": MediaKind.SERIES,
    "show": MediaKind.SERIES,
    "special": MediaKind.SERIES,
    "documentary": MediaKind.DOCUMENTARY,
    "youtube": MediaKind.VIDEO,
    "video": MediaKind.VIDEO,
}

_YEAR_RE = re.compile(r"\b(1[89]\d{2}|2\d{3})\b")


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Prompt template from the prompts directory."""
    return (_PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8")


def strip_fences(content: str) -> str:
    """Remove markdown code fences around a JSON answer."""
    text = content.strip()
    if "```" in text:
        lines = [line for line in text.split("\n") if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text


def parse_records(content: str, service: str = "llm") -> list[dict[str, Any]]:
    """Decode a model answer into a list of candidate records.

    Returns:
        [] for an empty answer or the {"error": ...} sentinel, otherwise one
        dict per identified title.

    Raises:
        UpstreamMalformed: The answer is not JSON or has the wrong shape.
    """
    text = strip_fences(content)
    if not text:
        return []
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise UpstreamMalformed(service, f"answer is not JSON: {e}") from e

    if isinstance(parsed, dict):
        if parsed.get("error"):
            logger.info("Model reported no content: %s", parsed["error"])
            return []
        return [parsed]
    if isinstance(parsed, list):
        return [item for item in parsed if isinstance(item, dict)]
    raise UpstreamMalformed(service, f"unexpected JSON type {type(parsed).__name__}")


def map_confidence(value: Any, low: float) -> float:
    """Qualitative or numeric model confidence -> [0, 1]."""
    if isinstance(value, bool):
        return low
    if isinstance(value, (int, float)):
        return max(0.0, min(float(value), 1.0))
    if isinstance(value, str):
        return _CONFIDENCE_WORDS.get(value.strip().lower(), low)
    return low


def map_kind(value: Any) -> MediaKind:
    if isinstance(value, str):
        return _KINDS.get(value.strip().lower(), MediaKind.MOVIE)
    return MediaKind.MOVIE


def _parse_year(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else 0
    if isinstance(value, str):
        match = _YEAR_RE.search(value)
        return int(match.group(1)) if match else 0
    return 0


def _parse_genres(value: Any) -> list[str]:
    if isinstance(value, str):
        return [g.strip() for g in value.split(",") if g.strip()]
    if isinstance(value, list):
        return [str(g).strip() for g in value if str(g).strip()]
    return []


def _parse_rating(value: Any) -> float:
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(rating, 10.0))


def _parse_runtime(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return f"{int(value)} min"
    return str(value)


def record_to_content(record: dict[str, Any], low_confidence: float) -> IdentifiedContent | None:
    """Convert one model record; None when it carries no title."""
    title = str(record.get("title") or "").strip()
    if not title:
        return None
    year = _parse_year(record.get("year"))
    return IdentifiedContent(
        title=title,
        year=year,
        media_kind=map_kind(record.get("type")),
        genres=_parse_genres(record.get("genre")),
        rating=_parse_rating(record.get("rating")),
        runtime=_parse_runtime(record.get("runtime")),
        synopsis=str(record.get("plot") or ""),
        confidence=map_confidence(record.get("confidence"), low_confidence),
        release_date=f"{year}-01-01" if year else None,
    )


class AiIdentifierStage(BaseStage):
    """Last-resort identification through generative models.

    Args:
        text_client: Text backend (all query kinds; image fallback).
        vision_client: Preferred backend for images. Optional.
        web_page: Fetches page context for URL queries.
        prefer_vision: Try the vision backend first for images.
        temperature: Sampling temperature for both backends.
        max_tokens_image: Output budget for image prompts.
        max_tokens_text: Output budget for text and URL prompts.
        retry: Retry budget for each model call.
    """

    def __init__(
        self,
        text_client: BaseLLMClient | None,
        vision_client: BaseLLMClient | None = None,
        web_page: WebPageClient | None = None,
        prefer_vision: bool = True,
        temperature: float = 0.1,
        max_tokens_image: int = 1000,
        max_tokens_text: int = 800,
        retry: RetryConfig | None = None,
    ) -> None:
        self._text = text_client
        self._vision = vision_client
        self._web_page = web_page
        self._prefer_vision = prefer_vision
        self._temperature = temperature
        self._max_tokens_image = max_tokens_image
        self._max_tokens_text = max_tokens_text
        self._retry = retry or RetryConfig()

    @property
    def name(self) -> str:
        return "ai_identifier"

    @property
    def step(self) -> PipelineStep:
        return PipelineStep.AI_FALLBACK

    @property
    def available(self) -> bool:
        return self._text is not None or self._vision is not None

    async def resolve(self, query: ContentQuery) -> list[IdentifiedContent]:
        if isinstance(query, ImageQuery):
            return await self._identify_image(query)
        if self._text is None:
            logger.info("No text backend configured for %s query", query.kind)
            return []

        if query.kind == "url":
            context = await self._url_context(query.raw)
            system = load_prompt("identify_url")
        else:
            context = query.raw
            system = load_prompt("identify_text")

        response = await self._call(
            self._text,
            self._text.complete,
            messages=[Message(role="user", content=context)],
            system=system,
            max_tokens=self._max_tokens_text,
            temperature=self._temperature,
        )
        return self._to_results(response, self._text, TEXT_LOW_CONFIDENCE)

    # --- Image path ---

    async def _identify_image(self, query: ImageQuery) -> list[IdentifiedContent]:
        image = ImageInput(data=query.data, media_type=query.mime_type)

        use_vision = self._prefer_vision or self._text is None
        if use_vision and self._vision is not None:
            try:
                results = await self._identify_with_vision(image)
            except UPSTREAM_ERRORS as e:
                logger.warning("Vision backend failed, falling back: %s", e)
                results = []
            if results:
                return results
            logger.info("Vision backend found nothing; trying text backend")

        if self._text is None:
            return []
        response = await self._call(
            self._text,
            self._text.complete_with_vision,
            messages=[Message(role="user", content=IMAGE_LIST_INSTRUCTION)],
            images=[image],
            system=load_prompt("identify_image_list"),
            max_tokens=self._max_tokens_image,
            temperature=self._temperature,
        )
        return self._to_results(response, self._text, TEXT_LOW_CONFIDENCE)

    async def _identify_with_vision(self, image: ImageInput) -> list[IdentifiedContent]:
        response = await self._call(
            self._vision,
            self._vision.complete_with_vision,
            messages=[Message(role="user", content=load_prompt("identify_image_vision"))],
            images=[image],
            max_tokens=self._max_tokens_image,
            temperature=self._temperature,
        )
        records = parse_records(response.content, self._vision.provider_name)
        for record in records:
            if record.get("ocr_text"):
                logger.debug("OCR text: %s", record["ocr_text"])
            if record.get("platform_detected"):
                logger.debug("Platform detected: %s", record["platform_detected"])
            if record.get("image_type"):
                logger.debug("Image type: %s", record["image_type"])
        return self._records_to_results(records, VISION_LOW_CONFIDENCE)

    # --- Internal helpers ---

    async def _url_context(self, url: str) -> str:
        if self._web_page is None:
            return url
        return await self._web_page.fetch_context(url)

    async def _call(self, client: BaseLLMClient, method: Any, **kwargs: Any) -> LLMResponse:
        """Model call under the retry budget; SDK errors become UpstreamUnavailable."""
        try:
            return await with_retry(
                method, label=f"llm.{client.provider_name}", config=self._retry, **kwargs,
            )
        except Exception as e:
            raise UpstreamUnavailable(client.provider_name, str(e)) from e

    def _to_results(
        self, response: LLMResponse, client: BaseLLMClient, low_confidence: float
    ) -> list[IdentifiedContent]:
        records = parse_records(response.content, client.provider_name)
        return self._records_to_results(records, low_confidence)

    @staticmethod
    def _records_to_results(
        records: list[dict[str, Any]], low_confidence: float
    ) -> list[IdentifiedContent]:
        results: list[IdentifiedContent] = []
        for record in records:
            content = record_to_content(record, low_confidence)
            if content is None:
                logger.debug("Dropping record without title: %s", record)
                continue
            results.append(content)
        return results
