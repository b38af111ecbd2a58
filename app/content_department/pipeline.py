import logging
import time
from typing import Any, Dict, List, Optional

from ..data.data_classes import (
    Article,
    ProcessRequest,
    TranscriptRequest,
    TranscriptSegment,
    segments_to_json,
)
from ..data.result_cache import ResultCache, build_cache_key
from ..data.transcript_manager import TranscriptManager
from ..data.video_id import extract_video_id
from ..errors import CompositionError, ValidationError
from ..utils import log_operation, log_success, log_warning
from .creation_tools.article_generator import ArticleGenerator
from .creation_tools.transcript_refiner import TranscriptRefiner

logger = logging.getLogger(__name__)


def require_video_id(url: Optional[str]) -> str:
    """Validate a request URL and return its video ID, raising ValidationError otherwise."""
    if not url:
        raise ValidationError("YouTube URL is required")
    video_id = extract_video_id(url)
    if not video_id:
        raise ValidationError("Invalid YouTube URL")
    return video_id


class TranscriptPipeline:
    """
    Runs a request through extract -> acquire -> refine -> compose, with caching.

    Public Methods:
    ---------------
    get_transcript(request) -> Dict[str, Any]
        Raw and (optionally) refined transcript for POST /api/transcript.

    process(request) -> Dict[str, Any]
        The combined flow for POST /api/process: transcript, refinement and
        article, with placeholder fallback and provider preference.

    generate_blog(transcript, video_id, video_title) -> Article
        Article composition for an already fetched transcript (POST /api/blog).
    """

    def __init__(
        self,
        transcript_manager: TranscriptManager,
        refiner: TranscriptRefiner,
        article_generator: ArticleGenerator,
        cache: ResultCache,
    ):
        self.transcript_manager = transcript_manager
        self.refiner = refiner
        self.article_generator = article_generator
        self.cache = cache

    # =============================================================================
    # PUBLIC API METHODS
    # =============================================================================

    async def get_transcript(self, request: TranscriptRequest) -> Dict[str, Any]:
        video_id = require_video_id(request.url)
        cache_key = build_cache_key(
            video_id,
            request.language,
            skip_refinement=request.skip_refinement,
            prefix="transcript",
        )

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Cache hit for video {video_id}")
            return cached

        acquisition = await self.transcript_manager.get_transcript(
            video_id, request.language
        )

        result: Dict[str, Any] = {
            "videoId": video_id,
            "raw": segments_to_json(acquisition.transcript),
        }
        if not request.skip_refinement:
            refined = await self.refiner.refine(acquisition.transcript)
            result["refined"] = segments_to_json(refined)

        self.cache.set(cache_key, result)
        return result

    async def process(self, request: ProcessRequest) -> Dict[str, Any]:
        video_id = require_video_id(request.url)
        cache_key = build_cache_key(
            video_id,
            request.language,
            skip_refinement=request.skip_refinement,
            generate_article=request.generate_blog,
            allow_placeholder=request.fallback_message,
            prefer_alternative=request.prefer_alternative_service,
        )

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Cache hit for combined processing of video {video_id}")
            return {**cached, "cached": True}

        log_operation(logger, "process_video", {"video_id": video_id, "cache_key": cache_key})
        started = time.monotonic()

        # 1. Acquire transcript (raises when placeholders are not allowed and every provider failed)
        acquisition = await self.transcript_manager.get_transcript(
            video_id,
            request.language,
            prefer_alternative=request.prefer_alternative_service,
            allow_placeholder=request.fallback_message,
        )
        raw = acquisition.transcript

        # 2. Refine
        refined = None if request.skip_refinement else await self.refiner.refine(raw)

        result: Dict[str, Any] = {
            "videoId": video_id,
            "raw": segments_to_json(raw),
            "refined": segments_to_json(refined),
            "transcriptUnavailable": acquisition.is_placeholder,
            "usedAlternativeService": acquisition.used_alternative,
        }

        # 3. Compose
        if request.generate_blog:
            if acquisition.is_placeholder:
                log_warning(
                    logger,
                    "process_video",
                    "Skipping blog generation for unavailable transcript",
                    {"video_id": video_id},
                )
                result["blog"] = None
            else:
                try:
                    video_title = await self._lookup_title(acquisition, video_id)
                    article = await self.article_generator.compose(
                        refined or raw, video_id, video_title
                    )
                except CompositionError as e:
                    e.partial = result
                    raise
                result["blog"] = article.to_json_dict()

        log_success(
            logger,
            "process_video",
            {"video_id": video_id, "elapsed_ms": int((time.monotonic() - started) * 1000)},
        )

        # Placeholders are not cached so a later request retries the providers
        if not acquisition.is_placeholder:
            self.cache.set(cache_key, result)

        return {**result, "cached": False}

    async def generate_blog(
        self,
        transcript: Optional[List[TranscriptSegment]],
        video_id: Optional[str],
        video_title: Optional[str] = None,
    ) -> Article:
        if not transcript or not video_id:
            raise ValidationError("Both transcript data and videoId are required")
        return await self.article_generator.compose(transcript, video_id, video_title)

    # =============================================================================
    # UTILITY METHODS
    # =============================================================================

    @staticmethod
    async def _lookup_title(acquisition, video_id: str) -> Optional[str]:
        if acquisition.provider is None:
            return None
        availability = await acquisition.provider.check_availability(video_id)
        return availability.get("title")
