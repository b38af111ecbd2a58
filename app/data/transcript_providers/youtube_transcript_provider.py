import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import (
    TranscriptsDisabled,
    NoTranscriptFound,
    VideoUnavailable,
    InvalidVideoId,
    CouldNotRetrieveTranscript,
)

from ...errors import (
    ProviderError,
    TranscriptError,
    TranscriptNotFoundError,
    VideoUnavailableError,
)
from ...utils import log_operation, log_success, log_warning
from ..data_classes import TranscriptProviderName, TranscriptSegment
from .base_provider import BaseTranscriptProvider

logger = logging.getLogger(__name__)

OEMBED_URL = "https://www.youtube.com/oembed"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


def fetch_oembed(video_id: str, timeout: float = 10) -> Dict[str, Any]:
    """Fetch public oEmbed metadata (title, author, thumbnail) for a video."""
    response = requests.get(
        OEMBED_URL,
        params={"url": WATCH_URL.format(video_id=video_id), "format": "json"},
        timeout=timeout,
    )
    response.raise_for_status()
    return response.json()


class YouTubeTranscriptProvider(BaseTranscriptProvider):
    """
    Transcript provider backed by the YouTube Transcript API.

    Degrades internally through several language permutations before giving
    up: requested language, then whatever track is listed first, then English,
    then the requested language with a region suffix. Callers only see the
    final success or failure.
    """

    name = TranscriptProviderName.YOUTUBE_TRANSCRIPT_API.value
    is_alternative = False

    def __init__(
        self,
        region: str = "US",
        text_query=None,
        ytt_api: Optional[YouTubeTranscriptApi] = None,
    ):
        super().__init__(text_query)
        self.region = region
        self.ytt_api = ytt_api or YouTubeTranscriptApi()

    # =============================================================================
    # PUBLIC API METHODS
    # =============================================================================

    async def fetch_transcript(
        self, video_id: str, language: str = "en"
    ) -> List[TranscriptSegment]:
        return await asyncio.to_thread(self._fetch_with_fallbacks, video_id, language)

    async def check_availability(self, video_id: str) -> Dict[str, Any]:
        try:
            data = await asyncio.to_thread(fetch_oembed, video_id)
            return {"exists": True, "title": data.get("title")}
        except (requests.RequestException, ValueError) as e:
            log_warning(
                logger, "check_availability", str(e), {"video_id": video_id}
            )
            return {"exists": False, "title": None}

    # =============================================================================
    # FETCH METHODS
    # =============================================================================

    def language_attempts(self, language: str) -> List[Optional[str]]:
        """
        Ordered language codes to try. None means "no preference, take the first listed track".
        """
        base_language = (language or "en").split("-")[0]
        candidates = [language or "en", None, "en", f"{base_language}-{self.region}"]

        attempts: List[Optional[str]] = []
        for candidate in candidates:
            if candidate not in attempts:
                attempts.append(candidate)
        return attempts

    def _fetch_with_fallbacks(
        self, video_id: str, language: str
    ) -> List[TranscriptSegment]:
        last_error: Optional[TranscriptError] = None

        for attempt in self.language_attempts(language):
            log_operation(
                logger,
                "fetch_transcript",
                {"video_id": video_id, "language": attempt or "any", "provider": self.name},
            )
            try:
                segments = self._fetch_once(video_id, attempt)
                log_success(
                    logger,
                    "fetch_transcript",
                    {"video_id": video_id, "language": attempt or "any", "segments": len(segments)},
                )
                return segments
            except (VideoUnavailable, InvalidVideoId) as e:
                raise VideoUnavailableError(
                    f"Video unavailable: The video {video_id} may be private, deleted, or age-restricted"
                ) from e
            except TranscriptsDisabled as e:
                raise TranscriptNotFoundError(
                    f"Transcript unavailable: Captions are disabled for video {video_id}"
                ) from e
            except (NoTranscriptFound, TranscriptNotFoundError) as e:
                if not isinstance(last_error, ProviderError):
                    last_error = TranscriptNotFoundError(
                        f"Transcript unavailable: No captions found for video {video_id}"
                    )
                log_warning(
                    logger, "fetch_transcript", "No transcript for language", {"language": attempt, "error": str(e)}
                )
            except CouldNotRetrieveTranscript as e:
                last_error = ProviderError(f"Failed to fetch transcript: {e}")
                log_warning(
                    logger, "fetch_transcript", str(e), {"video_id": video_id, "language": attempt}
                )
            except Exception as e:
                last_error = ProviderError(f"Failed to fetch transcript: {e}")
                log_warning(
                    logger, "fetch_transcript", str(e), {"video_id": video_id, "language": attempt}
                )

        raise last_error or TranscriptNotFoundError("Transcript not available")

    def _fetch_once(
        self, video_id: str, language: Optional[str]
    ) -> List[TranscriptSegment]:
        if language is None:
            transcript_list = self.ytt_api.list(video_id)
            first_track = next(iter(transcript_list), None)
            if first_track is None:
                raise TranscriptNotFoundError("Transcript not available")
            fetched = first_track.fetch()
        else:
            fetched = self.ytt_api.fetch(video_id, languages=[language])

        segments = [
            TranscriptSegment(
                text=snippet.text,
                start=max(float(snippet.start), 0.0),
                duration=max(float(snippet.duration), 0.0),
            )
            for snippet in fetched.snippets
        ]
        if not segments:
            raise TranscriptNotFoundError("Transcript not available")
        return segments
