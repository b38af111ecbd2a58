import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ...errors import GenerationError
from ...utils import log_operation, log_warning
from ..data_classes import TranscriptSegment

logger = logging.getLogger(__name__)

PLACEHOLDER_DURATION = 10.0


def unavailable_message(video_label: str) -> str:
    """Templated text used when no better placeholder message can be produced."""
    return (
        f'I\'m sorry, the transcript for "{video_label}" is unavailable. '
        "The video likely doesn't have captions enabled or they're not accessible. "
        "Please try a different video with captions enabled."
    )


def placeholder_transcript(text: str) -> List[TranscriptSegment]:
    return [
        TranscriptSegment(
            text=text,
            start=0.0,
            duration=PLACEHOLDER_DURATION,
            is_unavailable_message=True,
        )
    ]


class BaseTranscriptProvider(ABC):
    """
    Base class for transcript sources.

    A provider wraps one external caption source behind a uniform contract so
    the TranscriptManager can try providers in any configured order.

    Subclasses implement fetch_transcript and check_availability. Placeholder
    generation is shared: it looks up the video title, asks the generative
    service (when one is configured) for a short explanation, and falls back to
    a templated sentence when anything along the way fails.
    """

    name: str
    is_alternative: bool = False

    def __init__(self, text_query=None):
        self.text_query = text_query

    @abstractmethod
    async def fetch_transcript(
        self, video_id: str, language: str = "en"
    ) -> List[TranscriptSegment]:
        """
        Fetch the transcript for a video.

        Raises:
            TranscriptNotFoundError: No captions exist for the video or language
            VideoUnavailableError: The video is private, deleted or restricted
            ProviderError: Any other upstream failure
        """

    @abstractmethod
    async def check_availability(self, video_id: str) -> Dict[str, Any]:
        """Best-effort metadata probe returning {"exists": bool, "title": str | None}."""

    async def generate_placeholder(self, video_id: str) -> List[TranscriptSegment]:
        """Build a single-segment transcript explaining that captions are unavailable."""
        log_operation(
            logger, "generate_placeholder", {"video_id": video_id, "provider": self.name}
        )

        video_title = None
        try:
            availability = await self.check_availability(video_id)
            video_title = availability.get("title")
        except Exception as e:
            log_warning(
                logger,
                "generate_placeholder",
                f"Couldn't get video title for fallback message: {e}",
                {"video_id": video_id},
            )

        message = None
        if self.text_query is not None and self.text_query.is_configured:
            try:
                message = await self.text_query.get_response(
                    self._placeholder_prompt(video_id, video_title or "this video")
                )
            except GenerationError as e:
                log_warning(
                    logger,
                    "generate_placeholder",
                    f"Falling back to templated message: {e}",
                    {"video_id": video_id},
                )

        if not message or not message.strip():
            message = unavailable_message(video_title or video_id)

        return placeholder_transcript(message.strip())

    @staticmethod
    def _placeholder_prompt(video_id: str, video_title: str) -> str:
        return f"""
I need a placeholder message for a YouTube video when the transcript is unavailable.
The video ID is {video_id} and its title is "{video_title}".

Please create a brief message that:
1. Explains that the transcript couldn't be retrieved for this specific video
2. Mentions the title of the video
3. Suggests that either the video doesn't have captions enabled or they're not accessible
4. Recommends trying a different video that has captions enabled
5. Keeps the tone helpful and informative

Format this as a short paragraph (2-3 sentences).
"""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
