import asyncio
import logging
import math
import re
import time
from datetime import datetime, timezone
from typing import List, Optional

from ...data.data_classes import Article, TranscriptSegment
from ...errors import CompositionError, GenerationError, InputTooShortError
from ...utils import log_operation, log_success, log_warning
from .xai_text_query import XAITextQuery

logger = logging.getLogger(__name__)

MIN_TRANSCRIPT_CHARS = 50
MIN_CONTENT_CHARS = 100
MIN_TITLE_LENGTH = 3
MAX_EXCERPT_CHARS = 300
WORDS_PER_MINUTE = 200

HEADING_PATTERN = re.compile(r"^#+\s*")
QUOTED_TITLE_PATTERN = re.compile(r"^[\"'“](.*)[\"'”]$")


class ArticleGenerator:
    """Composes a long-form article from a transcript using Grok."""

    def __init__(
        self,
        text_query: XAITextQuery,
        timeout: float = 30,
        max_attempts: int = 2,
        retry_delay: float = 2,
    ):
        self.text_query = text_query
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    async def compose(
        self,
        transcript: List[TranscriptSegment],
        video_id: str,
        video_title: Optional[str] = None,
    ) -> Article:
        """
        Generate an article from transcript data.

        Args:
            transcript: Raw or refined transcript segments
            video_id: YouTube video ID the transcript belongs to
            video_title: Video title, used in the prompt and as a title fallback

        Returns:
            Article: Title, content and reading statistics

        Raises:
            InputTooShortError: If the transcript text is under 50 characters
            CompositionError: If every generation attempt failed
        """
        full_text = " ".join(segment.text for segment in transcript or []).strip()
        if len(full_text) < MIN_TRANSCRIPT_CHARS:
            raise InputTooShortError(
                "Transcript text is too short to generate a meaningful blog"
            )

        log_operation(
            logger,
            "compose_article",
            {"video_id": video_id, "transcript_chars": len(full_text)},
        )
        started = time.monotonic()

        content = await self._generate_content(
            self.build_prompt(full_text, video_id, video_title), video_id
        )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        word_count = len(content.split())
        article = Article(
            title=self.extract_title(content, video_id, video_title),
            content=content,
            video_id=video_id,
            generated_at=datetime.now(timezone.utc).isoformat(),
            word_count=word_count,
            reading_time=f"{math.ceil(word_count / WORDS_PER_MINUTE)} min read",
            video_title=video_title or None,
        )
        log_success(
            logger,
            "compose_article",
            {"video_id": video_id, "word_count": word_count, "elapsed_ms": elapsed_ms},
        )
        return article

    async def _generate_content(self, prompt: str, video_id: str) -> str:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                content = await asyncio.wait_for(
                    self.text_query.get_response(prompt), timeout=self.timeout
                )
                if not content or len(content.strip()) < MIN_CONTENT_CHARS:
                    raise CompositionError("Generated blog content is too short or empty")
                return content.strip()
            except asyncio.TimeoutError:
                last_error = CompositionError("Blog generation timed out")
            except (GenerationError, CompositionError) as e:
                last_error = e

            log_warning(
                logger,
                "compose_article",
                f"Blog generation attempt {attempt} failed: {last_error}",
                {"video_id": video_id},
            )
            if attempt < self.max_attempts:
                await asyncio.sleep(self.retry_delay)

        raise CompositionError(
            f"Failed to generate blog after {self.max_attempts} attempts: {last_error}"
        )

    @staticmethod
    def build_prompt(
        full_text: str, video_id: str, video_title: Optional[str] = None
    ) -> str:
        excerpt = full_text[: min(MAX_EXCERPT_CHARS, len(full_text) // 3)]
        title_line = f'The video title is: "{video_title}"' if video_title else ""
        return f"""
I have a YouTube video transcript that I want to convert into a well-formatted blog post.
{title_line}

Please create a professional blog post that captures the key points, maintains the tone and style of the original,
and is organized with proper headings, paragraphs, and flow.

The transcript is from a YouTube video (ID: {video_id}) and appears to be about:
{excerpt}...

Here's the full transcript:
{full_text}

Please format the blog post with:
1. An engaging title that captures the essence of the content
2. A brief introduction that hooks the reader
3. 3-5 properly structured sections with descriptive headings
4. A conclusion that summarizes key takeaways
5. Maintain the same tone and voice as the original content

The blog post should be comprehensive but concise (about 800-1200 words), highlighting the main points rather than including every detail.
Focus on clarity, readability, and maintaining the original message. Use short paragraphs and simple language.
"""

    @staticmethod
    def extract_title(
        content: str, video_id: str, video_title: Optional[str] = None
    ) -> str:
        """
        Best-effort title from the first line of generated content.

        Markdown heading markers and surrounding quotes are stripped. Falls back
        to the video title, then to a generic title, when the result is too short.
        """
        first_line = content.strip().split("\n", 1)[0].strip() if content else ""
        title = HEADING_PATTERN.sub("", first_line).strip()
        title = QUOTED_TITLE_PATTERN.sub(r"\1", title).strip()

        if len(title) < MIN_TITLE_LENGTH:
            title = video_title or f"Blog Post from YouTube Video ({video_id})"
        return title
