from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TranscriptProviderName(str, Enum):
    YOUTUBE_TRANSCRIPT_API = "youtube_transcript_api"
    YT_DLP = "yt_dlp"


class AcquisitionState(str, Enum):
    IDLE = "idle"
    TRY_PRIMARY = "try_primary"
    TRY_SECONDARY = "try_secondary"
    SYNTHESIZE = "synthesize"
    DONE = "done"


# Wire models use camelCase on the JSON side and snake_case in Python.
class CamelModel(BaseModel):
    """Base class for models serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TranscriptSegment(CamelModel):
    """One timed caption line. A list of these in playback order is a transcript."""

    text: str
    start: float = Field(0.0, ge=0)
    duration: float = Field(0.0, ge=0)
    language: Optional[str] = None
    is_unavailable_message: Optional[bool] = None


class RefinedSegment(TranscriptSegment):
    """A transcript segment after refinement, keeping the pre-refinement text."""

    original: str
    refinement_failed: Optional[bool] = None


class Article(CamelModel):
    title: str
    content: str
    video_id: str
    generated_at: str
    word_count: int
    reading_time: str
    video_title: Optional[str] = None


def is_placeholder(transcript: List[TranscriptSegment]) -> bool:
    """True when the transcript is a synthesized "unavailable" message rather than captions."""
    return len(transcript) == 1 and bool(transcript[0].is_unavailable_message)


def segments_to_json(segments: Optional[List[TranscriptSegment]]) -> Optional[List[dict]]:
    if segments is None:
        return None
    return [segment.to_json_dict() for segment in segments]


# Request models
# Every field is optional at the schema level so that a missing URL or
# transcript is reported as a 400 by the endpoint rather than a schema error.
class TranscriptRequest(CamelModel):
    """Request body for POST /api/transcript."""

    url: Optional[str] = None
    language: str = "en"
    skip_refinement: bool = False


class ProcessRequest(TranscriptRequest):
    """Request body for POST /api/process."""

    generate_blog: bool = True
    fallback_message: bool = False
    prefer_alternative_service: bool = False


class BlogRequest(CamelModel):
    """Request body for POST /api/blog."""

    transcript: Optional[List[TranscriptSegment]] = None
    video_id: Optional[str] = None
    video_title: Optional[str] = None


class DebugRequest(CamelModel):
    """Request body for POST /api/debug."""

    url: Optional[str] = None
    save_report: bool = False
