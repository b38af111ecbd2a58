from .base_provider import BaseTranscriptProvider, placeholder_transcript, unavailable_message
from .youtube_transcript_provider import YouTubeTranscriptProvider
from .yt_dlp_provider import YtDlpTranscriptProvider

__all__ = [
    "BaseTranscriptProvider",
    "YouTubeTranscriptProvider",
    "YtDlpTranscriptProvider",
    "placeholder_transcript",
    "unavailable_message",
]
