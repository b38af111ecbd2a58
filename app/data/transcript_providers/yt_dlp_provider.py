import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests
import yt_dlp
from yt_dlp.utils import DownloadError

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

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# Substrings yt-dlp uses when the video itself cannot be accessed
UNAVAILABLE_MARKERS = (
    "video unavailable",
    "private video",
    "has been removed",
    "confirm your age",
    "age-restricted",
    "sign in to confirm",
)


def select_caption_track(
    tracks: List[Dict[str, Any]], language: str
) -> Optional[Dict[str, Any]]:
    """
    Pick a caption track by priority.

    exact language code, then a regional variant of it ("en" matches "en-GB"),
    then English, then the first track in the list.
    """
    if not tracks:
        return None

    for track in tracks:
        if track["language_code"] == language:
            return track

    for track in tracks:
        if track["language_code"].startswith(f"{language}-"):
            return track

    if language != "en":
        for track in tracks:
            code = track["language_code"]
            if code == "en" or code.startswith("en-"):
                return track

    return tracks[0]


def parse_json3_captions(payload: Dict[str, Any], language: str) -> List[TranscriptSegment]:
    """Convert a YouTube json3 caption document into transcript segments."""
    segments: List[TranscriptSegment] = []
    for event in payload.get("events", []):
        segs = event.get("segs")
        if not segs:
            continue

        text = "".join(seg.get("utf8", "") for seg in segs).replace("\n", " ").strip()
        if not text:
            continue

        segments.append(
            TranscriptSegment(
                text=text,
                start=max(float(event.get("tStartMs", 0)) / 1000.0, 0.0),
                duration=max(float(event.get("dDurationMs", 0)) / 1000.0, 0.0),
                language=language,
            )
        )
    return segments


class YtDlpTranscriptProvider(BaseTranscriptProvider):
    """
    Alternative transcript provider built on yt-dlp.

    Reads the caption tracks listed in the video metadata (uploaded subtitles
    first, then automatic captions), selects one by language priority and
    downloads it in json3 format.
    """

    name = TranscriptProviderName.YT_DLP.value
    is_alternative = True

    def __init__(self, text_query=None, request_timeout: float = 30):
        super().__init__(text_query)
        self.request_timeout = request_timeout
        self.ydl_opts = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
        }

    # =============================================================================
    # PUBLIC API METHODS
    # =============================================================================

    async def fetch_transcript(
        self, video_id: str, language: str = "en"
    ) -> List[TranscriptSegment]:
        return await asyncio.to_thread(self._fetch_sync, video_id, language or "en")

    async def check_availability(self, video_id: str) -> Dict[str, Any]:
        try:
            info = await asyncio.to_thread(self._extract_info, video_id)
            return {"exists": True, "title": info.get("title")}
        except TranscriptError as e:
            log_warning(logger, "check_availability", str(e), {"video_id": video_id})
            return {"exists": False, "title": None}

    # =============================================================================
    # YT-DLP METHODS
    # =============================================================================

    def _extract_info(self, video_id: str) -> Dict[str, Any]:
        try:
            with yt_dlp.YoutubeDL(self.ydl_opts) as ydl:
                info = ydl.extract_info(WATCH_URL.format(video_id=video_id), download=False)
        except DownloadError as e:
            message = str(e)
            if any(marker in message.lower() for marker in UNAVAILABLE_MARKERS):
                raise VideoUnavailableError(
                    f"Video unavailable: The video {video_id} may be private, deleted, or age-restricted"
                ) from e
            raise ProviderError(f"Failed to fetch transcript: {message}") from e

        if not info:
            raise ProviderError(f"Failed to fetch transcript: no metadata returned for {video_id}")
        return info

    @staticmethod
    def list_caption_tracks(info: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Flatten uploaded subtitles and automatic captions into one ordered track list."""
        tracks = []
        for kind, key in (("manual", "subtitles"), ("auto", "automatic_captions")):
            for language_code, formats in (info.get(key) or {}).items():
                if language_code == "live_chat" or not formats:
                    continue
                tracks.append(
                    {"language_code": language_code, "kind": kind, "formats": formats}
                )
        return tracks

    def _fetch_sync(self, video_id: str, language: str) -> List[TranscriptSegment]:
        log_operation(
            logger,
            "fetch_transcript",
            {"video_id": video_id, "language": language, "provider": self.name},
        )
        info = self._extract_info(video_id)
        logger.info(
            f"Retrieved info for video: \"{info.get('title')}\" by {info.get('uploader')}"
        )

        tracks = self.list_caption_tracks(info)
        if not tracks:
            raise TranscriptNotFoundError(
                f"Transcript unavailable: No captions found for video {video_id}"
            )

        track = select_caption_track(tracks, language)
        if track["language_code"] != language:
            log_warning(
                logger,
                "fetch_transcript",
                f"Requested language {language} not found, using {track['language_code']}",
                {"video_id": video_id},
            )

        segments = self._download_track(track)
        if not segments:
            raise ProviderError("Retrieved caption track is empty")

        log_success(
            logger,
            "fetch_transcript",
            {
                "video_id": video_id,
                "provider": self.name,
                "language": track["language_code"],
                "segments": len(segments),
            },
        )
        return segments

    def _download_track(self, track: Dict[str, Any]) -> List[TranscriptSegment]:
        json3 = next((f for f in track["formats"] if f.get("ext") == "json3"), None)
        if json3 is None or not json3.get("url"):
            raise ProviderError(
                f"No json3 caption format for language {track['language_code']}"
            )

        try:
            response = requests.get(json3["url"], timeout=self.request_timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise ProviderError(f"Failed to download caption track: {e}") from e

        return parse_json3_captions(payload, track["language_code"])
