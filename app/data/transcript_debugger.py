"""
Transcript diagnostics.

When a video keeps failing to return a transcript, ``TranscriptDebugger`` runs
every probe it can against YouTube and collects the results in one report:

    - oEmbed metadata (does the video exist, title, author)
    - the watch page HTML (are there caption hints at all)
    - several YouTube Transcript API fetches with different language options
    - installed versions of the transcript libraries

The report can optionally be written to ``logs/transcript-debug/<id>-<ms>.json``.
"""

import asyncio
import json
import logging
import os
import time
from datetime import datetime, timezone
from importlib import metadata
from typing import Any, Dict, List, Optional

import requests
from youtube_transcript_api import YouTubeTranscriptApi

from ..utils import log_error, log_operation, log_success
from .transcript_providers.youtube_transcript_provider import WATCH_URL, fetch_oembed

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
CAPTION_HINTS = ('"captions":', '"captionTracks":', "timedtext")
TRANSCRIPT_LIBRARIES = ("youtube-transcript-api", "yt-dlp")

# (method name, languages passed to fetch; None means library default)
FETCH_METHODS = [
    ("default", None),
    ("english-specific", ["en"]),
    ("english-us", ["en-US"]),
    ("english-gb", ["en-GB"]),
]


class TranscriptDebugger:
    """Collects diagnostic information about why a transcript cannot be fetched."""

    def __init__(
        self,
        output_dir: str = os.path.join("logs", "transcript-debug"),
        environment: str = "development",
        ytt_api: Optional[YouTubeTranscriptApi] = None,
        request_timeout: float = 15,
    ):
        self.output_dir = output_dir
        self.environment = environment
        self.ytt_api = ytt_api or YouTubeTranscriptApi()
        self.request_timeout = request_timeout

    async def run(self, video_id: str, save_report: bool = False) -> Dict[str, Any]:
        return await asyncio.to_thread(self._run_sync, video_id, save_report)

    def _run_sync(self, video_id: str, save_report: bool) -> Dict[str, Any]:
        log_operation(logger, "debug_transcript", {"video_id": video_id})
        report: Dict[str, Any] = {
            "videoId": video_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": self.environment,
            "results": {
                "videoInfo": self._check_video_info(video_id),
                "htmlCheck": self._check_watch_page(video_id),
                "transcriptAttempts": self._try_fetch_methods(video_id),
            },
            "libraryInfo": self._library_versions(),
        }

        if save_report:
            report["reportPath"] = self._save_report(video_id, report)

        log_success(logger, "debug_transcript", {"video_id": video_id})
        return report

    # =============================================================================
    # PROBES
    # =============================================================================

    def _check_video_info(self, video_id: str) -> Dict[str, Any]:
        try:
            data = fetch_oembed(video_id, timeout=self.request_timeout)
            return {
                "success": True,
                "title": data.get("title"),
                "author": data.get("author_name"),
                "thumbnailUrl": data.get("thumbnail_url"),
            }
        except (requests.RequestException, ValueError) as e:
            return {"success": False, "error": str(e)}

    def _check_watch_page(self, video_id: str) -> Dict[str, Any]:
        try:
            response = requests.get(
                WATCH_URL.format(video_id=video_id),
                headers={"User-Agent": BROWSER_USER_AGENT},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            html = response.text
            return {
                "success": True,
                "length": len(html),
                "captionsHintFound": any(hint in html for hint in CAPTION_HINTS),
                "textSample": html[:200] + "...",
            }
        except requests.RequestException as e:
            return {"success": False, "error": str(e)}

    def _try_fetch_methods(self, video_id: str) -> List[Dict[str, Any]]:
        attempts = []
        for method_name, languages in FETCH_METHODS:
            started = time.monotonic()
            try:
                if languages is None:
                    fetched = self.ytt_api.fetch(video_id)
                else:
                    fetched = self.ytt_api.fetch(video_id, languages=languages)
                snippets = list(fetched.snippets)
                attempts.append(
                    {
                        "method": method_name,
                        "languages": languages,
                        "success": True,
                        "segmentCount": len(snippets),
                        "elapsedMs": int((time.monotonic() - started) * 1000),
                        "sampleSegments": [
                            {"text": s.text, "start": s.start, "duration": s.duration}
                            for s in snippets[:2]
                        ],
                    }
                )
            except Exception as e:
                attempts.append(
                    {
                        "method": method_name,
                        "languages": languages,
                        "success": False,
                        "error": str(e),
                        "errorType": type(e).__name__,
                    }
                )
        return attempts

    @staticmethod
    def _library_versions() -> Dict[str, Any]:
        versions = {}
        for name in TRANSCRIPT_LIBRARIES:
            try:
                versions[name] = metadata.version(name)
            except metadata.PackageNotFoundError:
                versions[name] = None
        return versions

    def _save_report(self, video_id: str, report: Dict[str, Any]) -> Optional[str]:
        try:
            os.makedirs(self.output_dir, exist_ok=True)
            filename = f"{video_id}-{int(time.time() * 1000)}.json"
            path = os.path.join(self.output_dir, filename)
            with open(path, "w", encoding="utf-8") as file:
                json.dump(report, file, indent=2)
            logger.info(f"Debug info saved to {path}")
            return path
        except OSError as e:
            log_error(logger, "save_debug_report", e, {"video_id": video_id})
            return None
