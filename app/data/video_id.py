import re
import logging
from typing import Optional

from ..utils import log_warning

logger = logging.getLogger(__name__)

VIDEO_ID_LENGTH = 11

# watch?v=, youtu.be/, /v/, /u/<user>/, /embed/
STANDARD_URL_PATTERN = re.compile(
    r"^.*((youtu\.be/)|(v/)|(/u/\w/)|(embed/)|(watch\?))\??v?=?([^#&?]*).*"
)
SHORTS_URL_PATTERN = re.compile(r"^.*(youtube\.com/shorts/)([^#&?/]*)")


def extract_video_id(url: Optional[str]) -> Optional[str]:
    """
    Extract the 11-character YouTube video ID from a URL.

    The standard URL shapes are tried first; YouTube Shorts links are tried
    second. Anything that does not yield an 11-character ID returns None.

    Args:
        url: A YouTube URL such as https://youtu.be/dQw4w9WgXcQ

    Returns:
        str | None: The video ID, or None when the URL is empty or unrecognized

    Example:
        >>> extract_video_id("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
    """
    if not url or not isinstance(url, str):
        return None

    url = url.strip()

    match = STANDARD_URL_PATTERN.match(url)
    if match and len(match.group(7)) == VIDEO_ID_LENGTH:
        return match.group(7)

    match = SHORTS_URL_PATTERN.match(url)
    if match and len(match.group(2)) == VIDEO_ID_LENGTH:
        return match.group(2)

    log_warning(logger, "extract_video_id", "Could not extract video ID", {"url": url})
    return None
