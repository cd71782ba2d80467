"""Helpers for fetching YouTube video thumbnails."""

import re
from typing import List, Optional

# Matches watch?v=, /embed/, /v/, /e/, /shorts/-style paths and youtu.be short links.
YOUTUBE_URL_RE = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})",
    re.IGNORECASE,
)

THUMBNAIL_VARIANTS = ("maxresdefault", "sddefault", "hqdefault", "mqdefault", "default")
THUMBNAIL_URL_TEMPLATE = "https://img.youtube.com/vi/{video_id}/{variant}.jpg"


def parse_youtube_url(url: str) -> Optional[str]:
    """Extract the 11-character video id from a YouTube URL, or None if there is none."""
    match = YOUTUBE_URL_RE.search(url or "")
    return match.group(1) if match else None


def get_youtube_thumbnail_urls(video_id: str) -> List[str]:
    """Thumbnail URLs for a video, highest resolution first."""
    if not video_id:
        return []
    return [
        THUMBNAIL_URL_TEMPLATE.format(video_id=video_id, variant=variant)
        for variant in THUMBNAIL_VARIANTS
    ]
