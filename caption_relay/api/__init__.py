"""YouTube HTTP client package.

WHY: Several caption sources scrape YouTube directly. This package
encapsulates that HTTP traffic behind one async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. YouTubeClient exposes
one method per YouTube surface (watch page, internal transcript API,
caption payload URL).

RULES:
- All direct YouTube HTTP calls go through YouTubeClient
- Library-backed sources (youtube-transcript-api, yt-dlp) do their own I/O
"""

from caption_relay.api.client import YouTubeClient

__all__ = ["YouTubeClient"]
