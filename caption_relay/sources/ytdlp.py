"""Secondary caption source backed by yt-dlp metadata extraction.

WHY: yt-dlp is an independently implemented extractor. When
youtube-transcript-api breaks (it tracks YouTube changes on its own
schedule), yt-dlp often still lists working caption URLs.

HOW: Extracts the video info once per request (no download) and keeps it
in the session memo. For each language candidate it picks the manual
subtitle track, else the automatic caption track, and fetches that
track's json3 URL (else srv1 XML) through the shared YouTubeClient.

RULES:
- Candidates: caller preference, then YTDLP_LANGUAGES (ending with "auto")
- "auto": first manual track, else the original-language ASR track
  ("*-orig"), else the first automatic track
- Extraction failure is memoized, so later candidates fail fast
- yt-dlp DownloadError → unavailable; caption fetch errors → network_error
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from yt_dlp import YoutubeDL
from yt_dlp.utils import DownloadError

from caption_relay.config import AUTO_LANGUAGE, HTTP_TIMEOUT_S, YTDLP_LANGUAGES, language_candidates
from caption_relay.core.errors import NetworkFailure, UpstreamFormatChanged
from caption_relay.core.normalizers import parse_json_cues, parse_xml_cues
from caption_relay.core.video import watch_url
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult

logger = logging.getLogger(__name__)

_MEMO_KEY = "yt_dlp.info"
_PREFERRED_EXTS = ("json3", "srv1")

_YDL_OPTIONS: dict[str, Any] = {
    "skip_download": True,
    "quiet": True,
    "no_warnings": True,
    "noprogress": True,
    "writesubtitles": True,
    "writeautomaticsub": True,
    "socket_timeout": HTTP_TIMEOUT_S,
}


def extract_info(video_id: str) -> dict[str, Any]:
    """Run yt-dlp metadata extraction for a video (blocking)."""
    with YoutubeDL(_YDL_OPTIONS) as ydl:
        info = ydl.extract_info(watch_url(video_id), download=False)
        return ydl.sanitize_info(info) or {}


def select_track(info: dict[str, Any], language: str) -> tuple[str, list[dict[str, Any]]] | None:
    """Pick a caption track for a language from yt-dlp info.

    Returns:
        (language_code, formats) or None when no track matches.
    """
    manual = info.get("subtitles") or {}
    automatic = info.get("automatic_captions") or {}

    if language == AUTO_LANGUAGE:
        for code, formats in manual.items():
            if formats and code != "live_chat":
                return code, formats
        for code, formats in automatic.items():
            if formats and code.endswith("-orig"):
                return code[: -len("-orig")], formats
        for code, formats in automatic.items():
            if formats:
                return code, formats
        return None

    if manual.get(language):
        return language, manual[language]
    if automatic.get(language):
        return language, automatic[language]
    return None


def pick_format(formats: list[dict[str, Any]]) -> tuple[str, str] | None:
    """Return (ext, url) for the first supported caption format."""
    by_ext = {f.get("ext"): f.get("url") for f in formats if f.get("url")}
    for ext in _PREFERRED_EXTS:
        if by_ext.get(ext):
            return ext, by_ext[ext]
    return None


class YtDlpSource(CaptionSource):
    """Library-backed extractor B (yt-dlp)."""

    @property
    def key(self) -> str:
        return "yt_dlp"

    def languages(self, preferred: str | None) -> list[str | None]:
        return list(language_candidates(preferred, YTDLP_LANGUAGES))

    async def _info(self, video_id: str, session: FetchSession) -> dict[str, Any] | DownloadError:
        if _MEMO_KEY not in session.memo:
            try:
                session.memo[_MEMO_KEY] = await asyncio.to_thread(extract_info, video_id)
            except DownloadError as exc:
                logger.debug("yt-dlp extraction failed for %s: %s", video_id, exc)
                session.memo[_MEMO_KEY] = exc
        return session.memo[_MEMO_KEY]

    async def fetch(
        self,
        video_id: str,
        language: str | None,
        session: FetchSession,
    ) -> SourceResult:
        info = await self._info(video_id, session)
        if isinstance(info, DownloadError):
            return SourceResult.unavailable("extraction failed: DownloadError")

        track = select_track(info, language or AUTO_LANGUAGE)
        if track is None:
            return SourceResult.unavailable("no track for {}".format(language))
        code, formats = track

        chosen = pick_format(formats)
        if chosen is None:
            return SourceResult.format_changed("no json3/srv1 format listed")
        ext, url = chosen

        try:
            body = await session.client.get_caption_payload(url)
            cues = parse_json_cues(body) if ext == "json3" else parse_xml_cues(body)
        except NetworkFailure as exc:
            return SourceResult.network_error(str(exc))
        except UpstreamFormatChanged as exc:
            return SourceResult.format_changed(str(exc))

        return SourceResult.found(cues, language_code=code, detail="fmt={}".format(ext))
