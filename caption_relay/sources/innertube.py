"""Internal-API caption source (youtubei/v1/get_transcript).

WHY: The transcript panel on youtube.com is served by an internal API
that sometimes works when both libraries fail. It is undocumented and
its response shape shifts, so the parsing is deliberately forgiving.

HOW: YouTubeClient posts the WEB client context and the base64 params
for the video. parse_innertube_transcript classifies the response into
found / empty / unrecognized, which maps directly onto a SourceResult.

RULES:
- Language-agnostic: a single attempt per request
- Any shape change yields format_changed, never an exception
- The response carries no reliable language, so language_code is None
"""

from __future__ import annotations

from caption_relay.core.errors import NetworkFailure, UpstreamFormatChanged
from caption_relay.core.normalizers import InnertubeShape, parse_innertube_transcript
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult


class InnertubeSource(CaptionSource):
    """Structured request to YouTube's internal transcript API."""

    @property
    def key(self) -> str:
        return "innertube"

    def languages(self, preferred: str | None) -> list[str | None]:
        return [None]

    async def fetch(
        self,
        video_id: str,
        language: str | None,
        session: FetchSession,
    ) -> SourceResult:
        try:
            data = await session.client.get_transcript_panel(video_id)
        except NetworkFailure as exc:
            return SourceResult.network_error(str(exc))
        except UpstreamFormatChanged as exc:
            return SourceResult.format_changed(str(exc))

        parsed = parse_innertube_transcript(data)
        if parsed.shape is InnertubeShape.FOUND:
            return SourceResult.found(parsed.cues)
        if parsed.shape is InnertubeShape.EMPTY:
            return SourceResult.empty(parsed.detail)
        return SourceResult.format_changed(parsed.detail)
