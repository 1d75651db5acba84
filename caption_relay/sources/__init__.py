"""Caption source registry — the fallback chain in priority order.

WHY: The orchestrator, the service and the tests need one place that
says which strategies exist and in what order they are tried.

HOW: SOURCES lists source *classes* in priority order: youtube-transcript-api,
yt-dlp, the internal transcript API, then the watch page scrape.
default_sources() instantiates them for a new service.

RULES:
- Order is priority: a stronger strategy is always tried before a weaker one
- Keys are unique snake_case identifiers (they appear in results and logs)
- Every source listed here must be importable without side effects
"""

from __future__ import annotations

from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult
from caption_relay.sources.innertube import InnertubeSource
from caption_relay.sources.transcript_api import TranscriptApiSource
from caption_relay.sources.watch_page import WatchPageSource
from caption_relay.sources.ytdlp import YtDlpSource

SOURCES: list[type[CaptionSource]] = [
    TranscriptApiSource,
    YtDlpSource,
    InnertubeSource,
    WatchPageSource,
]


def default_sources() -> list[CaptionSource]:
    return [source_cls() for source_cls in SOURCES]


__all__ = [
    "CaptionSource",
    "FetchSession",
    "SourceResult",
    "SOURCES",
    "InnertubeSource",
    "TranscriptApiSource",
    "WatchPageSource",
    "YtDlpSource",
    "default_sources",
]
