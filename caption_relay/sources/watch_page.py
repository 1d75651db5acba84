"""Watch-page scraping caption source — the last resort.

WHY: The watch page HTML embeds the player response, which lists every
caption track with a signed fetch URL. When every API-shaped route fails
this is usually still there. The page is not valid standalone JSON, so
the track list is located by pattern matching.

HOW:
1. Fetch /watch?v=<id> with a browser User-Agent.
2. Find "captionTracks": and decode the array that follows; if that
   fails, retry on the escaped-quote form; if that fails too, fall back to
   the first "baseUrl" on the page (single-URL fallback).
3. For each track (preferred language first) and each fmt variant
   (json3, srv3, none), fetch the payload, try JSON-cue then XML-cue
   normalization, and accept the first attempt with a non-empty cue.

RULES:
- Bodies shorter than MIN_CAPTION_PAYLOAD_CHARS count as empty
- JSON is tried when fmt is json3 or the body starts with "{"; a body that
  parses as json3 is final (an empty events list is empty, not a new shape)
- XML is tried only when the body is not json3
- The single-URL fallback cannot tell the track language: language_code is None
- kind "asr" → "auto", anything else → "manual"
- URL escapes \\u0026 and \\/ are undone before fetching
- Per-track/per-format failures are logged at debug level and never raised
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from caption_relay.config import CAPTION_FORMATS, MIN_CAPTION_PAYLOAD_CHARS
from caption_relay.core.errors import NetworkFailure, UpstreamFormatChanged
from caption_relay.core.ir import AttemptOutcome, CaptionTrackDescriptor, RawCue
from caption_relay.core.normalizers import parse_json_cues, parse_xml_cues
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult

logger = logging.getLogger(__name__)

_TRACKS_KEY_RE = re.compile(r'"captionTracks":\s*(?=\[)')
_TRACKS_ESCAPED_RE = re.compile(r'"captionTracks":\s*(\[[^\]]+\])')
_BASE_URL_RE = re.compile(r'"baseUrl":\s*"([^"]+)"')


@dataclass(frozen=True)
class TrackListing:
    """Caption tracks found on a watch page.

    RULES:
    - tracks empty and fallback_url None → the page lists no captions
    - fallback_url is set only when the track list could not be decoded
    """

    tracks: tuple[CaptionTrackDescriptor, ...] = ()
    fallback_url: str | None = None


def unescape_url(url: str) -> str:
    return url.replace("\\u0026", "&").replace("\\/", "/")


def _descriptors(raw_tracks: Any) -> tuple[CaptionTrackDescriptor, ...]:
    if not isinstance(raw_tracks, list):
        raise ValueError("captionTracks is not a list")
    tracks = []
    for item in raw_tracks:
        if not isinstance(item, dict) or not item.get("baseUrl"):
            continue
        tracks.append(CaptionTrackDescriptor(
            language_code=str(item.get("languageCode") or "en"),
            kind="auto" if item.get("kind") == "asr" else "manual",
            fetch_url=unescape_url(str(item["baseUrl"])),
        ))
    return tuple(tracks)


def locate_caption_tracks(html: str) -> TrackListing:
    """Find the caption track listing embedded in watch page HTML.

    Raises:
        UpstreamFormatChanged: If a listing is present but neither the
            array nor any baseUrl can be recovered.
    """
    match = _TRACKS_KEY_RE.search(html)
    if match is None:
        return TrackListing()

    try:
        raw, _ = json.JSONDecoder().raw_decode(html, match.end())
        return TrackListing(tracks=_descriptors(raw))
    except ValueError:
        pass

    escaped = _TRACKS_ESCAPED_RE.search(html)
    if escaped is not None:
        try:
            return TrackListing(tracks=_descriptors(json.loads(escaped.group(1).replace('\\"', '"'))))
        except ValueError:
            pass

    base_url = _BASE_URL_RE.search(html)
    if base_url is None:
        raise UpstreamFormatChanged("could not parse caption tracks")
    return TrackListing(fallback_url=unescape_url(base_url.group(1)))


def order_tracks(
    tracks: tuple[CaptionTrackDescriptor, ...],
    preferred: str | None,
) -> list[CaptionTrackDescriptor]:
    """Stable reorder: tracks in the preferred language (or its regional variants) first."""
    if not preferred:
        return list(tracks)
    pref = preferred.lower()

    def matches(track: CaptionTrackDescriptor) -> bool:
        code = track.language_code.lower()
        return code == pref or code.startswith(pref + "-")

    return sorted(tracks, key=lambda t: not matches(t))


def with_format(url: str, fmt: str) -> str:
    if not fmt:
        return url
    return "{}{}fmt={}".format(url, "&" if "?" in url else "?", fmt)


def normalize_payload(body: str, fmt: str) -> list[RawCue]:
    """Normalize a caption body as json3 when it parses as such, else as XML.

    A well-formed json3 document is authoritative even when it has no text,
    so an empty track reads as empty rather than as an unknown shape.

    Raises:
        UpstreamFormatChanged: If neither parser recognizes the body.
    """
    if fmt == "json3" or body.lstrip().startswith("{"):
        try:
            return parse_json_cues(body)
        except UpstreamFormatChanged:
            pass
    return parse_xml_cues(body)


class WatchPageSource(CaptionSource):
    """Scrape the watch page for caption tracks and fetch them directly."""

    @property
    def key(self) -> str:
        return "watch_page"

    def languages(self, preferred: str | None) -> list[str | None]:
        return [preferred or None]

    async def fetch(
        self,
        video_id: str,
        language: str | None,
        session: FetchSession,
    ) -> SourceResult:
        try:
            html = await session.client.get_watch_page(video_id)
        except NetworkFailure as exc:
            return SourceResult.network_error("watch page: {}".format(exc))

        try:
            listing = locate_caption_tracks(html)
        except UpstreamFormatChanged as exc:
            return SourceResult.format_changed(str(exc))

        if listing.fallback_url:
            logger.debug("Using single caption URL for %s", video_id)
            return await self._fetch_single(listing.fallback_url, session)
        if not listing.tracks:
            return SourceResult.unavailable("no caption tracks on page")

        failures: list[AttemptOutcome] = []
        for track in order_tracks(listing.tracks, language):
            for fmt in CAPTION_FORMATS:
                outcome, cues = await self._try_variant(track, fmt, session)
                if cues:
                    return SourceResult.found(
                        cues,
                        language_code=track.language_code,
                        detail="track={} kind={} fmt={}".format(
                            track.language_code, track.kind, fmt or "default"
                        ),
                    )
                failures.append(outcome)

        return _summarize_failures(failures, len(listing.tracks))

    async def _try_variant(
        self,
        track: CaptionTrackDescriptor,
        fmt: str,
        session: FetchSession,
    ) -> tuple[AttemptOutcome, list[RawCue]]:
        label = fmt or "default"
        try:
            body = await session.client.get_caption_payload(with_format(track.fetch_url, fmt))
        except NetworkFailure as exc:
            logger.debug("Track %s fmt=%s: %s", track.language_code, label, exc)
            return AttemptOutcome.NETWORK_ERROR, []

        if len(body) < MIN_CAPTION_PAYLOAD_CHARS:
            logger.debug("Track %s fmt=%s: empty response", track.language_code, label)
            return AttemptOutcome.EMPTY, []

        try:
            cues = normalize_payload(body, fmt)
        except UpstreamFormatChanged as exc:
            logger.debug("Track %s fmt=%s: %s", track.language_code, label, exc)
            return AttemptOutcome.FORMAT_CHANGED, []
        if not cues:
            return AttemptOutcome.EMPTY, []
        return AttemptOutcome.CUES, cues

    async def _fetch_single(self, url: str, session: FetchSession) -> SourceResult:
        try:
            body = await session.client.get_caption_payload(url)
            cues = parse_xml_cues(body)
        except NetworkFailure as exc:
            return SourceResult.network_error("single caption URL: {}".format(exc))
        except UpstreamFormatChanged as exc:
            return SourceResult.format_changed(str(exc))
        return SourceResult.found(cues, detail="single caption URL")


def _summarize_failures(failures: list[AttemptOutcome], track_count: int) -> SourceResult:
    detail = "{} tracks x {} formats yielded no cues".format(track_count, len(CAPTION_FORMATS))
    if failures and all(f is AttemptOutcome.NETWORK_ERROR for f in failures):
        return SourceResult.network_error(detail)
    if AttemptOutcome.FORMAT_CHANGED in failures and AttemptOutcome.EMPTY not in failures:
        return SourceResult.format_changed(detail)
    return SourceResult.empty(detail)
