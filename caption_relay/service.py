"""Transcript service — the one contract external callers depend on.

WHY: The HTTP API, the CLI and any future caller (quiz, summary) need
one operation: give me the transcript for this video, optionally in this
language. They must not know which strategy answered.

HOW: get_transcript() creates a request id and a request-scoped logger,
opens one YouTubeClient for the request, runs the fallback orchestrator,
then hands the winning cues to the segment builder.

RULES:
- Returns a TranscriptResult with at least one segment, or raises
  NoCaptionsAvailable / EmptyAfterCleaning (both TranscriptUnavailable)
- Never returns an empty success
- Stateless across requests: the HTTP client and memo die with the request
- Request-level log records carry request_id and video_id
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, MutableMapping, Sequence

import httpx

from caption_relay.api.client import YouTubeClient
from caption_relay.core.builder import build_segments
from caption_relay.core.errors import EmptyAfterCleaning
from caption_relay.core.ir import TranscriptResult
from caption_relay.core.orchestrator import FallbackOrchestrator
from caption_relay.sources import CaptionSource, FetchSession, default_sources

logger = logging.getLogger(__name__)


class RequestLogAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges request context into per-call ``extra``."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return "[{}] {}".format(self.extra["request_id"], msg), kwargs


class TranscriptService:
    """Fetch a video's captions through the fallback chain and build segments.

    Args:
        sources: Caption sources in priority order (defaults to the full chain).
        timeout_s: Per-source time budget (defaults to ADAPTER_TIMEOUT_S).
        transport: Optional httpx transport for the YouTube client (tests).
    """

    def __init__(
        self,
        sources: Sequence[CaptionSource] | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._orchestrator = FallbackOrchestrator(
            sources if sources is not None else default_sources(),
            timeout_s=timeout_s,
        )
        self._transport = transport

    @property
    def strategies(self) -> list[str]:
        return [source.key for source in self._orchestrator.sources]

    async def get_transcript(
        self,
        video_id: str,
        lang: str | None = None,
        request_id: str | None = None,
    ) -> TranscriptResult:
        """Return the canonical transcript for a video.

        Args:
            video_id: Opaque YouTube video id.
            lang: Optional language hint (not validated against a fixed set).
            request_id: Trace id; generated when not given.

        Raises:
            NoCaptionsAvailable: Every source/language combination failed.
            EmptyAfterCleaning: Cues were found but no text survived cleaning.
        """
        request_id = request_id or uuid.uuid4().hex
        log = RequestLogAdapter(logger, {"request_id": request_id, "video_id": video_id})
        log.info("Fetching transcript for %s (requested language: %s)", video_id, lang or "auto")

        async with YouTubeClient(transport=self._transport) as client:
            session = FetchSession(client=client)
            outcome = await self._orchestrator.run(
                video_id,
                lang,
                session,
                log=log,
                request_id=request_id,
            )

        try:
            segments = build_segments(
                outcome.cues,
                video_id=video_id,
                request_id=request_id,
                strategy=outcome.strategy,
            )
        except EmptyAfterCleaning:
            log.warning("Cues from %s had no text after cleaning", outcome.strategy)
            raise

        log.info(
            "Built %d segments via %s (language: %s)",
            len(segments),
            outcome.strategy,
            outcome.language_code or "unknown",
        )
        return TranscriptResult(
            video_id=video_id,
            source_strategy=outcome.strategy,
            language_code=outcome.language_code,
            segments=segments,
            request_id=request_id,
            attempts=outcome.attempts,
        )
