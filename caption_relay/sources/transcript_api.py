"""Primary caption source backed by youtube-transcript-api.

WHY: youtube-transcript-api is the most reliable established extractor:
it resolves manual and generated tracks for an explicit language and
already handles YouTube's consent and player quirks.

HOW: Asks the library for one explicit language per attempt. The library
is synchronous (requests-based), so the call runs in a worker thread via
asyncio.to_thread. Each fetched snippet (seconds) becomes a RawCue
(milliseconds).

RULES:
- Candidates: caller preference, then DEFAULT_LANGUAGES (deduplicated)
- CouldNotRetrieveTranscript (disabled, not found, unavailable…) → unavailable
- OSError (requests exceptions derive from it) → network_error
- Payload parse errors inside the library → format_changed
"""

from __future__ import annotations

import asyncio
import logging
from xml.etree.ElementTree import ParseError

from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from caption_relay.config import DEFAULT_LANGUAGES, language_candidates
from caption_relay.core.ir import RawCue
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult

logger = logging.getLogger(__name__)


class TranscriptApiSource(CaptionSource):
    """Library-backed extractor A (youtube-transcript-api)."""

    def __init__(self, api: YouTubeTranscriptApi | None = None) -> None:
        self._api = api or YouTubeTranscriptApi()

    @property
    def key(self) -> str:
        return "transcript_api"

    def languages(self, preferred: str | None) -> list[str | None]:
        return list(language_candidates(preferred, DEFAULT_LANGUAGES))

    async def fetch(
        self,
        video_id: str,
        language: str | None,
        session: FetchSession,
    ) -> SourceResult:
        languages = [language] if language else list(DEFAULT_LANGUAGES)
        try:
            fetched = await asyncio.to_thread(self._api.fetch, video_id, languages=languages)
        except CouldNotRetrieveTranscript as exc:
            return SourceResult.unavailable(type(exc).__name__)
        except OSError as exc:
            logger.debug("youtube-transcript-api transport error for %s: %s", video_id, exc)
            return SourceResult.network_error(type(exc).__name__)
        except (ParseError, KeyError, ValueError) as exc:
            return SourceResult.format_changed(type(exc).__name__)

        cues = [
            RawCue(
                start_ms=round(float(snippet.start) * 1000),
                duration_ms=max(round(float(snippet.duration) * 1000), 0),
                text=snippet.text or "",
            )
            for snippet in fetched
        ]
        if not any(cue.text.strip() for cue in cues):
            return SourceResult.empty("library returned no text")
        return SourceResult.found(
            cues,
            language_code=getattr(fetched, "language_code", None) or language,
        )
