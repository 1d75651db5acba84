"""Abstract caption source, its tagged result, and the per-request session.

WHY: The fallback chain mixes library-backed extractors and hand-rolled
scrapers, each with its own protocol quirks. A common capability lets the
orchestrator iterate them uniformly instead of special-casing each one.

HOW: CaptionSource is an ABC with a ``key``, a ``languages()`` method that
lists the candidates meaningful to the source, and an async ``fetch()``
returning a SourceResult. SourceResult is a tagged value (outcome + cues)
rather than an exception, so "no data" is an ordinary return.
FetchSession carries what one request shares between attempts: the open
YouTubeClient and a small memo dict.

RULES:
- fetch() never raises for network failure, non-2xx status, empty body or
  malformed payload; it returns the matching SourceResult
- A CUES result always carries at least one cue
- FetchSession lives for one request only; nothing is shared across requests

To add a new caption source:
1. Create a module in sources/
2. Subclass CaptionSource, implement key, languages() and fetch()
3. Insert it into SOURCES in sources/__init__.py at its priority
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable

from caption_relay.api.client import YouTubeClient
from caption_relay.core.ir import AttemptOutcome, RawCue


@dataclass(frozen=True)
class SourceResult:
    """Outcome of one fetch attempt.

    Attributes:
        outcome: What happened (cues, empty, unavailable, …).
        cues: Normalized cues; non-empty only when outcome is CUES.
        language_code: Language of the fetched track, when the source knows it.
        detail: Short diagnostic note, never a raw payload.
    """

    outcome: AttemptOutcome
    cues: tuple[RawCue, ...] = ()
    language_code: str | None = None
    detail: str = ""

    @property
    def has_cues(self) -> bool:
        return self.outcome is AttemptOutcome.CUES and bool(self.cues)

    @classmethod
    def found(
        cls,
        cues: Iterable[RawCue],
        language_code: str | None = None,
        detail: str = "",
    ) -> SourceResult:
        cues = tuple(cues)
        if not cues:
            return cls.empty(detail or "no cues")
        return cls(AttemptOutcome.CUES, cues, language_code, detail)

    @classmethod
    def empty(cls, detail: str = "") -> SourceResult:
        return cls(AttemptOutcome.EMPTY, detail=detail)

    @classmethod
    def unavailable(cls, detail: str = "") -> SourceResult:
        return cls(AttemptOutcome.UNAVAILABLE, detail=detail)

    @classmethod
    def network_error(cls, detail: str = "") -> SourceResult:
        return cls(AttemptOutcome.NETWORK_ERROR, detail=detail)

    @classmethod
    def format_changed(cls, detail: str = "") -> SourceResult:
        return cls(AttemptOutcome.FORMAT_CHANGED, detail=detail)


@dataclass
class FetchSession:
    """Per-request state shared by the attempts of one transcript fetch.

    RULES:
    - client: an entered YouTubeClient, closed by the service after the request
    - memo: scratch space keyed by source (e.g. yt-dlp video info)
    """

    client: YouTubeClient
    memo: dict[str, Any] = field(default_factory=dict)


class CaptionSource(ABC):
    """Abstract base for all caption retrieval strategies."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Strategy identifier used in attempt records and results."""

    @abstractmethod
    def languages(self, preferred: str | None) -> list[str | None]:
        """Ordered language candidates to try for this source.

        Language-agnostic sources return a single candidate.
        """

    @abstractmethod
    async def fetch(
        self,
        video_id: str,
        language: str | None,
        session: FetchSession,
    ) -> SourceResult:
        """Try to fetch and normalize captions for one language candidate."""

    def __repr__(self) -> str:
        return "<{} key={}>".format(type(self).__name__, self.key)
