"""Intermediate representation dataclasses for fetched transcripts.

WHY: YouTube hands back captions in several shapes (JSON cue events, XML
cue lists, internal API segment lists). The service, the translator and
the HTTP layer each need one well-typed form they can rely on, no matter
which strategy produced the data.

HOW: Frozen dataclasses form a small hierarchy:
  RawCue                 — one timed caption entry as a normalizer emitted it
  CaptionTrackDescriptor — one selectable caption stream found on a video
  Word                   — one whitespace token with interpolated timing
  Segment                — one cleaned caption line with its words
  AttemptRecord          — diagnostic for one adapter/language attempt
  TranscriptResult       — the complete answer for one request

RULES:
- Every entity is immutable and owned by a single request
- RawCue times are integer milliseconds; Segment and Word times are float seconds
- RawCue.duration_ms is never negative (producers clamp to 0)
- Segment.end > Segment.start and Segment.text is never empty
- Segment.words tile [start, end) with shared boundaries and no gaps
- source_strategy records provenance; language_code records linguistic
  identity and is None when the strategy cannot tell
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class AttemptOutcome(str, enum.Enum):
    """What a single adapter/language attempt produced.

    RULES:
    - cues: at least one non-empty cue (the chain stops here)
    - empty: the source answered but had nothing usable
    - unavailable: the source reported the video has no such captions
    - network_error: transport failure, non-2xx status or empty body
    - format_changed: the payload shape was not recognized
    - timeout: the per-adapter time budget ran out
    """

    CUES = "cues"
    EMPTY = "empty"
    UNAVAILABLE = "unavailable"
    NETWORK_ERROR = "network_error"
    FORMAT_CHANGED = "format_changed"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class RawCue:
    """One timed caption entry produced by a normalizer.

    RULES:
    - start_ms / duration_ms: integer milliseconds
    - duration_ms >= 0
    - text may be empty; the segment builder drops such cues
    """

    start_ms: int
    duration_ms: int
    text: str


@dataclass(frozen=True)
class CaptionTrackDescriptor:
    """One selectable caption stream listed on a video's watch page."""

    language_code: str
    kind: str  # "manual" or "auto"
    fetch_url: str


@dataclass(frozen=True)
class Word:
    """A single word with timing interpolated from its parent segment.

    The timing is proportional to word count, not to speech. It is an
    approximation good enough for click-to-seek and word highlighting.
    """

    text: str
    start: float
    end: float


@dataclass(frozen=True)
class Segment:
    """A cleaned caption line, the unit handed to callers.

    RULES:
    - start / end: float seconds, end > start
    - text: cleaned, non-empty
    - words: first.start == start, last.end == end, words[i].end == words[i+1].start
    """

    start: float
    end: float
    text: str
    words: tuple[Word, ...] = ()

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class AttemptRecord:
    """Structured diagnostic for one adapter/language attempt.

    WHY: The chain tries up to a dozen combinations per request. Operators
    need to see which ones ran and why they failed without reading
    free-form console output.

    RULES:
    - strategy: the source key (e.g. "transcript_api")
    - language: the candidate tried, or None for language-agnostic sources
    - detail: short human-readable note, never a raw upstream payload
    """

    strategy: str
    language: str | None
    outcome: AttemptOutcome
    cue_count: int = 0
    detail: str = ""
    elapsed_ms: float = 0.0

    def as_dict(self) -> dict:
        return {
            "strategy": self.strategy,
            "language": self.language,
            "outcome": self.outcome.value,
            "cue_count": self.cue_count,
            "detail": self.detail,
            "elapsed_ms": round(self.elapsed_ms, 1),
        }


@dataclass(frozen=True)
class TranscriptResult:
    """The complete transcript returned for one request.

    WHY: The UI, quiz and summary collaborators consume this read-only.
    They must not depend on which strategy produced it, so provenance and
    language are plain fields rather than control flow.

    RULES:
    - segments is never empty (an empty result is an error, not a success)
    - source_strategy: key of the adapter that produced the cues
    - language_code: language of the captions, or None when unknown
    - attempts: every attempt made, in order, ending with the winning one
    """

    video_id: str
    source_strategy: str
    language_code: str | None
    segments: tuple[Segment, ...]
    request_id: str = ""
    attempts: tuple[AttemptRecord, ...] = field(default_factory=tuple)

    @property
    def language_tag(self) -> str:
        """Legacy single-field tag: the language if known, else the strategy."""
        return self.language_code or self.source_strategy

    @property
    def duration(self) -> float:
        return self.segments[-1].end if self.segments else 0.0
