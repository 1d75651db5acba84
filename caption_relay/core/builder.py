"""Segment builder: RawCue list → cleaned, word-timed Segment list.

WHY: Normalized cues still carry stray entities, markup and sound
annotations like "[Music]", and they have no word-level timing. The UI
highlights words as the video plays, so every segment needs words with
start/end times.

HOW: Each cue's text is cleaned; cues left empty are dropped. Surviving
cues become Segments in seconds. The cleaned text is split on whitespace
and the segment duration is divided evenly among the words.

RULES:
- clean: decode entities → strip tags → strip [bracketed] annotations →
  collapse whitespace → trim
- start = start_ms / 1000, end = start + duration_ms / 1000
- Non-positive durations use DEFAULT_CUE_DURATION_MS so end > start
- Word i of n spans [start + i*d/n, start + (i+1)*d/n); the last word
  ends exactly at the segment end
- Word timing is a linear approximation by word count, not audio-derived
- Zero surviving segments → EmptyAfterCleaning
"""

from __future__ import annotations

import re
from typing import Iterable

from caption_relay.config import DEFAULT_CUE_DURATION_MS
from caption_relay.core.errors import EmptyAfterCleaning
from caption_relay.core.ir import RawCue, Segment, Word
from caption_relay.core.normalizers import decode_entities, strip_tags

_ANNOTATION_RE = re.compile(r"\[.*?\]")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Remove residual entities, tags and bracketed annotations."""
    text = strip_tags(decode_entities(text))
    text = _ANNOTATION_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def interpolate_words(text: str, start: float, end: float) -> tuple[Word, ...]:
    """Split text on whitespace and spread [start, end) evenly across the words.

    Boundaries are computed once and shared, so word i's end is the same
    float as word i+1's start.
    """
    tokens = text.split()
    if not tokens:
        return ()
    n = len(tokens)
    duration = end - start
    bounds = [start + i * duration / n for i in range(n)] + [end]
    return tuple(
        Word(text=token, start=bounds[i], end=bounds[i + 1])
        for i, token in enumerate(tokens)
    )


def build_segment(cue: RawCue) -> Segment | None:
    """Build one Segment from a cue, or None when no text survives cleaning."""
    text = clean_text(cue.text)
    if not text:
        return None
    duration_ms = cue.duration_ms if cue.duration_ms > 0 else DEFAULT_CUE_DURATION_MS
    start = cue.start_ms / 1000.0
    end = start + duration_ms / 1000.0
    return Segment(start=start, end=end, text=text, words=interpolate_words(text, start, end))


def build_segments(
    cues: Iterable[RawCue],
    video_id: str = "",
    request_id: str = "",
    strategy: str = "",
) -> tuple[Segment, ...]:
    """Convert normalized cues into the canonical segment list.

    Args:
        cues: Non-empty ordered RawCue sequence from the winning source.
        video_id: For error context only.
        request_id: For error context only.
        strategy: Source key that produced the cues, for error context.

    Returns:
        Segments in cue order.

    Raises:
        EmptyAfterCleaning: If no cue has text left after cleaning.
    """
    segments = tuple(seg for seg in (build_segment(cue) for cue in cues) if seg is not None)
    if not segments:
        raise EmptyAfterCleaning(video_id, request_id, strategy=strategy)
    return segments
