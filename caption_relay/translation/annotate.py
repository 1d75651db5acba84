"""Attach translations to segments without touching the segments.

WHY: The UI shows each caption line with its translation. Translation
runs after segments are built and is strictly optional: a failed backend
leaves the translation empty, it never fails the transcript.

HOW: Segments are translated concurrently under a semaphore through
Translator.try_translate, inside one `async with translator:` block so the
whole run shares connections. Each result is paired with its (unchanged)
segment.

RULES:
- Output order equals segment order
- translation is None when every backend failed for that segment
- Segments are immutable and returned as-is
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

from caption_relay.config import TRANSLATION_CONCURRENCY
from caption_relay.core.ir import Segment
from caption_relay.translation.base import Translator


@dataclass(frozen=True)
class AnnotatedSegment:
    segment: Segment
    translation: str | None = None


async def annotate_segments(
    segments: Sequence[Segment],
    translator: Translator,
    source_lang: str,
    target_lang: str,
    concurrency: int = TRANSLATION_CONCURRENCY,
) -> tuple[AnnotatedSegment, ...]:
    """Translate every segment's text; never raises because of a backend."""
    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _one(segment: Segment) -> AnnotatedSegment:
        async with semaphore:
            translated = await translator.try_translate(segment.text, source_lang, target_lang)
        return AnnotatedSegment(segment=segment, translation=translated)

    async with translator:
        return tuple(await asyncio.gather(*(_one(seg) for seg in segments)))
