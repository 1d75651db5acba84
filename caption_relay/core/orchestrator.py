"""Fallback orchestrator: run caption sources in priority order until one yields cues.

WHY: No single caption route survives YouTube's changes for long. The
orchestrator walks a fixed chain of heterogeneous strategies and stops at
the first one that produces cues, so a request degrades gracefully
instead of failing on the first broken route.

HOW: Sources run sequentially. Inside a source its language candidates
run in order. Every attempt becomes an AttemptRecord that is logged and
kept. Each source runs under a per-adapter timeout; on expiry the chain
moves on to the next source. When nothing produced cues, a single
NoCaptionsAvailable carrying every record is raised.

RULES:
- Strategy priority is the primary axis; language is secondary, within a source
- First non-empty cue list wins: no later candidate, no later source runs
- Sequential, never raced: each attempt is a heavyweight upstream call
- Each source/language combination is attempted exactly once (no retries)
- Exceptions escaping a source are recorded, never propagated
- Exhaustion raises one aggregate NoCaptionsAvailable, not the last error
- language_code comes from the winning source only; a request hint is never
  stamped onto a result whose source could not tell the language
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Sequence

from caption_relay.config import ADAPTER_TIMEOUT_S
from caption_relay.core.errors import NoCaptionsAvailable
from caption_relay.core.ir import AttemptOutcome, AttemptRecord, RawCue
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorOutcome:
    """The winning attempt plus every record made on the way."""

    strategy: str
    language_code: str | None
    cues: tuple[RawCue, ...]
    attempts: tuple[AttemptRecord, ...]


class FallbackOrchestrator:
    """Run caption sources in priority order with first-success short-circuit.

    Args:
        sources: Caption sources in priority order.
        timeout_s: Time budget per source (all its language candidates).
    """

    def __init__(
        self,
        sources: Sequence[CaptionSource],
        timeout_s: float | None = None,
    ) -> None:
        self._sources = list(sources)
        self._timeout_s = ADAPTER_TIMEOUT_S if timeout_s is None else timeout_s

    @property
    def sources(self) -> list[CaptionSource]:
        return list(self._sources)

    async def run(
        self,
        video_id: str,
        preferred_language: str | None,
        session: FetchSession,
        log: logging.Logger | logging.LoggerAdapter | None = None,
        request_id: str = "",
    ) -> OrchestratorOutcome:
        """Try every source/language combination until one yields cues.

        Raises:
            NoCaptionsAvailable: If every combination was exhausted.
        """
        log = log or logger
        attempts: list[AttemptRecord] = []

        for source in self._sources:
            try:
                winner = await asyncio.wait_for(
                    self._run_source(source, video_id, preferred_language, session, attempts, log),
                    timeout=self._timeout_s,
                )
            except asyncio.TimeoutError:
                record = AttemptRecord(
                    strategy=source.key,
                    language=None,
                    outcome=AttemptOutcome.TIMEOUT,
                    detail="source exceeded {:.0f}s budget".format(self._timeout_s),
                    elapsed_ms=self._timeout_s * 1000,
                )
                attempts.append(record)
                _log_attempt(log, record)
                continue

            if winner is not None:
                return OrchestratorOutcome(
                    strategy=source.key,
                    language_code=winner.language_code,
                    cues=winner.cues,
                    attempts=tuple(attempts),
                )

        log.warning(
            "All caption sources exhausted for %s after %d attempts",
            video_id,
            len(attempts),
        )
        raise NoCaptionsAvailable(video_id, request_id, attempts)

    async def _run_source(
        self,
        source: CaptionSource,
        video_id: str,
        preferred_language: str | None,
        session: FetchSession,
        attempts: list[AttemptRecord],
        log: logging.Logger | logging.LoggerAdapter,
    ) -> SourceResult | None:
        """Run one source's language candidates; return the first hit or None.

        Records are appended to ``attempts`` as they happen so that a
        timeout still leaves the completed attempts on record.
        """
        for language in source.languages(preferred_language):
            started = time.perf_counter()
            try:
                result = await source.fetch(video_id, language, session)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # pylint: disable=broad-except
                log.exception("Caption source %s raised unexpectedly", source.key)
                result = SourceResult.format_changed("unexpected {}".format(type(exc).__name__))

            record = AttemptRecord(
                strategy=source.key,
                language=language,
                outcome=result.outcome,
                cue_count=len(result.cues),
                detail=result.detail,
                elapsed_ms=(time.perf_counter() - started) * 1000,
            )
            attempts.append(record)
            _log_attempt(log, record)

            if result.has_cues:
                return result
        return None


def _log_attempt(
    log: logging.Logger | logging.LoggerAdapter,
    record: AttemptRecord,
) -> None:
    level = logging.INFO if record.outcome is AttemptOutcome.CUES else logging.DEBUG
    if record.outcome in (AttemptOutcome.NETWORK_ERROR, AttemptOutcome.TIMEOUT):
        level = logging.WARNING
    log.log(
        level,
        "attempt strategy=%s language=%s outcome=%s cues=%d",
        record.strategy,
        record.language or "-",
        record.outcome.value,
        record.cue_count,
        extra={"attempt": record.as_dict()},
    )
