"""Typed error kinds for the transcript pipeline.

WHY: Callers need to tell "this video has no captions" apart from
"captions existed but nothing survived cleaning", and adapters need typed
signals for the failures they recover from locally.

HOW: Two families share the TranscriptError root:
  request-level  — NoCaptionsAvailable, EmptyAfterCleaning (reach the caller)
  attempt-level  — UpstreamFormatChanged, NetworkFailure (caught by adapters)

RULES:
- Attempt-level errors never propagate past the orchestrator
- Request-level errors carry the video id and request id for diagnosis
- Messages never include raw upstream payloads
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from caption_relay.core.ir import AttemptOutcome, AttemptRecord


class TranscriptError(Exception):
    """Base class for every error raised by the transcript pipeline."""

    kind = "transcript_error"


class UpstreamFormatChanged(TranscriptError):
    """A normalizer met a payload shape it cannot parse."""

    kind = "upstream_format_changed"


class NetworkFailure(TranscriptError):
    """Transport error, timeout, non-2xx status or empty body.

    RULES:
    - status_code is None for transport-level failures
    """

    kind = "network_failure"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class TranscriptUnavailable(TranscriptError):
    """Request-level failure surfaced to the caller."""

    def __init__(self, message: str, video_id: str, request_id: str = "") -> None:
        self.video_id = video_id
        self.request_id = request_id
        self.message = message
        super().__init__(message)


class NoCaptionsAvailable(TranscriptUnavailable):
    """Every adapter/language combination was exhausted without cues.

    WHY: The last error seen is rarely the informative one, so the chain
    reports a single aggregate failure built from all attempt records.

    HOW: The summary looks at the outcome mix. If every attempt failed
    technically or every attempt hit an unknown payload shape, the message
    says so; otherwise the video most likely has no captions.
    """

    kind = "no_captions_available"

    def __init__(
        self,
        video_id: str,
        request_id: str = "",
        attempts: Iterable[AttemptRecord] = (),
    ) -> None:
        self.attempts = tuple(attempts)
        super().__init__(_summarize(video_id, self.attempts), video_id, request_id)

    @property
    def outcome_counts(self) -> dict[str, int]:
        return dict(Counter(a.outcome.value for a in self.attempts))


class EmptyAfterCleaning(TranscriptUnavailable):
    """Cues were fetched but no text survived cleaning."""

    kind = "empty_after_cleaning"

    def __init__(self, video_id: str, request_id: str = "", strategy: str = "") -> None:
        self.strategy = strategy
        super().__init__(
            "Transcript for video {} contains no valid text after cleaning.".format(video_id),
            video_id,
            request_id,
        )


_TECHNICAL = frozenset({AttemptOutcome.NETWORK_ERROR, AttemptOutcome.TIMEOUT})


def _summarize(video_id: str, attempts: tuple[AttemptRecord, ...]) -> str:
    base = "No transcript available for video {}.".format(video_id)
    if not attempts:
        return base + " No caption sources are configured."
    outcomes = {a.outcome for a in attempts}
    if outcomes <= _TECHNICAL:
        return base + (
            " Every caption source failed to respond ({} attempts); "
            "YouTube may be unreachable or rate limiting.".format(len(attempts))
        )
    if outcomes == {AttemptOutcome.FORMAT_CHANGED}:
        return base + (
            " Every caption source returned a payload in an unrecognized "
            "format; YouTube may have changed its response shape."
        )
    return base + (
        " The video might not have captions enabled, captions may be "
        "disabled by the uploader, or the video is private or deleted."
    )
