"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. The browser
UI reads camelCase keys, so the wire names differ from the IR's.

HOW: Each endpoint has its own response model. Field aliases carry the
camelCase wire names; populate_by_name lets server code build models
with Python names. Converters from the IR live next to the models.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Responses are serialized by alias (videoId, sourceStrategy, ...)
- Response models never expose raw upstream payloads
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from caption_relay.core.ir import AttemptRecord, Segment, TranscriptResult
from caption_relay.translation.annotate import AnnotatedSegment


_CAMEL = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class TranslateRequest(BaseModel):
    """Free-text translation request.

    RULES:
    - source defaults to TRANSLATE_SOURCE_LANGUAGE ("es")
    - target defaults to TRANSLATE_TARGET_LANGUAGE ("vi")
    """

    text: str = Field(description="Text to translate.")
    source: Optional[str] = Field(
        default=None,
        description="Source language code (e.g. 'es'). Defaults to the server setting.",
    )
    target: Optional[str] = Field(
        default=None,
        description="Target language code (e.g. 'vi'). Defaults to the server setting.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class WordModel(BaseModel):
    """One word with interpolated timing (seconds)."""

    text: str = Field(description="Word text.")
    start: float = Field(description="Word start time in seconds.")
    end: float = Field(description="Word end time in seconds.")


class SegmentModel(BaseModel):
    """One caption line with its words.

    RULES:
    - translation is only set when translate_to was requested and a
      backend produced a result
    """

    start: float = Field(description="Segment start time in seconds.")
    end: float = Field(description="Segment end time in seconds.")
    text: str = Field(description="Cleaned caption text.")
    words: List[WordModel] = Field(description="Whitespace tokens with interpolated timing.")
    translation: Optional[str] = Field(
        default=None,
        description="Translated text, when translation was requested.",
    )


class AttemptModel(BaseModel):
    """Diagnostic record for one caption source attempt."""

    strategy: str = Field(description="Caption source key.")
    language: Optional[str] = Field(default=None, description="Language candidate tried.")
    outcome: str = Field(description="Attempt outcome (cues, empty, unavailable, ...).")
    cue_count: int = Field(default=0, alias="cueCount", description="Number of cues found.")

    model_config = _CAMEL


class TranscriptResponse(BaseModel):
    """Transcript for one video.

    WHY: This is the contract the learning UI renders. ``language`` keeps
    the legacy single tag (language when known, else strategy) while
    sourceStrategy and languageCode expose the two facts separately.
    """

    video_id: str = Field(alias="videoId", description="YouTube video id.")
    language: str = Field(description="Legacy tag: language code when known, else the source strategy.")
    source_strategy: str = Field(alias="sourceStrategy", description="Caption source that produced the data.")
    language_code: Optional[str] = Field(
        default=None,
        alias="languageCode",
        description="Language of the captions, or null when the source cannot tell.",
    )
    segments: List[SegmentModel] = Field(description="Caption segments in time order.")
    attempts: List[AttemptModel] = Field(
        default_factory=list,
        description="Every caption source attempt made for this request.",
    )
    request_id: str = Field(alias="requestId", description="Trace id for this request.")

    model_config = {**_CAMEL, "json_schema_extra": {
        "examples": [
            {
                "videoId": "dQw4w9WgXcQ",
                "language": "es",
                "sourceStrategy": "transcript_api",
                "languageCode": "es",
                "segments": [
                    {
                        "start": 0.0,
                        "end": 2.5,
                        "text": "Hola mundo",
                        "words": [
                            {"text": "Hola", "start": 0.0, "end": 1.25},
                            {"text": "mundo", "start": 1.25, "end": 2.5},
                        ],
                        "translation": "Xin chào thế giới",
                    }
                ],
                "attempts": [
                    {"strategy": "transcript_api", "language": "es", "outcome": "cues", "cueCount": 1}
                ],
                "requestId": "3f2a9c0e5b7d4e1f8a6b2c9d0e1f2a3b",
            }
        ]
    }}


class TranslateResponse(BaseModel):
    """Translation result; the original text when every backend failed."""

    translation: str = Field(description="Translated text.")


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    - kind distinguishes no_captions_available from empty_after_cleaning
    """

    detail: str = Field(description="Human-readable error description.")
    video_id: Optional[str] = Field(default=None, alias="videoId", description="Video the request was for.")
    request_id: Optional[str] = Field(default=None, alias="requestId", description="Trace id for this request.")
    kind: Optional[str] = Field(default=None, description="Machine-readable error kind.")

    model_config = _CAMEL


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


def segment_to_model(segment: Segment, translation: Optional[str] = None) -> SegmentModel:
    return SegmentModel(
        start=segment.start,
        end=segment.end,
        text=segment.text,
        words=[WordModel(text=w.text, start=w.start, end=w.end) for w in segment.words],
        translation=translation,
    )


def annotated_to_model(item: AnnotatedSegment) -> SegmentModel:
    return segment_to_model(item.segment, item.translation)


def attempt_to_model(record: AttemptRecord) -> AttemptModel:
    return AttemptModel(
        strategy=record.strategy,
        language=record.language,
        outcome=record.outcome.value,
        cue_count=record.cue_count,
    )


def transcript_to_response(
    result: TranscriptResult,
    annotated: Optional[Sequence[AnnotatedSegment]] = None,
) -> TranscriptResponse:
    """Build the wire response; ``annotated`` replaces plain segments when given."""
    if annotated is not None:
        segments = [annotated_to_model(item) for item in annotated]
    else:
        segments = [segment_to_model(seg) for seg in result.segments]
    return TranscriptResponse(
        video_id=result.video_id,
        language=result.language_tag,
        source_strategy=result.source_strategy,
        language_code=result.language_code,
        segments=segments,
        attempts=[attempt_to_model(a) for a in result.attempts],
        request_id=result.request_id,
    )
