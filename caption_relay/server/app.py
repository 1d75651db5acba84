"""FastAPI application serving transcripts and translations to the UI.

WHY: The browser-based learning UI fetches a video's transcript and
per-line translations over HTTP. FastAPI provides request validation,
automatic OpenAPI docs and async handlers, so concurrent requests share
nothing but the stateless service objects.

HOW: Three endpoints under /api. The transcript endpoint calls the
TranscriptService, optionally annotates segments with translations, and
converts the IR to camelCase response models. A single exception handler
turns TranscriptError into the ErrorResponse schema.

RULES:
- All endpoints have OpenAPI descriptions on every parameter and response
- Error responses use a consistent ErrorResponse schema
- transcript_service and translator are module singletons; tests patch them
- Translation failures never fail a transcript request
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from caption_relay import __version__
from caption_relay.config import (
    CORS_ORIGINS,
    HOST,
    PORT,
    TRANSLATE_SOURCE_LANGUAGE,
    TRANSLATE_TARGET_LANGUAGE,
)
from caption_relay.core.errors import TranscriptError, TranscriptUnavailable
from caption_relay.server.models import (
    ErrorResponse,
    HealthResponse,
    TranscriptResponse,
    TranslateRequest,
    TranslateResponse,
    transcript_to_response,
)
from caption_relay.service import TranscriptService
from caption_relay.translation import FallbackTranslator, annotate_segments

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and service setup
# ---------------------------------------------------------------------------

transcript_service = TranscriptService()
translator = FallbackTranslator()

app = FastAPI(
    title="Caption Relay API",
    description=(
        "Fetches YouTube captions through a chain of fallback strategies and "
        "returns timed, word-segmented transcripts for language learning. "
        "Segments can be annotated with translations."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TranscriptError)
async def transcript_error_handler(request: Request, exc: TranscriptError) -> JSONResponse:
    """Map pipeline errors to a 404 ErrorResponse."""
    if isinstance(exc, TranscriptUnavailable):
        body = ErrorResponse(
            detail=exc.message,
            video_id=exc.video_id,
            request_id=exc.request_id,
            kind=exc.kind,
        )
    else:
        logger.error("Attempt-level error reached the API: %s", exc)
        body = ErrorResponse(detail="Transcript could not be retrieved.", kind=exc.kind)
    return JSONResponse(status_code=404, content=body.model_dump(by_alias=True))


# ---------------------------------------------------------------------------
# Endpoints: Transcripts
# ---------------------------------------------------------------------------


@app.get(
    "/api/transcript/{video_id}",
    response_model=TranscriptResponse,
    response_model_by_alias=True,
    tags=["transcripts"],
    summary="Get the transcript for a YouTube video",
    description=(
        "Tries every caption source in priority order and returns the first "
        "usable transcript as timed segments with interpolated word timing. "
        "Pass translate_to to annotate every segment with a translation."
    ),
    responses={
        404: {"model": ErrorResponse, "description": "No usable captions for this video"},
    },
)
async def get_transcript(
    video_id: str,
    lang: Optional[str] = Query(
        default=None,
        description="Preferred caption language (e.g. 'es'). Tried first within each source.",
    ),
    translate_to: Optional[str] = Query(
        default=None,
        description="Target language for per-segment translations (e.g. 'vi').",
    ),
) -> TranscriptResponse:
    result = await transcript_service.get_transcript(video_id, lang=lang)

    annotated = None
    if translate_to:
        source_lang = result.language_code or lang or TRANSLATE_SOURCE_LANGUAGE
        annotated = await annotate_segments(result.segments, translator, source_lang, translate_to)
    return transcript_to_response(result, annotated)


# ---------------------------------------------------------------------------
# Endpoints: Translation
# ---------------------------------------------------------------------------


@app.post(
    "/api/translate",
    response_model=TranslateResponse,
    tags=["translation"],
    summary="Translate free text",
    description=(
        "Translates text through the backend chain. When every backend "
        "fails the original text is returned unchanged."
    ),
    responses={
        400: {"model": ErrorResponse, "description": "Empty text"},
    },
)
async def translate_text(body: TranslateRequest) -> TranslateResponse:
    if not body.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    translated = await translator.translate(
        body.text,
        body.source or TRANSLATE_SOURCE_LANGUAGE,
        body.target or TRANSLATE_TARGET_LANGUAGE,
    )
    return TranslateResponse(translation=translated)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/api/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness check for the UI and process supervisors.",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api():
    """Entry point for the caption-relay-api console script."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Caption Relay API listening on http://%s:%d", HOST, PORT)
    uvicorn.run(app, host=HOST, port=PORT)
