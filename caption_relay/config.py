"""Configuration constants, language candidate lists, and .env loading.

WHY: Centralizes every tunable value (language fallback orders, upstream
endpoints, timeouts, CORS origins) so they are easy to find and override
without digging through adapter logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values; deployment-specific ones read environment variables
with a default.

RULES:
- DEFAULT_CUE_DURATION_MS is a policy constant, not a measured value
- Language candidate lists are ordered; earlier entries are tried first
- All network defaults can be overridden via environment variables
- Never hardcode credentials here
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


# ---------------------------------------------------------------------------
# Cue timing policy
# ---------------------------------------------------------------------------

DEFAULT_CUE_DURATION_MS = 2000
"""Duration assigned to a cue whose source gives none (or a non-positive one)."""

MIN_CAPTION_PAYLOAD_CHARS = 50
"""Caption bodies shorter than this are treated as empty responses."""

# ---------------------------------------------------------------------------
# Language candidates
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGES: tuple[str, ...] = _env_list("CAPTION_RELAY_DEFAULT_LANGUAGES", "es,en")
"""Fallback order used by the primary extractor after the caller's preference."""

YTDLP_LANGUAGES: tuple[str, ...] = ("es", "es-419", "es-ES", "en", "auto")
"""Candidates for the secondary extractor; "auto" takes whatever track exists."""

AUTO_LANGUAGE = "auto"

CAPTION_FORMATS: tuple[str, ...] = ("json3", "srv3", "")
"""fmt= query variants tried per watch-page track; "" means no fmt parameter."""

# ---------------------------------------------------------------------------
# YouTube endpoints and client identity
# ---------------------------------------------------------------------------

YOUTUBE_BASE_URL = os.getenv("YOUTUBE_BASE_URL", "https://www.youtube.com")
INNERTUBE_TRANSCRIPT_PATH = "/youtubei/v1/get_transcript"
INNERTUBE_CLIENT_NAME = "WEB"
INNERTUBE_CLIENT_VERSION = os.getenv("INNERTUBE_CLIENT_VERSION", "2.20240101.00.00")
INNERTUBE_HL = os.getenv("INNERTUBE_HL", "en")
INNERTUBE_GL = os.getenv("INNERTUBE_GL", "US")

BROWSER_USER_AGENT = os.getenv(
    "CAPTION_RELAY_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
ACCEPT_LANGUAGE = os.getenv("CAPTION_RELAY_ACCEPT_LANGUAGE", "en-US,en;q=0.9")

# ---------------------------------------------------------------------------
# Timeouts
# ---------------------------------------------------------------------------

ADAPTER_TIMEOUT_S = float(os.getenv("CAPTION_RELAY_ADAPTER_TIMEOUT_S", "12"))
"""Time budget for one caption source, all of its language candidates included."""

HTTP_TIMEOUT_S = float(os.getenv("CAPTION_RELAY_HTTP_TIMEOUT_S", "10"))

# ---------------------------------------------------------------------------
# Translation collaborator
# ---------------------------------------------------------------------------

TRANSLATE_SOURCE_LANGUAGE = os.getenv("TRANSLATE_SOURCE_LANGUAGE", "es")
TRANSLATE_TARGET_LANGUAGE = os.getenv("TRANSLATE_TARGET_LANGUAGE", "vi")
GOOGLE_TRANSLATE_URL = os.getenv(
    "GOOGLE_TRANSLATE_URL", "https://translate.googleapis.com/translate_a/single"
)
MYMEMORY_URL = os.getenv("MYMEMORY_URL", "https://api.mymemory.translated.net/get")
MYMEMORY_MAX_CHARS = 500
TRANSLATION_CONCURRENCY = int(os.getenv("TRANSLATION_CONCURRENCY", "4"))

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

HOST = os.getenv("CAPTION_RELAY_HOST", "0.0.0.0")
PORT = int(os.getenv("CAPTION_RELAY_PORT", "3002"))
CORS_ORIGINS: tuple[str, ...] = _env_list(
    "CAPTION_RELAY_CORS_ORIGINS",
    "http://localhost:3001,http://localhost:3000,"
    "http://127.0.0.1:3001,http://127.0.0.1:3000",
)


def language_candidates(preferred: str | None, fallbacks: tuple[str, ...]) -> list[str]:
    """Build an ordered, de-duplicated language candidate list.

    RULES:
    - The preferred language (when given and non-blank) comes first
    - Fallbacks follow in their declared order
    - Duplicates keep their first position
    """
    ordered: list[str] = []
    head = [preferred.strip()] if preferred and preferred.strip() else []
    for code in head + list(fallbacks):
        if code not in ordered:
            ordered.append(code)
    return ordered
