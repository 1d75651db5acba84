"""Video identifier helpers.

WHY: The HTTP API receives bare ids, but people paste whole URLs into the
CLI. Adapters also need the watch URL and the internal API's opaque
params value derived from the id.

RULES:
- Ids are opaque: the service never rejects an id on its shape
- extract_video_id accepts bare 11-char ids and watch, youtu.be, shorts,
  embed and live URLs
- transcript_params encodes protobuf field 1 (length-delimited) as base64
"""

from __future__ import annotations

import base64
import re
from urllib.parse import parse_qs, quote, urlparse

from caption_relay.config import YOUTUBE_BASE_URL

_VIDEO_ID_RE = re.compile(r"[A-Za-z0-9_-]{11}")
_PATH_PREFIXES = frozenset({"shorts", "embed", "live", "v"})


def extract_video_id(value: str) -> str:
    """Return the video id from a bare id or a YouTube URL.

    Raises:
        ValueError: If no video id can be found.
    """
    raw = value.strip()
    if _VIDEO_ID_RE.fullmatch(raw):
        return raw

    if not re.match(r"^https?://", raw) and ("youtube.com" in raw or "youtu.be" in raw):
        raw = "https://" + raw

    parsed = urlparse(raw)
    host = parsed.netloc.lower()
    parts = [p for p in parsed.path.split("/") if p]

    if host.endswith("youtu.be") and parts and _VIDEO_ID_RE.fullmatch(parts[0]):
        return parts[0]

    if "youtube.com" in host:
        query_v = parse_qs(parsed.query).get("v", [])
        if query_v and _VIDEO_ID_RE.fullmatch(query_v[0]):
            return query_v[0]
        if len(parts) >= 2 and parts[0] in _PATH_PREFIXES and _VIDEO_ID_RE.fullmatch(parts[1]):
            return parts[1]

    raise ValueError("Could not extract a YouTube video id from: {}".format(value))


def watch_url(video_id: str) -> str:
    return "{}/watch?v={}".format(YOUTUBE_BASE_URL, quote(video_id, safe=""))


def transcript_params(video_id: str) -> str:
    """Opaque params value for youtubei/v1/get_transcript.

    Field 1, wire type 2 (tag byte 0x0A), followed by the id length and the
    id bytes. For a standard 11-char id this is b"\\n\\x0b" + id.
    """
    encoded = video_id.encode("utf-8")
    if len(encoded) > 127:
        raise ValueError("video id too long for a single-byte length prefix")
    return base64.b64encode(bytes([0x0A, len(encoded)]) + encoded).decode("ascii")
