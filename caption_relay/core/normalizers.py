"""Pure parsers that turn YouTube caption wire formats into RawCue lists.

WHY: The same captions reach us as json3 event streams, XML <text> cue
lists, or the internal transcript API's nested segment list. The rest of
the pipeline should only ever see RawCue objects.

HOW: One function per wire format. Each is pure (no network, no state),
so identical input text always yields identical output. Shape problems
raise UpstreamFormatChanged (JSON, XML) or come back as an explicit
"unrecognized" variant (internal API) so adapters can record them and
move on.

RULES:
- Missing durations default to DEFAULT_CUE_DURATION_MS (policy, not measured)
- JSON: one cue per event whose concatenated, trimmed run text is non-empty
- XML: strip inline tags, decode the six standard entities in one pass,
  newlines become spaces, trim; empty cues are dropped
- Internal API: navigate with dig(), never with a raw index chain
- Negative durations are clamped to 0
"""

from __future__ import annotations

import enum
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from caption_relay.config import DEFAULT_CUE_DURATION_MS
from caption_relay.core.errors import UpstreamFormatChanged
from caption_relay.core.ir import RawCue

_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&nbsp;": " ",
}
_ENTITY_RE = re.compile("|".join(re.escape(e) for e in _ENTITIES))
_TAG_RE = re.compile(r"<[^>]*>")
_XML_CUE_RE = re.compile(r"<text\b([^>]*?)(?<!/)>(.*?)</text>", re.DOTALL)
_XML_SELF_CLOSED_CUE_RE = re.compile(r"<text\b[^>]*/>")
_ATTR_RE = re.compile(r'([\w:-]+)\s*=\s*"([^"]*)"')


def decode_entities(text: str) -> str:
    """Decode the six standard HTML entities in a single left-to-right pass.

    A single pass means "&amp;lt;" becomes "&lt;", not "<". Text without
    residual entities is left unchanged, so decoding is idempotent on it.
    """
    return _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)


def strip_tags(text: str) -> str:
    return _TAG_RE.sub("", text)


# ---------------------------------------------------------------------------
# json3
# ---------------------------------------------------------------------------


def parse_json_cues(payload: str | bytes | Mapping[str, Any]) -> list[RawCue]:
    """Parse a json3 caption payload.

    RULES:
    - payload is the raw body text or an already-decoded object
    - The object must carry an "events" list, else UpstreamFormatChanged
    - Events without "segs" are layout events and are skipped
    - tStartMs defaults to 0, dDurationMs to DEFAULT_CUE_DURATION_MS
    - Events with non-numeric timing are skipped

    Raises:
        UpstreamFormatChanged: If the payload is not JSON or has no events list.
    """
    if isinstance(payload, (str, bytes)):
        try:
            data = json.loads(payload)
        except ValueError as exc:
            raise UpstreamFormatChanged("json3 payload is not valid JSON") from exc
    else:
        data = payload

    if not isinstance(data, Mapping) or not isinstance(data.get("events"), list):
        raise UpstreamFormatChanged("json3 payload has no events list")

    cues: list[RawCue] = []
    for event in data["events"]:
        if not isinstance(event, Mapping):
            continue
        segs = event.get("segs")
        if not isinstance(segs, list):
            continue
        text = "".join(
            str(seg.get("utf8") or "") for seg in segs if isinstance(seg, Mapping)
        ).strip()
        if not text:
            continue
        try:
            start_ms = int(event.get("tStartMs") or 0)
            raw_duration = event.get("dDurationMs")
            duration_ms = DEFAULT_CUE_DURATION_MS if raw_duration is None else int(raw_duration)
        except (TypeError, ValueError):
            continue
        cues.append(RawCue(start_ms=start_ms, duration_ms=max(duration_ms, 0), text=text))
    return cues


# ---------------------------------------------------------------------------
# XML <text> cue lists (srv1 / legacy timedtext)
# ---------------------------------------------------------------------------


def parse_xml_cues(payload: str) -> list[RawCue]:
    """Parse an XML cue list of <text start="…" dur="…">…</text> elements.

    RULES:
    - start/dur are seconds (float); converted to integer milliseconds
    - Missing dur uses DEFAULT_CUE_DURATION_MS
    - Cues with a missing or non-numeric start are dropped
    - Inline markup (<font>, <b>, …) is removed before entity decoding
    - An empty <transcript> document yields []

    Raises:
        UpstreamFormatChanged: If the payload contains no <text> elements
            and is not a transcript document at all (e.g. an HTML error page).
    """
    matches = list(_XML_CUE_RE.finditer(payload))
    if not matches:
        if "<transcript" in payload or _XML_SELF_CLOSED_CUE_RE.search(payload):
            return []
        raise UpstreamFormatChanged("caption payload contains no <text> cues")

    cues: list[RawCue] = []
    for match in matches:
        attrs = dict(_ATTR_RE.findall(match.group(1)))
        try:
            start_ms = round(float(attrs["start"]) * 1000)
        except (KeyError, ValueError):
            continue
        try:
            duration_ms = round(float(attrs["dur"]) * 1000) if "dur" in attrs else DEFAULT_CUE_DURATION_MS
        except ValueError:
            duration_ms = DEFAULT_CUE_DURATION_MS

        text = decode_entities(strip_tags(match.group(2)))
        text = text.replace("\r\n", " ").replace("\n", " ").strip()
        if text:
            cues.append(RawCue(start_ms=start_ms, duration_ms=max(duration_ms, 0), text=text))
    return cues


# ---------------------------------------------------------------------------
# Internal transcript API (youtubei/v1/get_transcript)
# ---------------------------------------------------------------------------


class InnertubeShape(str, enum.Enum):
    """Tagged variants of a get_transcript response."""

    FOUND = "found"
    EMPTY = "empty"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class InnertubeParse:
    """Classified get_transcript response.

    RULES:
    - FOUND always carries at least one cue
    - EMPTY means the response was understood but offered no transcript
    - UNRECOGNIZED means the nested path was broken somewhere
    """

    shape: InnertubeShape
    cues: tuple[RawCue, ...] = ()
    detail: str = ""


_SEGMENT_LIST_PATH: tuple[Any, ...] = (
    "actions", 0, "updateEngagementPanelAction", "content",
    "transcriptRenderer", "content", "transcriptSearchPanelRenderer",
    "body", "transcriptSegmentListRenderer", "initialSegments",
)


def dig(data: Any, *path: Any) -> Any:
    """Optional-chain lookup: follow keys/indexes, return None on any mismatch.

    String steps require a mapping, integer steps require a list with that
    index. Never raises.
    """
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def parse_innertube_transcript(data: Any) -> InnertubeParse:
    """Classify a get_transcript response and extract its timed segments.

    HOW: Looks up the initialSegments list through dig(). Each entry's
    transcriptSegmentRenderer supplies startMs, endMs and snippet runs;
    chapter headers and malformed entries are skipped.

    RULES:
    - Not an object → UNRECOGNIZED
    - No "actions" key → EMPTY (no transcript panel offered)
    - "actions" present but the segment list missing → UNRECOGNIZED
    - Segment list present but no usable text → EMPTY
    - duration = endMs - startMs, clamped at 0
    """
    if not isinstance(data, Mapping):
        return InnertubeParse(InnertubeShape.UNRECOGNIZED, detail="response is not an object")
    if "actions" not in data:
        return InnertubeParse(InnertubeShape.EMPTY, detail="response has no actions")

    segments = dig(data, *_SEGMENT_LIST_PATH)
    if not isinstance(segments, list):
        return InnertubeParse(InnertubeShape.UNRECOGNIZED, detail="segment list not found")

    cues: list[RawCue] = []
    for entry in segments:
        renderer = dig(entry, "transcriptSegmentRenderer")
        if not isinstance(renderer, Mapping):
            continue
        try:
            start_ms = int(renderer.get("startMs"))
            end_ms = int(renderer.get("endMs"))
        except (TypeError, ValueError):
            continue
        runs = dig(renderer, "snippet", "runs")
        if not isinstance(runs, list):
            continue
        text = "".join(
            str(run.get("text") or "") for run in runs if isinstance(run, Mapping)
        ).strip()
        if text:
            cues.append(RawCue(start_ms=start_ms, duration_ms=max(end_ms - start_ms, 0), text=text))

    if not cues:
        return InnertubeParse(InnertubeShape.EMPTY, detail="segment list has no text")
    return InnertubeParse(InnertubeShape.FOUND, cues=tuple(cues))
