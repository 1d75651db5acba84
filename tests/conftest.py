"""Shared test fixtures for the caption_relay test suite.

WHY: Several test modules need the same caption payloads (json3, XML,
internal API responses, watch page HTML) and the same scripted caption
source. Centralizing them here keeps the wire samples consistent.

HOW: Module-level constants hold the payload samples; fixtures return
fresh copies. ScriptedSource is a CaptionSource that replays a fixed
SourceResult per language and records every call it receives.

RULES:
- No fixture touches the network
- Payload samples mirror the real wire shapes (trimmed to a few cues)
- ScriptedSource.calls records (video_id, language) in call order
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from caption_relay.core.ir import RawCue
from caption_relay.sources.base import CaptionSource, FetchSession, SourceResult


# ---------------------------------------------------------------------------
# Wire payload samples
# ---------------------------------------------------------------------------

JSON3_PAYLOAD: Dict[str, Any] = {
    "wireMagic": "pb3",
    "events": [
        {"tStartMs": 0, "dDurationMs": 120000, "id": 1, "wpWinPosId": 1},
        {"tStartMs": 1000, "dDurationMs": 2500, "segs": [{"utf8": "Hola "}, {"utf8": "mundo"}]},
        {"tStartMs": 3500, "segs": [{"utf8": "¿Qué tal?"}]},
        {"tStartMs": 6000, "dDurationMs": 1200, "segs": [{"utf8": "\n"}]},
    ],
}

XML_PAYLOAD = (
    '<?xml version="1.0" encoding="utf-8" ?><transcript>'
    '<text start="5.0" dur="2.5">Buenos &amp; días</text>'
    '<text start="7.5" dur="1.25">&lt;b&gt;hola&lt;/b&gt; &#39;amigo&#39;</text>'
    '<text start="9">sin duración</text>'
    "</transcript>"
)


def innertube_response(segments: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Wrap segment renderers in the get_transcript response envelope."""
    return {
        "responseContext": {},
        "actions": [{
            "updateEngagementPanelAction": {
                "content": {
                    "transcriptRenderer": {
                        "content": {
                            "transcriptSearchPanelRenderer": {
                                "body": {
                                    "transcriptSegmentListRenderer": {
                                        "initialSegments": segments,
                                    }
                                }
                            }
                        }
                    }
                }
            }
        }],
    }


def innertube_segment(start_ms: int, end_ms: int, *runs: str) -> Dict[str, Any]:
    return {
        "transcriptSegmentRenderer": {
            "startMs": str(start_ms),
            "endMs": str(end_ms),
            "snippet": {"runs": [{"text": r} for r in runs]},
        }
    }


def watch_page_html(tracks_json: str) -> str:
    """Minimal watch page embedding a captionTracks array."""
    return (
        "<html><head><title>Video</title></head><body><script>"
        "var ytInitialPlayerResponse = {\"captions\":{\"playerCaptionsTracklistRenderer\":"
        "{\"captionTracks\":" + tracks_json + ",\"audioTracks\":[]}}};"
        "</script></body></html>"
    )


@pytest.fixture
def json3_payload():
    return dict(JSON3_PAYLOAD)


@pytest.fixture
def xml_payload():
    return XML_PAYLOAD


# ---------------------------------------------------------------------------
# Scripted caption source
# ---------------------------------------------------------------------------


class ScriptedSource(CaptionSource):
    """CaptionSource that replays canned results.

    Args:
        key: Strategy key.
        results: language → SourceResult (or an exception instance to raise).
        candidates: Languages returned by languages(); defaults to results' keys.
        delay: Seconds to sleep inside fetch (for timeout tests).
    """

    def __init__(
        self,
        key: str,
        results: Dict[Optional[str], Any],
        candidates: Optional[List[Optional[str]]] = None,
        delay: float = 0.0,
    ) -> None:
        self._key = key
        self._results = results
        self._candidates = candidates if candidates is not None else list(results)
        self._delay = delay
        self.calls: List[tuple] = []

    @property
    def key(self) -> str:
        return self._key

    def languages(self, preferred: Optional[str]) -> List[Optional[str]]:
        return list(self._candidates)

    async def fetch(self, video_id: str, language: Optional[str], session: FetchSession) -> SourceResult:
        self.calls.append((video_id, language))
        if self._delay:
            await asyncio.sleep(self._delay)
        result = self._results.get(language, SourceResult.empty())
        if isinstance(result, BaseException):
            raise result
        return result


def cues(*texts: str) -> List[RawCue]:
    """One 1-second cue per text, back to back."""
    return [RawCue(start_ms=i * 1000, duration_ms=1000, text=t) for i, t in enumerate(texts)]


@pytest.fixture
def scripted_source():
    """Factory fixture returning the ScriptedSource class."""
    return ScriptedSource


@pytest.fixture
def make_cues():
    return cues
