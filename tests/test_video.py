"""Tests for video id helpers."""

from __future__ import annotations

import base64

import pytest

from caption_relay.core.video import extract_video_id, transcript_params, watch_url


class TestExtractVideoId:
    """Tests for extract_video_id()."""

    @pytest.mark.parametrize("value", [
        "dQw4w9WgXcQ",
        "  dQw4w9WgXcQ ",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ&t=42",
        "https://youtu.be/dQw4w9WgXcQ?t=10",
        "https://www.youtube.com/shorts/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/live/dQw4w9WgXcQ?si=abc",
        "youtube.com/watch?v=dQw4w9WgXcQ",
        "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
    ])
    def test_accepted_forms(self, value):
        assert extract_video_id(value) == "dQw4w9WgXcQ"

    @pytest.mark.parametrize("value", [
        "",
        "not a video",
        "https://vimeo.com/12345678901",
        "https://www.youtube.com/channel/UC1234567890",
    ])
    def test_rejected_forms(self, value):
        with pytest.raises(ValueError):
            extract_video_id(value)


class TestTranscriptParams:
    """Tests for transcript_params()."""

    def test_standard_id(self):
        decoded = base64.b64decode(transcript_params("dQw4w9WgXcQ"))
        assert decoded == b"\n\x0bdQw4w9WgXcQ"

    def test_too_long_id_rejected(self):
        with pytest.raises(ValueError):
            transcript_params("x" * 200)


def test_watch_url():
    assert watch_url("dQw4w9WgXcQ").endswith("/watch?v=dQw4w9WgXcQ")
