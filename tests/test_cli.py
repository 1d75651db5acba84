"""Tests for the command-line interface.

WHY: The CLI is the quickest way to check a video by hand. Its exit codes
and the stdout/stderr split must hold so it can be scripted and piped.

HOW: Calls main(argv) with TranscriptService patched in the cli module
and inspects the captured stdout/stderr via capsys.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from caption_relay.cli import build_parser, main
from caption_relay.core.errors import NoCaptionsAvailable
from caption_relay.core.ir import AttemptOutcome, AttemptRecord, Segment, TranscriptResult, Word
from caption_relay.translation import AnnotatedSegment

VIDEO_ID = "abcdefghijk"


def _result(count=3):
    segments = tuple(
        Segment(
            float(i),
            float(i + 1),
            "línea {}".format(i),
            (Word("línea", float(i), i + 0.5), Word(str(i), i + 0.5, float(i + 1))),
        )
        for i in range(count)
    )
    return TranscriptResult(
        video_id=VIDEO_ID,
        source_strategy="yt_dlp",
        language_code="es",
        segments=segments,
        request_id="req-1",
    )


@pytest.fixture
def service():
    mock = MagicMock()
    mock.get_transcript = AsyncMock(return_value=_result())
    with patch("caption_relay.cli.TranscriptService", return_value=mock):
        yield mock


class TestParser:
    """Tests for build_parser()."""

    def test_defaults(self):
        args = build_parser().parse_args([VIDEO_ID])
        assert args.video == VIDEO_ID
        assert args.lang is None
        assert args.translate_to is None
        assert args.json is False
        assert args.preview == 5

    def test_all_flags(self):
        args = build_parser().parse_args([VIDEO_ID, "--lang", "es", "--translate-to", "vi", "--json", "--preview", "2", "--verbose"])
        assert (args.lang, args.translate_to, args.json, args.preview, args.verbose) == ("es", "vi", True, 2, True)


class TestMain:
    """Tests for main()."""

    def test_json_output(self, service, capsys):
        code = main(["https://youtu.be/{}".format(VIDEO_ID), "--json", "--lang", "es"])

        assert code == 0
        body = json.loads(capsys.readouterr().out)
        assert body["videoId"] == VIDEO_ID
        assert body["sourceStrategy"] == "yt_dlp"
        assert len(body["segments"]) == 3
        service.get_transcript.assert_awaited_once_with(VIDEO_ID, lang="es")

    def test_preview_output(self, service, capsys):
        code = main([VIDEO_ID, "--preview", "2"])

        assert code == 0
        captured = capsys.readouterr()
        lines = captured.out.strip().splitlines()
        assert lines[0] == "[00:00.00 - 00:01.00] línea 0"
        assert lines[-1] == "... 1 more segment(s)"
        assert "Source: yt_dlp" in captured.err

    def test_preview_with_translation(self, service, capsys):
        translator = MagicMock()
        with patch("caption_relay.cli.FallbackTranslator", return_value=translator), \
                patch("caption_relay.cli.annotate_segments", new=AsyncMock()) as annotate:
            annotate.return_value = tuple(AnnotatedSegment(s, "dòng") for s in _result().segments[:1])
            code = main([VIDEO_ID, "--preview", "1", "--translate-to", "vi"])

        assert code == 0
        out = capsys.readouterr().out
        assert "    -> dòng" in out
        assert annotate.await_args.args[2:] == ("es", "vi")

    def test_no_captions_exit_code(self, service, capsys):
        attempts = (AttemptRecord("transcript_api", "es", AttemptOutcome.UNAVAILABLE),)
        service.get_transcript.side_effect = NoCaptionsAvailable(VIDEO_ID, "req-1", attempts)

        assert main([VIDEO_ID]) == 1
        err = capsys.readouterr().err
        assert "No transcript available" in err
        assert "transcript_api" in err

    def test_bad_reference_exit_code(self, service, capsys):
        assert main(["https://vimeo.com/123"]) == 2
        assert "Could not extract" in capsys.readouterr().err
        service.get_transcript.assert_not_awaited()
