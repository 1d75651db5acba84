"""Command-line interface for Caption Relay.

WHY: Checking whether a video's captions can be fetched, and which
strategy answers, should not require starting the API server. The CLI
runs the same TranscriptService from the terminal.

HOW: Uses argparse to accept a video id or URL, a language preference,
an optional translation target and output options. Runs the async
service via asyncio.run(). Status messages go to stderr; the transcript
(JSON or a short preview) goes to stdout.

RULES:
- Positional argument: a bare 11-char video id or any YouTube URL form
- --json prints the same camelCase body the HTTP API returns
- Without --json, prints the first --preview segments (default 5)
- Status output goes to stderr (not stdout)
- Exit codes: 0 success, 1 TranscriptError, 2 unparseable video reference
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, Sequence

from caption_relay.config import TRANSLATE_SOURCE_LANGUAGE
from caption_relay.core.errors import NoCaptionsAvailable, TranscriptError
from caption_relay.core.ir import TranscriptResult
from caption_relay.core.video import extract_video_id
from caption_relay.server.models import transcript_to_response
from caption_relay.service import TranscriptService
from caption_relay.translation import AnnotatedSegment, FallbackTranslator, annotate_segments

EXIT_OK = 0
EXIT_TRANSCRIPT_ERROR = 1
EXIT_BAD_REFERENCE = 2


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _format_time(seconds: float) -> str:
    minutes, secs = divmod(seconds, 60)
    return "{:02d}:{:05.2f}".format(int(minutes), secs)


def _print_preview(
    result: TranscriptResult,
    annotated: Optional[Sequence[AnnotatedSegment]],
    limit: int,
) -> None:
    items = annotated if annotated is not None else [AnnotatedSegment(seg) for seg in result.segments]
    for item in items[:limit]:
        print("[{} - {}] {}".format(
            _format_time(item.segment.start),
            _format_time(item.segment.end),
            item.segment.text,
        ))
        if item.translation:
            print("    -> {}".format(item.translation))
    remaining = len(result.segments) - limit
    if remaining > 0:
        print("... {} more segment(s)".format(remaining))


async def _run(args: argparse.Namespace, video_id: str) -> int:
    """Fetch the transcript, optionally translate, print it."""
    service = TranscriptService()
    try:
        result = await service.get_transcript(video_id, lang=args.lang)
    except TranscriptError as exc:
        print("Error: {}".format(exc), file=sys.stderr)
        if isinstance(exc, NoCaptionsAvailable):
            for record in exc.attempts:
                _status("  {:<15} {:<8} {}".format(
                    record.strategy, record.language or "-", record.outcome.value
                ))
        return EXIT_TRANSCRIPT_ERROR

    _status("Source: {} (language: {})".format(
        result.source_strategy, result.language_code or "unknown"
    ))
    _status("{} segments, {:.1f}s".format(len(result.segments), result.duration))

    annotated = None
    if args.translate_to:
        _status("Translating to {}...".format(args.translate_to))
        source_lang = result.language_code or args.lang or TRANSLATE_SOURCE_LANGUAGE
        segments = result.segments if args.json else result.segments[:args.preview]
        annotated = await annotate_segments(
            segments, FallbackTranslator(), source_lang, args.translate_to
        )

    if args.json:
        body = transcript_to_response(result, annotated).model_dump(by_alias=True)
        print(json.dumps(body, ensure_ascii=False, indent=2))
    else:
        _print_preview(result, annotated, args.preview)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable: tests can inspect the parser without running the pipeline.
    """
    parser = argparse.ArgumentParser(
        prog="caption-relay",
        description="Fetch a YouTube video's captions as timed, word-segmented "
                    "transcript segments.",
    )

    parser.add_argument(
        "video",
        help="YouTube video id or URL (watch?v=, youtu.be/, /shorts/, /embed/, /live/).",
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="Preferred caption language (e.g. 'es'). Default: server fallback order.",
    )

    parser.add_argument(
        "--translate-to",
        default=None,
        help="Annotate segments with translations into this language (e.g. 'vi').",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full transcript as JSON instead of a preview.",
    )

    parser.add_argument(
        "--preview",
        type=int,
        default=5,
        help="Number of segments to print without --json (default: %(default)s).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every caption source attempt.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    - Returns the process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        video_id = extract_video_id(args.video)
    except ValueError as exc:
        print("Error: {}".format(exc), file=sys.stderr)
        return EXIT_BAD_REFERENCE

    _status("Fetching transcript for {}...".format(video_id))
    try:
        return asyncio.run(_run(args, video_id))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        return 130


if __name__ == "__main__":
    sys.exit(main())
