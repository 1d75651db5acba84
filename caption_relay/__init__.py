"""Caption Relay — YouTube transcript acquisition for language learners.

WHY: A language-learning UI needs a timed, word-segmented transcript for
any YouTube video. YouTube exposes captions through several undocumented
surfaces, each of which breaks independently, so no single strategy is
reliable on its own.

HOW: Four-stage pipeline — fetch (caption sources tried in priority
order), normalize (wire formats into raw cues), build (cues into timed
segments with interpolated words), serve (service boundary, HTTP API, CLI).

RULES:
- Every caller goes through TranscriptService; it never sees which
  strategy answered except via source_strategy
- A transcript with zero segments is an error, never a success
- The IR is the stable contract between acquisition and presentation
"""

__version__ = "0.1.0"
