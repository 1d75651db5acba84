"""Core pipeline modules: IR, errors, normalizers, builder, orchestrator.

WHY: The core package holds everything that does not talk to the network
directly: the IR dataclasses, the wire-format normalizers, the segment
builder, and the fallback orchestrator that drives the caption sources.

HOW: ir.py defines the data structures, normalizers.py turns wire
payloads into RawCues, builder.py turns RawCues into Segments,
orchestrator.py runs the sources in priority order. video.py handles
video id parsing.

RULES:
- IR dataclasses are the contract — change with care
- Normalizers and the builder are pure functions
- Only the orchestrator knows the fallback order semantics
"""
