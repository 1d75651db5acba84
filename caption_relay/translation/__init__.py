"""Translation collaborator package.

WHY: Segments are annotated with a translation for the learner. The
backend is an external capability, reached through the Translator
interface so the core never depends on it succeeding.

HOW: base.py defines the interface, providers.py the HTTP backends and
the fallback chain, annotate.py pairs segments with translations.
"""

from caption_relay.translation.annotate import AnnotatedSegment, annotate_segments
from caption_relay.translation.base import TranslationError, Translator
from caption_relay.translation.providers import (
    FallbackTranslator,
    GoogleTranslator,
    MyMemoryTranslator,
)

__all__ = [
    "AnnotatedSegment",
    "FallbackTranslator",
    "GoogleTranslator",
    "MyMemoryTranslator",
    "TranslationError",
    "Translator",
    "annotate_segments",
]
