"""Abstract translator interface.

WHY: Translation is an external collaborator. The service and the HTTP
layer call it through one narrow method so backends can be swapped or
chained without touching callers.

RULES:
- translate() returns the translated text or raises TranslationError
- try_translate() returns None instead of raising; annotation uses it
- A translator is an async context manager; entering it lets a run of
  calls share connections, and plain calls work without entering it
- Implementations never mutate segments; annotation lives in annotate.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TranslationError(Exception):
    """Raised when a translation backend cannot produce a result."""


class Translator(ABC):
    """Abstract base class for translation services."""

    async def __aenter__(self) -> Translator:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        return None

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in logs."""

    @abstractmethod
    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """Translate text from source to target language.

        Args:
            text: The text to translate.
            source_lang: Source language code (e.g. 'es').
            target_lang: Target language code (e.g. 'vi').

        Returns:
            The translated text.

        Raises:
            TranslationError: If translation fails.
        """

    async def try_translate(self, text: str, source_lang: str, target_lang: str) -> str | None:
        """Like translate(), but None when the backend fails."""
        try:
            return await self.translate(text, source_lang, target_lang)
        except TranslationError:
            return None
