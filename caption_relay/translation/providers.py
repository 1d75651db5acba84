"""Translation backends: Google (unofficial), MyMemory, and a fallback chain.

WHY: The UI shows a translation under each caption line. Free backends
are flaky, so they are tried in order and the original text is returned
when all of them fail; a missing translation must never break playback.

HOW: Each backend is a Translator issuing one httpx GET. Inside
`async with translator:` the backend holds one AsyncClient for every call;
outside it each call opens its own. FallbackTranslator walks its backends
in order, logs each failure, and enters and exits them together.

RULES:
- GoogleTranslator: translate_a/single with client=gtx, dt=t; the result
  is the concatenation of the sentence chunks
- MyMemoryTranslator: success only when responseStatus == 200; input is
  truncated to MYMEMORY_MAX_CHARS (the free tier limit)
- FallbackTranslator never raises; it returns the input text as a last resort
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from caption_relay.config import (
    GOOGLE_TRANSLATE_URL,
    HTTP_TIMEOUT_S,
    MYMEMORY_MAX_CHARS,
    MYMEMORY_URL,
)
from caption_relay.translation.base import TranslationError, Translator

logger = logging.getLogger(__name__)


class _HttpTranslator(Translator):
    """Shared httpx plumbing for GET-based translation backends."""

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout if timeout is not None else HTTP_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._users = 0

    async def __aenter__(self) -> _HttpTranslator:
        if self._client is None:
            self._client = self._new_client()
        self._users += 1
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self._users -= 1
        if self._users == 0 and self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def _get_json(self, params: dict[str, Any]) -> Any:
        try:
            if self._client is not None:
                resp = await self._client.get(self._url, params=params)
            else:
                async with self._new_client() as client:
                    resp = await client.get(self._url, params=params)
        except httpx.HTTPError as exc:
            raise TranslationError("{}: {}".format(self.name, type(exc).__name__)) from exc

        if resp.status_code != 200:
            raise TranslationError("{}: HTTP {}".format(self.name, resp.status_code))
        try:
            return resp.json()
        except ValueError as exc:
            raise TranslationError("{}: response is not JSON".format(self.name)) from exc


class GoogleTranslator(_HttpTranslator):
    """Unofficial Google Translate endpoint used by the web widget."""

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(GOOGLE_TRANSLATE_URL, timeout, transport)

    @property
    def name(self) -> str:
        return "google"

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        data = await self._get_json({
            "client": "gtx",
            "sl": source_lang,
            "tl": target_lang,
            "dt": "t",
            "q": text,
        })
        try:
            chunks = data[0]
            translated = "".join(chunk[0] for chunk in chunks if chunk and chunk[0])
        except (TypeError, IndexError, KeyError) as exc:
            raise TranslationError("google: unexpected response shape") from exc
        if not translated:
            raise TranslationError("google: empty translation")
        return translated


class MyMemoryTranslator(_HttpTranslator):
    """MyMemory free translation API."""

    def __init__(self, timeout: float | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(MYMEMORY_URL, timeout, transport)

    @property
    def name(self) -> str:
        return "mymemory"

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        data = await self._get_json({
            "q": text[:MYMEMORY_MAX_CHARS],
            "langpair": "{}|{}".format(source_lang, target_lang),
        })
        if not isinstance(data, dict) or data.get("responseStatus") != 200:
            raise TranslationError("mymemory: request rejected")
        translated = (data.get("responseData") or {}).get("translatedText")
        if not translated:
            raise TranslationError("mymemory: empty translation")
        return translated


class FallbackTranslator(Translator):
    """Try backends in order; return the original text if all fail."""

    def __init__(self, translators: Sequence[Translator] | None = None) -> None:
        self._translators = list(translators) if translators is not None else [
            GoogleTranslator(),
            MyMemoryTranslator(),
        ]

    async def __aenter__(self) -> FallbackTranslator:
        entered: list[Translator] = []
        try:
            for translator in self._translators:
                await translator.__aenter__()
                entered.append(translator)
        except BaseException:
            for translator in reversed(entered):
                await translator.__aexit__(None, None, None)
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        for translator in reversed(self._translators):
            await translator.__aexit__(exc_type, exc_val, exc_tb)

    @property
    def name(self) -> str:
        return "fallback({})".format(",".join(t.name for t in self._translators))

    async def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        translated = await self.try_translate(text, source_lang, target_lang)
        return text if translated is None else translated

    async def try_translate(self, text: str, source_lang: str, target_lang: str) -> str | None:
        """Like translate(), but None instead of the original text when all fail."""
        for translator in self._translators:
            try:
                return await translator.translate(text, source_lang, target_lang)
            except TranslationError as exc:
                logger.info("Translation backend %s failed: %s", translator.name, exc)
        logger.warning("All translation backends failed for %d chars", len(text))
        return None
