"""Tests for the translation collaborator.

WHY: Translation is optional decoration. Backend failures must degrade
to the next backend, then to the original text (free-text endpoint) or
to no translation (segment annotation), never to an error.

HOW: The HTTP backends run against httpx.MockTransport handlers that
mimic the Google gtx and MyMemory responses. The fallback chain and the
annotator are driven with AsyncMock translators.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from caption_relay.config import MYMEMORY_MAX_CHARS
from caption_relay.core.ir import Segment
from caption_relay.translation import (
    FallbackTranslator,
    GoogleTranslator,
    MyMemoryTranslator,
    TranslationError,
    Translator,
    annotate_segments,
)


class _StubTranslator(Translator):
    """Translator whose translate() is an AsyncMock set per instance."""

    def __init__(self, name, side_effect=None, return_value=None):
        self._name = name
        self.translate = AsyncMock(side_effect=side_effect, return_value=return_value)

    @property
    def name(self):
        return self._name

    async def translate(self, text, source_lang, target_lang):
        raise NotImplementedError


def _mock_translator(name, side_effect=None, return_value=None):
    return _StubTranslator(name, side_effect=side_effect, return_value=return_value)


class TestGoogleTranslator:
    """Tests for GoogleTranslator."""

    def test_joins_sentence_chunks(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[
                [["Xin chào. ", "Hola. ", None, None], ["Bạn khỏe không?", "¿Cómo estás?", None, None]],
                None,
                "es",
            ])

        translator = GoogleTranslator(transport=httpx.MockTransport(handler))
        result = asyncio.run(translator.translate("Hola. ¿Cómo estás?", "es", "vi"))

        assert result == "Xin chào. Bạn khỏe không?"
        assert seen["params"]["client"] == "gtx"
        assert seen["params"]["dt"] == "t"
        assert (seen["params"]["sl"], seen["params"]["tl"]) == ("es", "vi")

    def test_http_error_raises(self):
        translator = GoogleTranslator(transport=httpx.MockTransport(lambda r: httpx.Response(429)))
        with pytest.raises(TranslationError):
            asyncio.run(translator.translate("hola", "es", "vi"))

    def test_unexpected_shape_raises(self):
        translator = GoogleTranslator(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
        with pytest.raises(TranslationError):
            asyncio.run(translator.translate("hola", "es", "vi"))


class TestMyMemoryTranslator:
    """Tests for MyMemoryTranslator."""

    def test_success(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={
                "responseStatus": 200,
                "responseData": {"translatedText": "xin chào"},
            })

        translator = MyMemoryTranslator(transport=httpx.MockTransport(handler))
        assert asyncio.run(translator.translate("hola" * 200, "es", "vi")) == "xin chào"
        assert seen["params"]["langpair"] == "es|vi"
        assert len(seen["params"]["q"]) == MYMEMORY_MAX_CHARS

    def test_rejected_status_raises(self):
        body = {"responseStatus": 403, "responseData": {"translatedText": "INVALID LANGUAGE PAIR"}}
        translator = MyMemoryTranslator(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        with pytest.raises(TranslationError):
            asyncio.run(translator.translate("hola", "es", "xx"))


class TestFallbackTranslator:
    """Tests for FallbackTranslator."""

    def test_second_backend_used_when_first_fails(self):
        first = _mock_translator("first", side_effect=TranslationError("down"))
        second = _mock_translator("second", return_value="xin chào")
        result = asyncio.run(FallbackTranslator([first, second]).translate("hola", "es", "vi"))
        assert result == "xin chào"
        first.translate.assert_awaited_once_with("hola", "es", "vi")

    def test_all_failing_returns_original(self):
        first = _mock_translator("first", side_effect=TranslationError("down"))
        second = _mock_translator("second", side_effect=TranslationError("down"))
        translator = FallbackTranslator([first, second])
        assert asyncio.run(translator.translate("hola", "es", "vi")) == "hola"
        assert asyncio.run(translator.try_translate("hola", "es", "vi")) is None

    def test_name_lists_backends(self):
        translator = FallbackTranslator([_mock_translator("a"), _mock_translator("b")])
        assert translator.name == "fallback(a,b)"


class TestAnnotateSegments:
    """Tests for annotate_segments()."""

    SEGMENTS = (
        Segment(0.0, 1.0, "uno"),
        Segment(1.0, 2.0, "dos"),
        Segment(2.0, 3.0, "tres"),
    )

    def test_order_preserved(self):
        translator = _mock_translator("echo", side_effect=lambda text, s, t: text.upper())
        annotated = asyncio.run(annotate_segments(self.SEGMENTS, translator, "es", "vi", concurrency=2))
        assert [a.translation for a in annotated] == ["UNO", "DOS", "TRES"]
        assert [a.segment for a in annotated] == list(self.SEGMENTS)

    def test_failed_segment_gets_none(self):
        def flaky(text, source, target):
            if text == "dos":
                raise TranslationError("down")
            return text + "!"

        translator = _mock_translator("flaky", side_effect=flaky)
        annotated = asyncio.run(annotate_segments(self.SEGMENTS, translator, "es", "vi"))
        assert [a.translation for a in annotated] == ["uno!", None, "tres!"]

    def test_fallback_chain_failure_is_none_not_original(self):
        chain = FallbackTranslator([_mock_translator("down", side_effect=TranslationError("x"))])
        annotated = asyncio.run(annotate_segments(self.SEGMENTS[:1], chain, "es", "vi"))
        assert annotated[0].translation is None

    def test_one_http_client_per_run(self):
        body = [[["xin chào", "hola", None, None]], None, "es"]
        translator = GoogleTranslator(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))

        with patch.object(httpx, "AsyncClient", wraps=httpx.AsyncClient) as client_cls:
            annotated = asyncio.run(annotate_segments(self.SEGMENTS, translator, "es", "vi"))

        assert [a.translation for a in annotated] == ["xin chào"] * 3
        assert client_cls.call_count == 1
        assert translator._client is None


class TestTranslatorSession:
    """Entering a translator shares one client until the last exit."""

    def test_client_shared_and_closed(self):
        body = {"responseStatus": 200, "responseData": {"translatedText": "xin chào"}}
        translator = MyMemoryTranslator(transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))

        async def _run():
            async with FallbackTranslator([translator]) as chain:
                client = translator._client
                await chain.translate("hola", "es", "vi")
                await chain.translate("adiós", "es", "vi")
                assert translator._client is client
            return client

        client = asyncio.run(_run())
        assert client.is_closed
        assert translator._client is None

    def test_base_try_translate_returns_none(self):
        translator = _mock_translator("down", side_effect=TranslationError("x"))
        assert asyncio.run(translator.try_translate("hola", "es", "vi")) is None
