"""Async HTTP client for the YouTube surfaces the caption sources scrape.

WHY: Three sources talk to YouTube directly: the internal transcript API,
the public watch page, and caption payload URLs. Centralizing the HTTP
details (headers, timeouts, status handling) keeps each source focused on
its own protocol quirks.

HOW: Wraps httpx.AsyncClient. YouTubeClient is an async context manager:
enter it to open the connection pool, exit to close it. Each method maps
transport errors, non-2xx statuses and empty bodies to NetworkFailure so
callers deal with one exception type.

RULES:
- Always use as: async with YouTubeClient() as client: ...
- All requests send the browser User-Agent from config
- NetworkFailure for: transport error, timeout, non-2xx, empty body
- UpstreamFormatChanged when the internal API answers with non-JSON
- A custom transport may be injected (tests use httpx.MockTransport)
"""

from __future__ import annotations

from typing import Any

import httpx

from caption_relay.config import (
    ACCEPT_LANGUAGE,
    BROWSER_USER_AGENT,
    HTTP_TIMEOUT_S,
    INNERTUBE_CLIENT_NAME,
    INNERTUBE_CLIENT_VERSION,
    INNERTUBE_GL,
    INNERTUBE_HL,
    INNERTUBE_TRANSCRIPT_PATH,
    YOUTUBE_BASE_URL,
)
from caption_relay.core.errors import NetworkFailure, UpstreamFormatChanged
from caption_relay.core.video import transcript_params


class YouTubeClient:
    """Async client for the YouTube watch page, internal API and caption URLs.

    RULES:
    - Use as: async with YouTubeClient() as client: ...
    - base_url defaults to YOUTUBE_BASE_URL, timeout to HTTP_TIMEOUT_S
    - Caption payload URLs are absolute and may point at other hosts
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or YOUTUBE_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else HTTP_TIMEOUT_S
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> YouTubeClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": BROWSER_USER_AGENT},
            timeout=httpx.Timeout(self._timeout),
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "YouTubeClient must be used as an async context manager: "
                "async with YouTubeClient() as client: ..."
            )
        return self._client

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        try:
            resp = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise NetworkFailure("timed out: {}".format(type(exc).__name__)) from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure("transport error: {}".format(type(exc).__name__)) from exc

        if not 200 <= resp.status_code < 300:
            raise NetworkFailure(
                "HTTP {}".format(resp.status_code), status_code=resp.status_code
            )
        if not resp.content:
            raise NetworkFailure("empty body", status_code=resp.status_code)
        return resp

    # ------------------------------------------------------------------
    # Watch page
    # ------------------------------------------------------------------

    async def get_watch_page(self, video_id: str) -> str:
        """Fetch the public watch page HTML for a video.

        Raises:
            NetworkFailure: On transport error, non-2xx or empty body.
        """
        resp = await self._send(
            "GET",
            "/watch",
            params={"v": video_id},
            headers={"Accept-Language": ACCEPT_LANGUAGE},
        )
        return resp.text

    # ------------------------------------------------------------------
    # Internal transcript API
    # ------------------------------------------------------------------

    async def get_transcript_panel(self, video_id: str) -> Any:
        """POST to youtubei/v1/get_transcript and return the decoded JSON.

        HOW: Sends a WEB client context plus the base64 params derived
        from the video id.

        Raises:
            NetworkFailure: On transport error, non-2xx or empty body.
            UpstreamFormatChanged: If the body is not JSON.
        """
        payload = {
            "context": {
                "client": {
                    "hl": INNERTUBE_HL,
                    "gl": INNERTUBE_GL,
                    "clientName": INNERTUBE_CLIENT_NAME,
                    "clientVersion": INNERTUBE_CLIENT_VERSION,
                }
            },
            "params": transcript_params(video_id),
        }
        resp = await self._send(
            "POST",
            INNERTUBE_TRANSCRIPT_PATH,
            params={"prettyPrint": "false"},
            json=payload,
        )
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamFormatChanged("get_transcript answered with non-JSON") from exc

    # ------------------------------------------------------------------
    # Caption payloads
    # ------------------------------------------------------------------

    async def get_caption_payload(self, url: str) -> str:
        """Fetch a caption track body (json3, srv1/srv3 XML, …) as text.

        Raises:
            NetworkFailure: On transport error, non-2xx or empty body.
        """
        resp = await self._send("GET", url)
        return resp.text
