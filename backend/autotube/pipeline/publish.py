"""YouTube publishing via the Data API v3 resumable upload protocol.

Publishing is best-effort. Missing credentials and 4xx rejections from
Google raise PublishSkipped, which keeps the job successful with only a
local video. Server errors and dropped connections are retried, then
raised as PublishError; the executor records that message on the
still-successful job.
"""

import asyncio
import logging
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from autotube.config import Settings, settings as app_settings
from autotube.pipeline.base import Publisher, PublishSkipped
from autotube.schemas.artifacts import PublishResult, RenderedVideo
from autotube.schemas.job import Visibility

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/videos"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

MAX_TITLE_CHARS = 100
MAX_DESCRIPTION_CHARS = 5000


class PublishError(RuntimeError):
    pass


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


def _clean(text: str, limit: int) -> str:
    # YouTube rejects angle brackets in titles and descriptions
    return text.replace("<", "").replace(">", "").strip()[:limit]


class YouTubePublisher(Publisher):
    """Uploads rendered videos to a YouTube channel with an OAuth refresh token."""

    def __init__(
        self,
        *,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        category_id: str = "28",
        enabled: bool = True,
        timeout_seconds: float = 600.0,
        max_retries: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._category_id = category_id
        self._enabled = enabled
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "YouTubePublisher":
        config = config or app_settings
        return cls(
            client_id=config.publish.client_id,
            client_secret=config.publish.client_secret,
            refresh_token=config.publish.refresh_token,
            category_id=config.publish.category_id,
            enabled=config.publish.enabled,
            timeout_seconds=config.publish.timeout_seconds,
            max_retries=config.publish.max_retries,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self._client_id and self._client_secret and self._refresh_token)

    async def publish(
        self,
        video: RenderedVideo,
        visibility: Visibility,
        title: str,
        description: str,
    ) -> PublishResult:
        if not self._enabled:
            raise PublishSkipped("publishing disabled in configuration")
        if not self.has_credentials:
            raise PublishSkipped("YouTube credentials missing")

        data = await asyncio.to_thread(video.path.read_bytes)
        metadata = {
            "snippet": {
                "title": _clean(title, MAX_TITLE_CHARS),
                "description": _clean(description, MAX_DESCRIPTION_CHARS),
                "categoryId": self._category_id,
            },
            "status": {
                "privacyStatus": visibility,
                "selfDeclaredMadeForKids": False,
            },
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                token = await self._access_token(client)
                session_url = await self._start_session(client, token, metadata, len(data))
                video_id = await self._upload(client, token, session_url, data)
        except (httpx.HTTPStatusError, httpx.TransportError) as e:
            raise PublishError(f"YouTube upload failed: {e}") from e

        url = WATCH_URL.format(video_id=video_id)
        logger.info(f"Published {video.path.name} as {visibility}: {url}")
        return PublishResult(url=url, video_id=video_id)

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        """Send a request, retrying server errors. 4xx responses are returned."""

        @retry(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            retry=retry_if_exception(_is_transient),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _call() -> httpx.Response:
            response = await client.request(method, url, **kwargs)
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        return await _call()

    @staticmethod
    def _reject_if_client_error(response: httpx.Response, action: str) -> None:
        if 400 <= response.status_code < 500:
            raise PublishSkipped(
                f"YouTube rejected {action}: HTTP {response.status_code}: {response.text[:300]}"
            )

    async def _access_token(self, client: httpx.AsyncClient) -> str:
        response = await self._send(
            client,
            "POST",
            TOKEN_URL,
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "refresh_token": self._refresh_token,
                "grant_type": "refresh_token",
            },
        )
        self._reject_if_client_error(response, "authorization")
        token = response.json().get("access_token")
        if not token:
            raise PublishError("Token endpoint returned no access_token")
        return token

    async def _start_session(
        self, client: httpx.AsyncClient, token: str, metadata: dict, size: int
    ) -> str:
        response = await self._send(
            client,
            "POST",
            UPLOAD_URL,
            params={"uploadType": "resumable", "part": "snippet,status"},
            headers={
                "Authorization": f"Bearer {token}",
                "X-Upload-Content-Type": "video/mp4",
                "X-Upload-Content-Length": str(size),
            },
            json=metadata,
        )
        self._reject_if_client_error(response, "upload request")
        session_url = response.headers.get("Location")
        if not session_url:
            raise PublishError("YouTube did not return an upload session URL")
        return session_url

    async def _upload(
        self, client: httpx.AsyncClient, token: str, session_url: str, data: bytes
    ) -> str:
        response = await self._send(
            client,
            "PUT",
            session_url,
            headers={"Authorization": f"Bearer {token}", "Content-Type": "video/mp4"},
            content=data,
        )
        self._reject_if_client_error(response, "video upload")
        video_id = response.json().get("id")
        if not video_id:
            raise PublishError("YouTube upload response contained no video id")
        return video_id
