"""YouTube Data and Analytics API client bound to one credential."""

from typing import Any

import httpx
from pydantic import BaseModel, Field
from structlog import get_logger

from ytanalytics.auth.exceptions import AuthenticationError
from ytanalytics.auth.models import Credential
from ytanalytics.config.core import YouTubeSettings

from .errors import YouTubeAPIError


logger = get_logger(__name__)

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class AnalyticsQuery(BaseModel):
    """Parameters for a YouTube Analytics ``reports.query`` call."""

    start_date: str = Field(..., pattern=DATE_PATTERN)
    end_date: str = Field(..., pattern=DATE_PATTERN)
    metrics: list[str] = Field(..., min_length=1)
    dimensions: list[str] | None = None
    filters: str | None = None
    max_results: int | None = Field(default=None, ge=1)
    sort: str | None = None

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "ids": "channel==MINE",
            "startDate": self.start_date,
            "endDate": self.end_date,
            "metrics": ",".join(self.metrics),
        }
        if self.dimensions:
            params["dimensions"] = ",".join(self.dimensions)
        if self.filters:
            params["filters"] = self.filters
        if self.max_results is not None:
            params["maxResults"] = self.max_results
        if self.sort:
            params["sort"] = self.sort
        return params


class YouTubeClient:
    """Authenticated client; one instance per credential generation.

    Errors surface as :class:`YouTubeAPIError` for classification by the
    caller. The shared ``http_client`` is owned elsewhere.
    """

    def __init__(
        self,
        credential: Credential,
        http_client: httpx.AsyncClient,
        settings: YouTubeSettings | None = None,
    ):
        self.credential = credential
        self.http_client = http_client
        self.settings = settings or YouTubeSettings()

    def _headers(self) -> dict[str, str]:
        token = self.credential.access_token
        if token is None:
            raise AuthenticationError("Credential has no access token")
        return {
            "Authorization": f"Bearer {token.get_secret_value()}",
            "Accept": "application/json",
        }

    async def _get(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        response = await self.http_client.get(
            url, params=params, headers=self._headers()
        )
        if response.is_error:
            error = YouTubeAPIError.from_response(response)
            logger.debug(
                "youtube_api_error",
                url=url,
                status_code=error.status_code,
                reasons=error.reasons,
            )
            raise error
        data: dict[str, Any] = response.json()
        return data

    def _data_url(self, resource: str) -> str:
        return f"{self.settings.data_api_url.rstrip('/')}/{resource}"

    async def get_channel_info(self) -> dict[str, Any]:
        """Return the authenticated user's channel resource."""
        data = await self._get(
            self._data_url("channels"), {"part": "snippet,statistics", "mine": "true"}
        )
        items = data.get("items") or []
        if not items:
            raise YouTubeAPIError(404, "No channel found for the authenticated user")
        channel: dict[str, Any] = items[0]
        return channel

    async def search_videos(
        self, query: str, max_results: int = 25
    ) -> list[dict[str, Any]]:
        data = await self._get(
            self._data_url("search"),
            {
                "part": "snippet",
                "q": query,
                "type": "video",
                "order": "relevance",
                "maxResults": max_results,
            },
        )
        return list(data.get("items") or [])

    async def get_video_details(self, video_id: str) -> dict[str, Any]:
        data = await self._get(
            self._data_url("videos"),
            {"part": "snippet,statistics,contentDetails", "id": video_id},
        )
        items = data.get("items") or []
        if not items:
            raise YouTubeAPIError(404, f"Video not found: {video_id}")
        video: dict[str, Any] = items[0]
        return video

    async def get_videos(self, video_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch several videos in one request; unknown IDs are skipped."""
        if not video_ids:
            return []
        data = await self._get(
            self._data_url("videos"),
            {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids)},
        )
        return list(data.get("items") or [])

    async def get_channel_videos(
        self,
        max_results: int = 50,
        *,
        query: str | None = None,
        published_after: str | None = None,
        published_before: str | None = None,
    ) -> list[dict[str, Any]]:
        """Most recent uploads of the authenticated user's channel.

        ``published_after`` and ``published_before`` are RFC 3339 timestamps.
        """
        channel = await self.get_channel_info()
        return await self.get_public_channel_videos(
            channel["id"],
            max_results,
            query=query,
            published_after=published_after,
            published_before=published_before,
        )

    async def get_public_channels(self, channel_ids: list[str]) -> list[dict[str, Any]]:
        """Public channel resources, in the order of ``channel_ids``.

        Raises:
            YouTubeAPIError: 404 if any of the channels does not exist
        """
        data = await self._get(
            self._data_url("channels"),
            {"part": "snippet,statistics", "id": ",".join(channel_ids)},
        )
        found = {item.get("id"): item for item in data.get("items") or []}
        missing = [channel_id for channel_id in channel_ids if channel_id not in found]
        if missing:
            raise YouTubeAPIError(404, f"Channel not found: {', '.join(missing)}")
        return [found[channel_id] for channel_id in channel_ids]

    async def get_public_channel_videos(
        self,
        channel_id: str,
        max_results: int = 25,
        *,
        query: str | None = None,
        published_after: str | None = None,
        published_before: str | None = None,
    ) -> list[dict[str, Any]]:
        """Search results for a channel's videos, newest first."""
        params: dict[str, Any] = {
            "part": "snippet",
            "channelId": channel_id,
            "type": "video",
            "order": "date",
            "maxResults": max_results,
        }
        if query:
            params["q"] = query
        if published_after:
            params["publishedAfter"] = published_after
        if published_before:
            params["publishedBefore"] = published_before
        data = await self._get(self._data_url("search"), params)
        return list(data.get("items") or [])

    async def get_trending_videos(
        self,
        region_code: str | None = None,
        category_id: str | None = None,
        max_results: int = 25,
    ) -> list[dict[str, Any]]:
        """Most popular videos, optionally for one region and category."""
        params: dict[str, Any] = {
            "part": "snippet,statistics",
            "chart": "mostPopular",
            "maxResults": max_results,
        }
        if region_code:
            params["regionCode"] = region_code
        if category_id:
            params["videoCategoryId"] = category_id
        data = await self._get(self._data_url("videos"), params)
        return list(data.get("items") or [])

    async def get_channel_analytics(self, query: AnalyticsQuery) -> dict[str, Any]:
        url = f"{self.settings.analytics_api_url.rstrip('/')}/reports"
        return await self._get(url, query.to_params())

    async def get_video_analytics(
        self, video_id: str, query: AnalyticsQuery
    ) -> dict[str, Any]:
        video_filter = f"video=={video_id}"
        filters = f"{video_filter};{query.filters}" if query.filters else video_filter
        return await self.get_channel_analytics(
            query.model_copy(update={"filters": filters})
        )
