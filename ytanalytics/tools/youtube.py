"""Channel, video and analytics tools."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ytanalytics.api.client import DATE_PATTERN, AnalyticsQuery, YouTubeClient
from ytanalytics.services.container import ServiceContainer

from .formatting import format_date, format_number, truncate
from .registry import NoArguments, ToolConfig


class SearchVideosArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str = Field(..., min_length=1)
    max_results: int = Field(default=25, ge=1, le=50)


class VideoArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_id: str = Field(..., min_length=1)


class ChannelVideosArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    max_results: int = Field(default=25, ge=1, le=50)
    query: str | None = Field(default=None, description="Search within the channel")
    start_date: str | None = Field(
        default=None, pattern=DATE_PATTERN, description="Published on or after"
    )
    end_date: str | None = Field(
        default=None, pattern=DATE_PATTERN, description="Published on or before"
    )


class ChannelAnalyticsArguments(AnalyticsQuery):
    model_config = ConfigDict(extra="forbid")


class VideoAnalyticsArguments(AnalyticsQuery):
    model_config = ConfigDict(extra="forbid")

    video_id: str = Field(..., min_length=1)

    def to_query(self) -> AnalyticsQuery:
        return AnalyticsQuery.model_validate(self.model_dump(exclude={"video_id"}))


def format_channel(channel: dict[str, Any]) -> str:
    snippet = channel.get("snippet", {})
    stats = channel.get("statistics", {})
    lines = [
        "Channel Information:",
        f"Name: {snippet.get('title', 'N/A')}",
        f"ID: {channel.get('id', 'N/A')}",
        f"Subscribers: {format_number(stats.get('subscriberCount'))}",
        f"Total Views: {format_number(stats.get('viewCount'))}",
        f"Video Count: {format_number(stats.get('videoCount'))}",
        f"Published: {format_date(snippet.get('publishedAt'))}",
    ]
    if snippet.get("description"):
        lines.append(f"Description: {truncate(snippet['description'])}")
    return "\n".join(lines)


def format_video_list(title: str, items: list[dict[str, Any]]) -> str:
    if not items:
        return f"{title}: no videos found."
    lines = [f"{title} ({len(items)}):"]
    for index, item in enumerate(items, start=1):
        snippet = item.get("snippet", {})
        video_id = item.get("id", {})
        if isinstance(video_id, dict):
            video_id = video_id.get("videoId", "N/A")
        lines.append(
            f"{index}. {snippet.get('title', 'Untitled')} "
            f"(ID: {video_id}, published {format_date(snippet.get('publishedAt'))})"
        )
    return "\n".join(lines)


def format_video(video: dict[str, Any]) -> str:
    snippet = video.get("snippet", {})
    stats = video.get("statistics", {})
    details = video.get("contentDetails", {})
    return "\n".join(
        [
            "Video Details:",
            f"Title: {snippet.get('title', 'N/A')}",
            f"ID: {video.get('id', 'N/A')}",
            f"Channel: {snippet.get('channelTitle', 'N/A')}",
            f"Published: {format_date(snippet.get('publishedAt'))}",
            f"Duration: {details.get('duration', 'N/A')}",
            f"Views: {format_number(stats.get('viewCount'))}",
            f"Likes: {format_number(stats.get('likeCount'))}",
            f"Comments: {format_number(stats.get('commentCount'))}",
        ]
    )


def format_report(title: str, report: dict[str, Any]) -> str:
    """Render an Analytics report as a pipe-separated table."""
    headers = [h.get("name", "?") for h in report.get("columnHeaders", [])]
    rows = report.get("rows") or []
    if not rows:
        return f"{title}: no data for the requested period."
    lines = [f"{title}:", " | ".join(headers)]
    lines.extend(" | ".join(str(cell) for cell in row) for row in rows)
    return "\n".join(lines)


async def get_channel_info(_: NoArguments, container: ServiceContainer) -> str:
    channel = await container.call(
        YouTubeClient.get_channel_info, name="get_channel_info"
    )
    return format_channel(channel)


async def search_videos(
    args: SearchVideosArguments, container: ServiceContainer
) -> str:
    items = await container.call(
        lambda client: client.search_videos(args.query, args.max_results),
        name="search_videos",
    )
    return format_video_list(f"Search results for '{args.query}'", items)


async def get_video_details(args: VideoArguments, container: ServiceContainer) -> str:
    video = await container.call(
        lambda client: client.get_video_details(args.video_id),
        name="get_video_details",
    )
    return format_video(video)


async def get_channel_videos(
    args: ChannelVideosArguments, container: ServiceContainer
) -> str:
    items = await container.call(
        lambda client: client.get_channel_videos(
            args.max_results,
            query=args.query,
            published_after=f"{args.start_date}T00:00:00Z" if args.start_date else None,
            published_before=f"{args.end_date}T23:59:59Z" if args.end_date else None,
        ),
        name="get_channel_videos",
    )
    return format_video_list("Channel videos", items)


async def get_channel_analytics(
    args: ChannelAnalyticsArguments, container: ServiceContainer
) -> str:
    report = await container.call(
        lambda client: client.get_channel_analytics(args),
        name="get_channel_analytics",
    )
    return format_report(
        f"Channel analytics {args.start_date} to {args.end_date}", report
    )


async def get_video_analytics(
    args: VideoAnalyticsArguments, container: ServiceContainer
) -> str:
    report = await container.call(
        lambda client: client.get_video_analytics(args.video_id, args.to_query()),
        name="get_video_analytics",
    )
    return format_report(
        f"Video {args.video_id} analytics {args.start_date} to {args.end_date}",
        report,
    )


YOUTUBE_TOOLS = [
    ToolConfig(
        name="get_channel_info",
        description="Get information about the authenticated YouTube channel",
        category="channel",
        handler=get_channel_info,
    ),
    ToolConfig(
        name="get_channel_videos",
        description="List the most recent videos of the authenticated channel",
        category="channel",
        handler=get_channel_videos,
        arguments=ChannelVideosArguments,
    ),
    ToolConfig(
        name="search_videos",
        description="Search YouTube videos by keyword",
        category="discovery",
        handler=search_videos,
        arguments=SearchVideosArguments,
    ),
    ToolConfig(
        name="get_video_details",
        description="Get snippet, statistics and duration of a video",
        category="discovery",
        handler=get_video_details,
        arguments=VideoArguments,
    ),
    ToolConfig(
        name="get_channel_analytics",
        description="Query YouTube Analytics metrics for the authenticated channel",
        category="analytics",
        handler=get_channel_analytics,
        arguments=ChannelAnalyticsArguments,
    ),
    ToolConfig(
        name="get_video_analytics",
        description="Query YouTube Analytics metrics for one video",
        category="analytics",
        handler=get_video_analytics,
        arguments=VideoAnalyticsArguments,
    ),
]
