"""Tools over public YouTube data: other channels and trending videos."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ytanalytics.api.client import YouTubeClient
from ytanalytics.services.container import ServiceContainer

from .formatting import format_date, format_number, to_float
from .registry import ToolConfig
from .youtube import format_channel


class PublicChannelArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    channel_id: str = Field(..., min_length=1)


class PublicChannelVideosArguments(PublicChannelArguments):
    max_results: int = Field(default=25, ge=1, le=50)


class CompareChannelsArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    channel_ids: list[str] = Field(..., min_length=2, max_length=10)


class TrendingVideosArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    region_code: str | None = Field(
        default=None,
        pattern=r"^[A-Za-z]{2}$",
        description="ISO 3166-1 alpha-2 country code",
    )
    category_id: str | None = Field(default=None, min_length=1)
    max_results: int = Field(default=25, ge=1, le=50)


def format_video_stats(title: str, videos: list[dict[str, Any]]) -> str:
    if not videos:
        return f"{title}: no videos found."
    lines = [f"{title} ({len(videos)}):"]
    for index, video in enumerate(videos, start=1):
        snippet = video.get("snippet", {})
        stats = video.get("statistics", {})
        lines.append(
            f"{index}. {snippet.get('title', 'Untitled')} "
            f"(ID: {video.get('id', 'N/A')}, {snippet.get('channelTitle', 'N/A')}, "
            f"published {format_date(snippet.get('publishedAt'))}): "
            f"{format_number(stats.get('viewCount'))} views, "
            f"{format_number(stats.get('likeCount'))} likes, "
            f"{format_number(stats.get('commentCount'))} comments"
        )
    return "\n".join(lines)


def format_channel_comparison(channels: list[dict[str, Any]]) -> str:
    def stat(channel: dict[str, Any], name: str) -> float:
        return to_float(channel.get("statistics", {}).get(name))

    def title(channel: dict[str, Any]) -> str:
        return str(channel.get("snippet", {}).get("title", channel.get("id", "N/A")))

    lines = [
        "Channel Comparison:",
        "Channel | Subscribers | Views | Videos | Created",
    ]
    for channel in channels:
        lines.append(
            f"{title(channel)} | {format_number(stat(channel, 'subscriberCount'))} | "
            f"{format_number(stat(channel, 'viewCount'))} | "
            f"{format_number(stat(channel, 'videoCount'))} | "
            f"{format_date(channel.get('snippet', {}).get('publishedAt'))}"
        )
    for heading, name, unit in [
        ("Ranked by subscribers", "subscriberCount", "subscribers"),
        ("Ranked by total views", "viewCount", "views"),
    ]:
        lines.append(f"{heading}:")
        ranked = sorted(channels, key=lambda c: stat(c, name), reverse=True)
        lines.extend(
            f"{index}. {title(channel)}: {format_number(stat(channel, name))} {unit}"
            for index, channel in enumerate(ranked, start=1)
        )
    return "\n".join(lines)


async def get_public_channel_stats(
    args: PublicChannelArguments, container: ServiceContainer
) -> str:
    channels = await container.call(
        lambda client: client.get_public_channels([args.channel_id]),
        name="get_public_channel_stats",
    )
    return format_channel(channels[0])


async def get_public_channel_videos(
    args: PublicChannelVideosArguments, container: ServiceContainer
) -> str:
    async def fetch(client: YouTubeClient) -> list[dict[str, Any]]:
        items = await client.get_public_channel_videos(
            args.channel_id, args.max_results
        )
        video_ids = [
            item["id"]["videoId"]
            for item in items
            if isinstance(item.get("id"), dict) and item["id"].get("videoId")
        ]
        return await client.get_videos(video_ids)

    videos = await container.call(fetch, name="get_public_channel_videos")
    return format_video_stats(f"Recent videos of channel {args.channel_id}", videos)


async def compare_channels(
    args: CompareChannelsArguments, container: ServiceContainer
) -> str:
    channels = await container.call(
        lambda client: client.get_public_channels(args.channel_ids),
        name="compare_channels",
    )
    return format_channel_comparison(channels)


async def get_trending_videos(
    args: TrendingVideosArguments, container: ServiceContainer
) -> str:
    region = args.region_code.upper() if args.region_code else None
    videos = await container.call(
        lambda client: client.get_trending_videos(
            region, args.category_id, args.max_results
        ),
        name="get_trending_videos",
    )
    where = f" in {region}" if region else ""
    return format_video_stats(f"Trending videos{where}", videos)


PUBLIC_TOOLS = [
    ToolConfig(
        name="get_public_channel_stats",
        description="Public statistics for any YouTube channel",
        category="competitor",
        handler=get_public_channel_stats,
        arguments=PublicChannelArguments,
    ),
    ToolConfig(
        name="get_public_channel_videos",
        description="Recent videos of any YouTube channel with basic statistics",
        category="competitor",
        handler=get_public_channel_videos,
        arguments=PublicChannelVideosArguments,
    ),
    ToolConfig(
        name="compare_channels",
        description="Compare public statistics of 2 to 10 YouTube channels",
        category="competitor",
        handler=compare_channels,
        arguments=CompareChannelsArguments,
    ),
    ToolConfig(
        name="get_trending_videos",
        description="Most popular videos, globally or for one country",
        category="trends",
        handler=get_trending_videos,
        arguments=TrendingVideosArguments,
    ),
]
