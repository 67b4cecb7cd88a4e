"""Preset YouTube Analytics reports.

Each tool issues one fixed ``reports.query`` (two for the period comparison)
and renders the rows as text. Video-scoped variants add a ``video==ID``
filter through :meth:`YouTubeClient.get_video_analytics`.
"""

from collections import defaultdict
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ytanalytics.api.client import DATE_PATTERN, AnalyticsQuery
from ytanalytics.services.container import ServiceContainer

from .formatting import format_number, format_percent, period, report_rows, to_float
from .registry import ToolConfig


WEEKDAYS = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

METRIC_LABELS = {
    "views": "Views",
    "estimatedMinutesWatched": "Watch Time (minutes)",
    "averageViewDuration": "Average View Duration (seconds)",
    "averageViewPercentage": "Average View Percentage",
    "subscribersGained": "Subscribers Gained",
    "subscribersLost": "Subscribers Lost",
    "likes": "Likes",
    "dislikes": "Dislikes",
    "comments": "Comments",
    "shares": "Shares",
}

TRAFFIC_SOURCE_LABELS = {
    "ADVERTISING": "Advertising",
    "ANNOTATION": "Annotations",
    "BROWSE": "Browse features",
    "END_SCREEN": "End screens",
    "EXT_URL": "External websites",
    "HASHTAGS": "Hashtag pages",
    "NO_LINK_OTHER": "Direct or unknown",
    "NOTIFICATION": "Notifications",
    "PLAYLIST": "Playlists",
    "SHORTS": "Shorts feed",
    "SUBSCRIBER": "Subscriptions",
    "SUGGESTED": "Suggested videos",
    "YT_CHANNEL": "Channel pages",
    "YT_OTHER_PAGE": "Other YouTube pages",
    "YT_SEARCH": "YouTube search",
}

OVERVIEW_METRICS = [
    "views",
    "estimatedMinutesWatched",
    "averageViewDuration",
    "subscribersGained",
    "subscribersLost",
]
ENGAGEMENT_METRICS = [
    "views",
    "likes",
    "dislikes",
    "comments",
    "shares",
    "subscribersGained",
    "subscribersLost",
]


class DateRangeArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start_date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")
    end_date: str = Field(..., pattern=DATE_PATTERN, description="YYYY-MM-DD")


class OptionalVideoArguments(DateRangeArguments):
    video_id: str | None = Field(
        default=None, min_length=1, description="Restrict the report to one video"
    )


class VideoRangeArguments(DateRangeArguments):
    video_id: str = Field(..., min_length=1)


class RetentionDropoffArguments(VideoRangeArguments):
    threshold: float = Field(
        default=0.1, gt=0, lt=1, description="Minimum drop between two points"
    )


class ComparisonArguments(BaseModel):
    model_config = ConfigDict(extra="forbid")

    metrics: list[str] = Field(..., min_length=1)
    period1_start: str = Field(..., pattern=DATE_PATTERN)
    period1_end: str = Field(..., pattern=DATE_PATTERN)
    period2_start: str = Field(..., pattern=DATE_PATTERN)
    period2_end: str = Field(..., pattern=DATE_PATTERN)


async def fetch_report(
    container: ServiceContainer,
    name: str,
    query: AnalyticsQuery,
    video_id: str | None = None,
) -> dict[str, Any]:
    if video_id:
        return await container.call(
            lambda client: client.get_video_analytics(video_id, query), name=name
        )
    return await container.call(
        lambda client: client.get_channel_analytics(query), name=name
    )


def _no_data(title: str) -> str:
    return f"{title}: no data for the requested period."


def _metric_value(metric: str, value: Any) -> str:
    if metric == "averageViewDuration":
        return f"{to_float(value):.1f}"
    if metric == "averageViewPercentage":
        return f"{to_float(value):.1f}%"
    return format_number(value)


def _signed(value: float) -> str:
    return f"+{format_number(value)}" if value > 0 else format_number(value)


def _totals(rows: list[dict[str, Any]], metrics: list[str]) -> dict[str, float]:
    return {metric: sum(to_float(row.get(metric)) for row in rows) for metric in metrics}


def format_overview(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    row = rows[0]
    lines = [f"{title}:"]
    for metric in OVERVIEW_METRICS:
        if metric in row:
            lines.append(f"{METRIC_LABELS[metric]}: {_metric_value(metric, row[metric])}")
    if "subscribersGained" in row and "subscribersLost" in row:
        net = to_float(row["subscribersGained"]) - to_float(row["subscribersLost"])
        lines.append(f"Net Subscribers: {_signed(net)}")
    return "\n".join(lines)


def format_comparison(
    title: str,
    metrics: list[str],
    first: dict[str, Any],
    second: dict[str, Any],
) -> str:
    first_row = next(iter(report_rows(first)), {})
    second_row = next(iter(report_rows(second)), {})
    lines = [f"{title}:"]
    for metric in metrics:
        before = to_float(first_row.get(metric))
        after = to_float(second_row.get(metric))
        change = after - before
        relative = f"{change / before * 100:+.1f}%" if before else "n/a"
        label = METRIC_LABELS.get(metric, metric)
        lines.append(
            f"{label}: {_metric_value(metric, before)} -> "
            f"{_metric_value(metric, after)} ({_signed(change)}, {relative})"
        )
    return "\n".join(lines)


def _age_label(age_group: str) -> str:
    label = age_group.removeprefix("age")
    return f"{label[:-1]}+" if label.endswith("-") else label


def format_demographics(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    by_age: dict[str, list[str]] = defaultdict(list)
    for row in rows:
        gender = str(row.get("gender", "unknown")).lower()
        by_age[str(row.get("ageGroup", "unknown"))].append(
            f"{gender} {to_float(row.get('viewerPercentage')):.1f}%"
        )
    lines = [f"{title}:"]
    for age_group in sorted(by_age):
        lines.append(f"Ages {_age_label(age_group)}: {', '.join(by_age[age_group])}")
    return "\n".join(lines)


def format_geography(title: str, report: dict[str, Any], top: int = 10) -> str:
    rows = sorted(
        report_rows(report), key=lambda r: to_float(r.get("views")), reverse=True
    )
    if not rows:
        return _no_data(title)
    total = sum(to_float(row.get("views")) for row in rows)
    lines = [f"{title}:", f"Total Views Analyzed: {format_number(total)}"]
    for index, row in enumerate(rows[:top], start=1):
        views = to_float(row.get("views"))
        lines.append(
            f"{index}. {row.get('country', 'N/A')}: {format_number(views)} views "
            f"({format_percent(views, total)})"
        )
    rest = rows[top:]
    if rest:
        rest_views = sum(to_float(row.get("views")) for row in rest)
        lines.append(
            f"... and {len(rest)} other countries ({format_number(rest_views)} views, "
            f"{format_percent(rest_views, total)})"
        )
    return "\n".join(lines)


def format_subscribed_status(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    total = sum(to_float(row.get("views")) for row in rows)
    labels = {"SUBSCRIBED": "Subscribers", "UNSUBSCRIBED": "Non-subscribers"}
    lines = [f"{title}:"]
    for row in rows:
        status = str(row.get("subscribedStatus", ""))
        views = to_float(row.get("views"))
        line = (
            f"{labels.get(status, status)}: {format_number(views)} views "
            f"({format_percent(views, total)})"
        )
        if "estimatedMinutesWatched" in row:
            line += f", {format_number(row['estimatedMinutesWatched'])} minutes watched"
        if "averageViewDuration" in row:
            line += f", {to_float(row['averageViewDuration']):.1f}s average view"
        lines.append(line)
    return "\n".join(lines)


def format_traffic_sources(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    total = sum(to_float(row.get("views")) for row in rows)
    lines = [f"{title}:"]
    for index, row in enumerate(rows, start=1):
        source = str(row.get("insightTrafficSourceType", "N/A"))
        views = to_float(row.get("views"))
        lines.append(
            f"{index}. {TRAFFIC_SOURCE_LABELS.get(source, source)}: "
            f"{format_number(views)} views ({format_percent(views, total)}), "
            f"{format_number(row.get('estimatedMinutesWatched'))} minutes watched"
        )
    return "\n".join(lines)


def format_search_terms(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    lines = [f"{title}:"]
    for index, row in enumerate(rows, start=1):
        lines.append(
            f"{index}. \"{row.get('insightTrafficSourceDetail', '')}\": "
            f"{format_number(row.get('views'))} views"
        )
    return "\n".join(lines)


def format_posting_days(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    days: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for row in rows:
        try:
            weekday = WEEKDAYS[date.fromisoformat(str(row.get("day"))).weekday()]
        except ValueError:
            continue
        days[weekday].append(row)

    averages = []
    for weekday, day_rows in days.items():
        totals = _totals(
            day_rows, ["views", "estimatedMinutesWatched", "subscribersGained"]
        )
        count = len(day_rows)
        averages.append(
            (weekday, count, {metric: value / count for metric, value in totals.items()})
        )
    averages.sort(key=lambda item: item[2]["views"], reverse=True)

    lines = [f"{title}:", "Average per day of week (ranked by views):"]
    for index, (weekday, count, avg) in enumerate(averages, start=1):
        lines.append(
            f"{index}. {weekday}: {format_number(avg['views'])} views, "
            f"{format_number(avg['estimatedMinutesWatched'])} minutes watched, "
            f"{avg['subscribersGained']:.1f} subscribers gained ({count} days)"
        )
    best = sorted(rows, key=lambda r: to_float(r.get("views")), reverse=True)[:5]
    lines.append("Best days:")
    lines.extend(
        f"- {row.get('day')}: {format_number(row.get('views'))} views" for row in best
    )
    return "\n".join(lines)


def _retention_points(report: dict[str, Any]) -> list[tuple[float, float, float]]:
    return [
        (
            to_float(row.get("elapsedVideoTimeRatio")),
            to_float(row.get("audienceWatchRatio")),
            to_float(row.get("relativeRetentionPerformance")),
        )
        for row in report_rows(report)
    ]


def format_retention(title: str, report: dict[str, Any], samples: int = 10) -> str:
    points = _retention_points(report)
    if not points:
        return _no_data(title)
    step = max(1, len(points) // samples)
    shown = points[::step]
    if shown[-1] != points[-1]:
        shown.append(points[-1])
    lines = [f"{title}:"]
    for elapsed, watch_ratio, relative in shown:
        lines.append(
            f"{elapsed * 100:.0f}% into video: {watch_ratio * 100:.1f}% still watching "
            f"(relative performance {relative:.2f})"
        )
    return "\n".join(lines)


def find_dropoffs(
    report: dict[str, Any], threshold: float
) -> list[tuple[float, float, str]]:
    """Points where the watch ratio falls by more than ``threshold``.

    Returns ``(elapsed_ratio, drop, severity)``; drops above 0.2 are critical.
    """
    points = _retention_points(report)
    dropoffs = []
    for previous, current in zip(points, points[1:]):
        drop = previous[1] - current[1]
        if drop > threshold:
            dropoffs.append((current[0], drop, "critical" if drop > 0.2 else "warning"))
    return dropoffs


def format_dropoffs(
    title: str, report: dict[str, Any], threshold: float
) -> str:
    if not report_rows(report):
        return _no_data(title)
    dropoffs = find_dropoffs(report, threshold)
    if not dropoffs:
        return f"{title}: no drop larger than {threshold * 100:.1f}% found."
    lines = [f"{title}:"]
    for elapsed, drop, severity in dropoffs:
        lines.append(
            f"{elapsed * 100:.0f}% into video: -{drop * 100:.1f}% viewers ({severity})"
        )
    return "\n".join(lines)


def format_engagement(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    totals = _totals(rows, ENGAGEMENT_METRICS)
    views = totals["views"]

    def rate(metric: str) -> str:
        return f"{totals[metric] / views * 100:.2f}%" if views else "0.00%"

    net = totals["subscribersGained"] - totals["subscribersLost"]
    return "\n".join(
        [
            f"{title}:",
            f"Views: {format_number(views)}",
            f"Likes: {format_number(totals['likes'])} ({rate('likes')} of views)",
            f"Dislikes: {format_number(totals['dislikes'])}",
            f"Comments: {format_number(totals['comments'])} ({rate('comments')} of views)",
            f"Shares: {format_number(totals['shares'])} ({rate('shares')} of views)",
            f"Net Subscriber Change: {_signed(net)}",
        ]
    )


def format_view_percentage(title: str, report: dict[str, Any]) -> str:
    rows = report_rows(report)
    if not rows:
        return _no_data(title)
    row = rows[0]
    lines = [f"{title}:"]
    for metric in ["averageViewPercentage", "averageViewDuration", "views"]:
        lines.append(f"{METRIC_LABELS[metric]}: {_metric_value(metric, row.get(metric))}")
    return "\n".join(lines)


async def get_channel_overview(
    args: DateRangeArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date, end_date=args.end_date, metrics=OVERVIEW_METRICS
    )
    report = await fetch_report(container, "get_channel_overview", query)
    return format_overview(
        f"Channel Overview {period(args.start_date, args.end_date)}", report
    )


async def get_comparison_metrics(
    args: ComparisonArguments, container: ServiceContainer
) -> str:
    first = await fetch_report(
        container,
        "get_comparison_metrics",
        AnalyticsQuery(
            start_date=args.period1_start,
            end_date=args.period1_end,
            metrics=args.metrics,
        ),
    )
    second = await fetch_report(
        container,
        "get_comparison_metrics",
        AnalyticsQuery(
            start_date=args.period2_start,
            end_date=args.period2_end,
            metrics=args.metrics,
        ),
    )
    title = (
        f"Comparison {period(args.period1_start, args.period1_end)} vs "
        f"{period(args.period2_start, args.period2_end)}"
    )
    return format_comparison(title, args.metrics, first, second)


async def get_average_view_percentage(
    args: DateRangeArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["averageViewPercentage", "averageViewDuration", "views"],
    )
    report = await fetch_report(container, "get_average_view_percentage", query)
    return format_view_percentage(
        f"Average View Percentage {period(args.start_date, args.end_date)}", report
    )


async def get_video_demographics(
    args: OptionalVideoArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["viewerPercentage"],
        dimensions=["ageGroup", "gender"],
        sort="gender,ageGroup",
    )
    report = await fetch_report(
        container, "get_video_demographics", query, args.video_id
    )
    return format_demographics(
        f"Audience Demographics {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_geographic_distribution(
    args: OptionalVideoArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["views", "estimatedMinutesWatched"],
        dimensions=["country"],
        sort="-views",
    )
    report = await fetch_report(
        container, "get_geographic_distribution", query, args.video_id
    )
    return format_geography(
        f"Geographic Distribution {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_subscriber_analytics(
    args: OptionalVideoArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["views", "estimatedMinutesWatched", "averageViewDuration"],
        dimensions=["subscribedStatus"],
    )
    report = await fetch_report(
        container, "get_subscriber_analytics", query, args.video_id
    )
    return format_subscribed_status(
        f"Subscriber Analytics {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_traffic_sources(
    args: OptionalVideoArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["views", "estimatedMinutesWatched"],
        dimensions=["insightTrafficSourceType"],
        sort="-views",
    )
    report = await fetch_report(
        container, "get_traffic_sources", query, args.video_id
    )
    return format_traffic_sources(
        f"Traffic Sources {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_search_terms(
    args: VideoRangeArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["views"],
        dimensions=["insightTrafficSourceDetail"],
        filters="insightTrafficSourceType==YT_SEARCH",
        max_results=25,
        sort="-views",
    )
    report = await fetch_report(container, "get_search_terms", query, args.video_id)
    return format_search_terms(
        f"Search Terms {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_optimal_posting_time(
    args: DateRangeArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["views", "estimatedMinutesWatched", "subscribersGained"],
        dimensions=["day"],
        sort="day",
    )
    report = await fetch_report(container, "get_optimal_posting_time", query)
    return format_posting_days(
        f"Posting Day Analysis {period(args.start_date, args.end_date)}", report
    )


def _retention_query(args: VideoRangeArguments) -> AnalyticsQuery:
    return AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=["audienceWatchRatio", "relativeRetentionPerformance"],
        dimensions=["elapsedVideoTimeRatio"],
    )


async def get_audience_retention(
    args: VideoRangeArguments, container: ServiceContainer
) -> str:
    report = await fetch_report(
        container, "get_audience_retention", _retention_query(args), args.video_id
    )
    return format_retention(
        f"Audience Retention {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


async def get_retention_dropoff_points(
    args: RetentionDropoffArguments, container: ServiceContainer
) -> str:
    report = await fetch_report(
        container,
        "get_retention_dropoff_points",
        _retention_query(args),
        args.video_id,
    )
    return format_dropoffs(
        f"Retention Drop-off Points {period(args.start_date, args.end_date, args.video_id)}",
        report,
        args.threshold,
    )


async def get_engagement_metrics(
    args: OptionalVideoArguments, container: ServiceContainer
) -> str:
    query = AnalyticsQuery(
        start_date=args.start_date,
        end_date=args.end_date,
        metrics=ENGAGEMENT_METRICS,
    )
    report = await fetch_report(
        container, "get_engagement_metrics", query, args.video_id
    )
    return format_engagement(
        f"Engagement Metrics {period(args.start_date, args.end_date, args.video_id)}",
        report,
    )


REPORT_TOOLS = [
    ToolConfig(
        name="get_channel_overview",
        description="Channel views, watch time, view duration and subscriber changes",
        category="health",
        handler=get_channel_overview,
        arguments=DateRangeArguments,
    ),
    ToolConfig(
        name="get_comparison_metrics",
        description="Compare channel metrics between two time periods",
        category="health",
        handler=get_comparison_metrics,
        arguments=ComparisonArguments,
    ),
    ToolConfig(
        name="get_average_view_percentage",
        description="Average share of each video that viewers watch",
        category="health",
        handler=get_average_view_percentage,
        arguments=DateRangeArguments,
    ),
    ToolConfig(
        name="get_video_demographics",
        description="Audience age and gender breakdown for the channel or a video",
        category="audience",
        handler=get_video_demographics,
        arguments=OptionalVideoArguments,
    ),
    ToolConfig(
        name="get_geographic_distribution",
        description="Views by country for the channel or a video",
        category="audience",
        handler=get_geographic_distribution,
        arguments=OptionalVideoArguments,
    ),
    ToolConfig(
        name="get_subscriber_analytics",
        description="Subscriber versus non-subscriber views",
        category="audience",
        handler=get_subscriber_analytics,
        arguments=OptionalVideoArguments,
    ),
    ToolConfig(
        name="get_traffic_sources",
        description="Where viewers discover the channel or a video",
        category="discovery",
        handler=get_traffic_sources,
        arguments=OptionalVideoArguments,
    ),
    ToolConfig(
        name="get_search_terms",
        description="YouTube search terms that led viewers to a video",
        category="discovery",
        handler=get_search_terms,
        arguments=VideoRangeArguments,
    ),
    ToolConfig(
        name="get_optimal_posting_time",
        description="Views, watch time and subscriber gains by day of week",
        category="discovery",
        handler=get_optimal_posting_time,
        arguments=DateRangeArguments,
    ),
    ToolConfig(
        name="get_audience_retention",
        description="Share of viewers still watching across a video's length",
        category="performance",
        handler=get_audience_retention,
        arguments=VideoRangeArguments,
    ),
    ToolConfig(
        name="get_retention_dropoff_points",
        description="Moments in a video where viewer retention drops sharply",
        category="performance",
        handler=get_retention_dropoff_points,
        arguments=RetentionDropoffArguments,
    ),
    ToolConfig(
        name="get_engagement_metrics",
        description="Likes, comments, shares and subscriber change with rates per view",
        category="engagement",
        handler=get_engagement_metrics,
        arguments=OptionalVideoArguments,
    ),
]
