"""Tests for tool dispatch and result formatting."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from tests.helpers.auth import FakeOAuthClient, make_credential
from tests.helpers.http import RecordingTransport, google_error
from ytanalytics.auth.storage import CredentialStore
from ytanalytics.services.container import ServiceContainer
from ytanalytics.tools import ToolRegistry, ToolResult, create_registry
from ytanalytics.tools.youtube import format_report


ContainerFactory = Callable[..., ServiceContainer]

CHANNEL = {
    "id": "UC1",
    "snippet": {
        "title": "Mine",
        "publishedAt": "2020-05-01T10:00:00Z",
        "description": "x" * 250,
    },
    "statistics": {"subscriberCount": "1234567", "viewCount": "10", "videoCount": "3"},
}


@pytest.fixture
def registry() -> ToolRegistry:
    return create_registry()


class TestRegistry:
    """Registration and argument validation."""

    def test_all_tools_registered(self, registry: ToolRegistry) -> None:
        names = {tool.name for tool in registry.list_tools()}

        assert names == {
            "check_auth_status",
            "revoke_auth",
            "get_channel_info",
            "get_channel_videos",
            "search_videos",
            "get_video_details",
            "get_channel_analytics",
            "get_video_analytics",
            "get_channel_overview",
            "get_comparison_metrics",
            "get_average_view_percentage",
            "get_video_demographics",
            "get_geographic_distribution",
            "get_subscriber_analytics",
            "get_traffic_sources",
            "get_search_terms",
            "get_optimal_posting_time",
            "get_audience_retention",
            "get_retention_dropoff_points",
            "get_engagement_metrics",
            "get_public_channel_stats",
            "get_public_channel_videos",
            "compare_channels",
            "get_trending_videos",
            "get_server_info",
        }

    def test_duplicate_registration_rejected(self, registry: ToolRegistry) -> None:
        tool = registry.get("check_auth_status")
        assert tool is not None

        with pytest.raises(ValueError):
            registry.register(tool)

    async def test_unknown_tool(
        self, registry: ToolRegistry, make_container: ContainerFactory
    ) -> None:
        result = await registry.dispatch("nope", {}, make_container())

        assert result == ToolResult("Error: Unknown tool 'nope'", is_error=True)

    async def test_invalid_arguments(
        self, registry: ToolRegistry, make_container: ContainerFactory
    ) -> None:
        result = await registry.dispatch(
            "search_videos", {"max_results": 500}, make_container()
        )

        assert result.is_error
        assert result.text.startswith("Invalid arguments for search_videos")
        assert "query" in result.text
        assert "max_results" in result.text

    async def test_unexpected_arguments_rejected(
        self, registry: ToolRegistry, make_container: ContainerFactory
    ) -> None:
        result = await registry.dispatch(
            "check_auth_status", {"verbose": True}, make_container()
        )

        assert result.is_error

    def test_result_content_blocks(self) -> None:
        assert ToolResult("boom", is_error=True).to_dict() == {
            "content": [{"type": "text", "text": "boom"}],
            "isError": True,
        }
        assert "isError" not in ToolResult("fine").to_dict()


class TestAuthTools:
    """Status check and revocation."""

    async def test_status_not_authenticated(
        self, registry: ToolRegistry, make_container: ContainerFactory
    ) -> None:
        result = await registry.dispatch("check_auth_status", None, make_container())

        assert result == ToolResult("Authentication Status: Not Authenticated")

    async def test_status_authenticated(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
    ) -> None:
        await store.save(make_credential())

        result = await registry.dispatch("check_auth_status", {}, make_container())

        assert result.text == "Authentication Status: Authenticated"

    async def test_revoke_auth(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
        fake_oauth: FakeOAuthClient,
        credentials_path: Path,
    ) -> None:
        await store.save(make_credential())
        container = make_container()

        result = await registry.dispatch("revoke_auth", {}, container)

        assert not result.is_error
        assert result.text.startswith("Authentication revoked successfully.")
        assert fake_oauth.revoked_tokens == ["refresh-1"]
        assert not credentials_path.exists()
        status = await registry.dispatch("check_auth_status", {}, container)
        assert status.text == "Authentication Status: Not Authenticated"


class TestYouTubeTools:
    """Tools run through the container and render text."""

    async def test_channel_info(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
    ) -> None:
        await store.save(make_credential())
        transport = RecordingTransport(
            {"/youtube/v3/channels": [httpx.Response(200, json={"items": [CHANNEL]})]}
        )

        result = await registry.dispatch(
            "get_channel_info", {}, make_container(httpx.MockTransport(transport))
        )

        assert not result.is_error
        assert "Name: Mine" in result.text
        assert "Subscribers: 1,234,567" in result.text
        assert "Published: 2020-05-01" in result.text
        assert result.text.endswith("x" * 200 + "...")

    async def test_not_signed_in_is_an_error_result(
        self, registry: ToolRegistry, make_container: ContainerFactory
    ) -> None:
        result = await registry.dispatch("get_channel_info", {}, make_container())

        assert result.is_error
        assert "auth login" in result.text

    async def test_quota_error_result(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
    ) -> None:
        await store.save(make_credential())
        transport = RecordingTransport(
            {"/youtube/v3/search": [google_error(403, "Quota exceeded", "quotaExceeded")]}
        )

        result = await registry.dispatch(
            "search_videos",
            {"query": "python"},
            make_container(httpx.MockTransport(transport)),
        )

        assert result.is_error
        assert "quota exceeded" in result.text.lower()
        assert "access-1" not in result.text

    async def test_video_analytics(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
    ) -> None:
        await store.save(make_credential())
        report = {
            "columnHeaders": [{"name": "day"}, {"name": "views"}],
            "rows": [["2024-01-01", 10], ["2024-01-02", 12]],
        }
        transport = RecordingTransport(
            {"/v2/reports": [httpx.Response(200, json=report)]}
        )

        result = await registry.dispatch(
            "get_video_analytics",
            {
                "video_id": "vid1",
                "start_date": "2024-01-01",
                "end_date": "2024-01-02",
                "metrics": ["views"],
                "dimensions": ["day"],
            },
            make_container(httpx.MockTransport(transport)),
        )

        assert not result.is_error
        assert "day | views" in result.text
        assert "2024-01-02 | 12" in result.text
        assert transport.requests[0].url.params["filters"] == "video==vid1"

    def test_empty_report(self) -> None:
        assert format_report("Report", {"rows": []}) == (
            "Report: no data for the requested period."
        )

    async def test_channel_videos_date_window(
        self,
        registry: ToolRegistry,
        make_container: ContainerFactory,
        store: CredentialStore,
    ) -> None:
        await store.save(make_credential())
        search = {
            "items": [
                {
                    "id": {"kind": "youtube#video", "videoId": "v1"},
                    "snippet": {"title": "Launch", "publishedAt": "2024-03-02T09:00:00Z"},
                }
            ]
        }
        transport = RecordingTransport(
            {
                "/youtube/v3/channels": [httpx.Response(200, json={"items": [CHANNEL]})],
                "/youtube/v3/search": [httpx.Response(200, json=search)],
            }
        )

        result = await registry.dispatch(
            "get_channel_videos",
            {"start_date": "2024-03-01", "end_date": "2024-03-31", "query": "launch"},
            make_container(httpx.MockTransport(transport)),
        )

        assert not result.is_error
        assert "Launch" in result.text
        params = transport.requests[-1].url.params
        assert params["channelId"] == "UC1"
        assert params["q"] == "launch"
        assert params["maxResults"] == "25"
        assert params["publishedAfter"] == "2024-03-01T00:00:00Z"
        assert params["publishedBefore"] == "2024-03-31T23:59:59Z"
