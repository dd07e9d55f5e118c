"""Unit tests for the GitHub releases client."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from release_ci.exceptions import ReleaseLookupError, ReleasePublishError
from release_ci.github import GitHubReleases


def _client(handler) -> GitHubReleases:
    return GitHubReleases("owner/apk-releases", "secret-token", transport=httpx.MockTransport(handler))


class TestLatestReleaseTag:
    def test_returns_tag_name(self) -> None:
        """200応答のtag_nameを返すこと."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"tag_name": "a1b2c3d"})

        with _client(handler) as client:
            assert client.get_latest_release_tag() == "a1b2c3d"

        assert seen[0].url.path == "/repos/owner/apk-releases/releases/latest"
        assert seen[0].headers["Authorization"] == "token secret-token"

    def test_not_found_returns_none(self) -> None:
        """404はリリースなし（None）として扱うこと."""
        with _client(lambda request: httpx.Response(404, json={"message": "Not Found"})) as client:
            assert client.get_latest_release_tag() is None

    def test_missing_tag_name_returns_none(self) -> None:
        """tag_nameのない200応答はリリースなしとして扱うこと."""
        with _client(lambda request: httpx.Response(200, json={})) as client:
            assert client.get_latest_release_tag() is None

    @pytest.mark.parametrize("status", [401, 403, 500, 502, 503])
    def test_other_status_raises_lookup_error(self, status: int) -> None:
        """404以外のエラーはReleaseLookupErrorになること."""
        with _client(lambda request: httpx.Response(status)) as client:
            with pytest.raises(ReleaseLookupError, match=f"HTTP {status}") as exc_info:
                client.get_latest_release_tag()

        assert exc_info.value.status_code == status

    def test_connection_error_raises_lookup_error(self) -> None:
        """接続エラーはReleaseLookupErrorになること."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _client(handler) as client:
            with pytest.raises(ReleaseLookupError) as exc_info:
                client.get_latest_release_tag()

        assert exc_info.value.status_code is None


class TestReleaseWrites:
    def test_create_release_payload(self) -> None:
        """リリース作成でタグ・タイトル・本文・フラグを送信すること."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 7, "upload_url": "https://uploads.github.com/x{?name,label}"})

        with _client(handler) as client:
            release = client.create_release("a1b2c3d", "Release a1b2c3d", "body text")

        assert release["id"] == 7
        assert bodies == [
            {
                "tag_name": "a1b2c3d",
                "name": "Release a1b2c3d",
                "body": "body text",
                "draft": False,
                "prerelease": False,
            }
        ]

    def test_create_release_failure_raises(self) -> None:
        """作成APIのエラーはReleasePublishErrorになること."""
        with _client(lambda request: httpx.Response(422, json={"message": "Validation Failed"})) as client:
            with pytest.raises(ReleasePublishError, match="HTTP 422"):
                client.create_release("a1b2c3d", "name", "body")

    def test_get_release_by_tag_not_found(self) -> None:
        with _client(lambda request: httpx.Response(404)) as client:
            assert client.get_release_by_tag("a1b2c3d") is None

    def test_upload_asset_uses_upload_url(self, tmp_path: Path) -> None:
        """upload_urlのテンプレート部分を除去してAPKをアップロードすること."""
        apk = tmp_path / "app-release.apk"
        apk.write_bytes(b"PK\x03\x04apk")
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 1, "name": apk.name})

        release = {"id": 7, "upload_url": "https://uploads.github.com/repos/o/r/releases/7/assets{?name,label}"}
        with _client(handler) as client:
            client.upload_asset(release, apk)

        request = seen[0]
        assert request.url.host == "uploads.github.com"
        assert request.url.path == "/repos/o/r/releases/7/assets"
        assert request.url.params["name"] == "app-release.apk"
        assert request.headers["Content-Type"] == "application/vnd.android.package-archive"
        assert request.content == b"PK\x03\x04apk"
