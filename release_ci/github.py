"""GitHub Releases API client."""

from __future__ import annotations

import mimetypes
from pathlib import Path

import httpx
from loguru import logger

from release_ci.exceptions import ReleaseLookupError, ReleasePublishError

API_URL = "https://api.github.com"

CONTENT_TYPES = {
    ".apk": "application/vnd.android.package-archive",
    ".aab": "application/octet-stream",
}


def _content_type(path: Path) -> str:
    if path.suffix in CONTENT_TYPES:
        return CONTENT_TYPES[path.suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


class GitHubReleases:
    """Thin wrapper over the releases endpoints of one repository."""

    def __init__(
        self,
        repo: str,
        token: str | None,
        timeout: float = 30.0,
        base_url: str = API_URL,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.repo = repo
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"token {token}"
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubReleases:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ReleasePublishError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, action: str) -> httpx.Response:
        if response.is_success:
            return response
        raise ReleasePublishError(f"{action} failed with HTTP {response.status_code}: {response.text[:200]}")

    def get_latest_release_tag(self) -> str | None:
        """Return the tag of the latest published release.

        Returns None when the repository has no release yet (404), and raises
        ReleaseLookupError for any other failure so the caller can retry.
        """
        url = f"/repos/{self.repo}/releases/latest"
        try:
            response = self._client.get(url)
        except httpx.HTTPError as e:
            raise ReleaseLookupError(f"GET {url} failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ReleaseLookupError(
                f"API call failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ReleaseLookupError(f"Invalid JSON from {url}: {e}", status_code=200) from e
        tag = payload.get("tag_name") if isinstance(payload, dict) else None
        return tag or None

    def get_release_by_tag(self, tag: str) -> dict | None:
        response = self._request("GET", f"/repos/{self.repo}/releases/tags/{tag}")
        if response.status_code == 404:
            return None
        return self._check(response, f"Get release {tag}").json()

    def create_release(
        self,
        tag: str,
        name: str,
        body: str,
        draft: bool = False,
        prerelease: bool = False,
        target_commitish: str | None = None,
    ) -> dict:
        payload: dict = {
            "tag_name": tag,
            "name": name,
            "body": body,
            "draft": draft,
            "prerelease": prerelease,
        }
        if target_commitish:
            payload["target_commitish"] = target_commitish
        response = self._request("POST", f"/repos/{self.repo}/releases", json=payload)
        release = self._check(response, f"Create release {tag}").json()
        logger.info(f"Created release {tag}: {release.get('html_url')}")
        return release

    def update_release(self, release_id: int, draft: bool = False, prerelease: bool = False) -> dict:
        response = self._request(
            "PATCH",
            f"/repos/{self.repo}/releases/{release_id}",
            json={"draft": draft, "prerelease": prerelease},
        )
        return self._check(response, f"Update release {release_id}").json()

    def delete_release(self, release_id: int) -> None:
        response = self._request("DELETE", f"/repos/{self.repo}/releases/{release_id}")
        self._check(response, f"Delete release {release_id}")

    def delete_asset(self, asset_id: int) -> None:
        response = self._request("DELETE", f"/repos/{self.repo}/releases/assets/{asset_id}")
        self._check(response, f"Delete asset {asset_id}")

    def upload_asset(self, release: dict, path: Path) -> dict:
        # upload_url is an RFC 6570 template: https://uploads.github.com/...{?name,label}
        upload_url = release["upload_url"].split("{", 1)[0]
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ReleasePublishError(f"Cannot read artifact {path}: {e}") from e
        response = self._request(
            "POST",
            upload_url,
            params={"name": path.name},
            headers={"Content-Type": _content_type(path)},
            content=content,
        )
        asset = self._check(response, f"Upload {path.name}").json()
        logger.info(f"Uploaded asset {path.name} ({len(content)} bytes)")
        return asset
