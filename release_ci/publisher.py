"""CI GitHub release publisher."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from release_ci.exceptions import ReleasePublishError
from release_ci.github import GitHubReleases


def _replace_existing_asset(client: GitHubReleases, release: dict, path: Path) -> None:
    for asset in release.get("assets", []):
        if asset.get("name") == path.name:
            logger.info(f"Replacing existing asset: {path.name}")
            client.delete_asset(asset["id"])


def _discard_draft(client: GitHubReleases, release: dict, tag: str) -> None:
    logger.error(f"Asset upload failed, deleting draft release {tag}")
    try:
        client.delete_release(release["id"])
    except ReleasePublishError as e:
        # 残ったドラフトは非公開のまま
        logger.error(f"Failed to delete draft release {tag}: {e}")


def publish_release(
    client: GitHubReleases,
    tag: str,
    name: str,
    body: str,
    artifacts: list[Path],
    draft: bool = False,
    prerelease: bool = False,
) -> dict:
    """リリースを作成（既存なら再利用）し、全アーティファクトを添付してから公開する.

    新規リリースはドラフトとして作成し、全アセットのアップロード後に
    draft/prerelease を設定値へ更新する。アップロードが失敗した場合はドラフトを削除し、
    削除に失敗してもアップロード時の例外を再送出する。

    Args:
        client: GitHubReleases
        tag: リリースタグ（short hash）
        name: リリースタイトル
        body: リリース本文
        artifacts: 添付ファイル
        draft: 公開後もドラフトのままにするか
        prerelease: プレリリースとして公開するか

    Returns:
        リリースのAPIレスポンス

    Raises:
        ReleasePublishError: アーティファクトなし、またはAPI呼び出しの失敗
    """
    if not artifacts:
        raise ReleasePublishError("No artifacts to attach; refusing to publish an empty release")

    release = client.get_release_by_tag(tag)
    created = release is None
    if release is None:
        release = client.create_release(tag, name, body, draft=True, prerelease=prerelease)
    else:
        logger.info(f"Release {tag} already exists, updating assets")

    try:
        for path in artifacts:
            _replace_existing_asset(client, release, path)
            client.upload_asset(release, path)
    except ReleasePublishError:
        if created:
            _discard_draft(client, release, tag)
        raise

    if created:
        release = client.update_release(release["id"], draft=draft, prerelease=prerelease)

    logger.info(f"Release published: {release.get('html_url')}")
    return release
