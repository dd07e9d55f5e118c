"""ソースリポジトリの取得とcommit情報の記録."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from release_ci.config import SourceConfig
from release_ci.exceptions import SourceFetchError


@dataclass(frozen=True)
class CommitInfo:
    short_hash: str
    full_hash: str
    commit_date: str

    def commit_url(self, repo: str) -> str:
        return f"https://github.com/{repo}/commit/{self.full_hash}"


def _git(args: list[str], cwd: Path | None = None) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise SourceFetchError("git executable not found") from e
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise SourceFetchError(f"git {' '.join(args)} failed: {stderr}") from e
    return result.stdout.strip()


def read_commit_info(repo_dir: Path) -> CommitInfo:
    """チェックアウト済みリポジトリのHEADのcommit情報を取得.

    Args:
        repo_dir: gitリポジトリのディレクトリ

    Returns:
        short hash・full hash・commit日時（ISO形式）
    """
    info = CommitInfo(
        short_hash=_git(["rev-parse", "--short", "HEAD"], cwd=repo_dir),
        full_hash=_git(["rev-parse", "HEAD"], cwd=repo_dir),
        commit_date=_git(["log", "-1", "--format=%cd", "--date=iso"], cwd=repo_dir),
    )
    logger.info(
        f"Source code hashes captured: short={info.short_hash}, "
        f"full={info.full_hash}, date={info.commit_date}"
    )
    return info


def fetch_source_repo(
    source: SourceConfig,
    dest: Path,
    force: bool = False,
    url: str | None = None,
) -> CommitInfo:
    """追跡ブランチをclone（既存なら更新）してcommit情報を返す.

    Args:
        source: ソース設定（repo・branch）
        dest: チェックアウト先ディレクトリ
        force: 既存ディレクトリを削除して再取得するか
        url: clone元URL（省略時はGitHubのURL）

    Returns:
        HEADのCommitInfo

    Raises:
        SourceFetchError: gitコマンドの失敗
    """
    url = url or source.clone_url
    logger.info(f"Fetching source repo: {source.repo}@{source.branch} from {url}")

    # 既存ディレクトリの処理
    if dest.exists():
        if force:
            logger.warning(f"Removing existing directory: {dest}")
            shutil.rmtree(dest)
        elif not (dest / ".git").exists():
            logger.warning(f"Existing path is not a git repo, recreating: {dest}")
            shutil.rmtree(dest)
        else:
            logger.info(f"Updating existing repo: {dest}")
            _git(
                ["fetch", "--prune", "origin", f"+refs/heads/{source.branch}:refs/remotes/origin/{source.branch}"],
                cwd=dest,
            )
            _git(["checkout", "-B", source.branch, f"origin/{source.branch}"], cwd=dest)
            _git(["reset", "--hard", f"origin/{source.branch}"], cwd=dest)
            return read_commit_info(dest)

    dest.parent.mkdir(parents=True, exist_ok=True)
    _git(["clone", "--branch", source.branch, "--single-branch", url, str(dest)])

    commit = read_commit_info(dest)
    logger.info(f"Cloned {source.repo} at commit {commit.short_hash}")
    return commit
