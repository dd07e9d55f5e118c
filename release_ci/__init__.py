"""release_ci: 上流リポジトリを追跡して署名済みAPKをビルド・リリースするCIレイヤ.

ソース取得、ビルド要否の判定、Gradleビルド、GitHubリリース作成を提供する。
"""

from release_ci.fetcher import CommitInfo, fetch_source_repo, read_commit_info
from release_ci.gate import BuildDecision, BuildReason, evaluate_build_gate
from release_ci.github import GitHubReleases
from release_ci.publisher import publish_release

__version__ = "0.1.0"

__all__ = [
    # fetcher
    "CommitInfo",
    "fetch_source_repo",
    "read_commit_info",
    # gate
    "BuildDecision",
    "BuildReason",
    "evaluate_build_gate",
    # github / publisher
    "GitHubReleases",
    "publish_release",
]
