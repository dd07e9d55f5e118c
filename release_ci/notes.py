"""Release title and body generator."""

from __future__ import annotations

from release_ci.fetcher import CommitInfo
from release_ci.gate import BuildDecision


def release_title(template: str, commit: CommitInfo) -> str:
    return template.format(
        short_hash=commit.short_hash,
        full_hash=commit.full_hash,
        commit_date=commit.commit_date,
    )


def generate_release_body(source_repo: str, commit: CommitInfo, decision: BuildDecision) -> str:
    lines = [
        "📱 **Build Information:**",
        f"- **Commit Hash:** [`{commit.short_hash}`]({commit.commit_url(source_repo)})",
        f"- **Commit Date:** {commit.commit_date}",
        f"- **Build Reason:** {decision.build_reason.value}",
        "",
        "📦 **Downloads:**",
        "APK files are attached to this release. Choose the appropriate variant for your device.",
        "",
    ]
    return "\n".join(lines)
