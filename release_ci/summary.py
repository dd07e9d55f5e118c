"""Build summary for the job log and $GITHUB_STEP_SUMMARY."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from loguru import logger

from release_ci.config import SourceConfig
from release_ci.fetcher import CommitInfo
from release_ci.gate import BuildDecision


@dataclass(frozen=True)
class RunContext:
    repository: str
    workflow: str
    run_id: str
    event_name: str
    runner_os: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> RunContext:
        return cls(
            repository=environ.get("GITHUB_REPOSITORY", "local"),
            workflow=environ.get("GITHUB_WORKFLOW", "local"),
            run_id=environ.get("GITHUB_RUN_ID", "-"),
            event_name=environ.get("GITHUB_EVENT_NAME", "manual"),
            runner_os=environ.get("RUNNER_OS", "-"),
        )


def render_summary(
    context: RunContext,
    source: SourceConfig,
    commit: CommitInfo | None,
    decision: BuildDecision | None,
    succeeded: bool,
    dry_run: bool = False,
) -> str:
    lines = [
        "## 📋 Build Summary",
        "",
        "**🏗️ Workflow Information:**",
        f"- Repository: {context.repository}",
        f"- Workflow: {context.workflow}",
        f"- Run ID: {context.run_id}",
        f"- Trigger: {context.event_name}",
        f"- Runner OS: {context.runner_os}",
        "",
        "**📊 Source Code Information:**",
        f"- Source Repository: {source.repo}",
        f"- Source Branch: {source.branch}",
    ]
    if commit is not None:
        lines += [
            f"- Short Hash: {commit.short_hash}",
            f"- Full Hash: {commit.full_hash}",
            f"- Commit Date: {commit.commit_date}",
        ]

    lines += ["", "**🚀 Build Status:**"]
    if decision is None:
        lines.append("- Status: ❌ Failed before build decision")
    elif decision.build_needed and dry_run:
        lines.append("- Status: 🧪 Dry Run (build would run)")
        lines.append(f"- Reason: {decision.build_reason.value}")
    elif decision.build_needed:
        lines.append("- Status: ✅ Build Executed")
        lines.append(f"- Reason: {decision.build_reason.value}")
        lines.append("- Type: 🎉 First Release" if decision.is_first_release else "- Type: 📦 Update Release")
        if succeeded:
            lines.append("- Release: ✅ Created Successfully")
            lines.append(f"- Tag: {decision.current_hash}")
        else:
            lines.append("- Release: ❌ Failed to Create")
    else:
        lines.append("- Status: ⏭️ Build Skipped")
        lines.append(f"- Reason: {decision.build_reason.value}")

    return "\n".join(lines) + "\n"


def emit_summary(summary: str, summary_path: Path | None) -> None:
    for line in summary.splitlines():
        if line:
            logger.info(line)
    if summary_path is not None:
        with open(summary_path, "a", encoding="utf-8") as f:
            f.write(summary)
