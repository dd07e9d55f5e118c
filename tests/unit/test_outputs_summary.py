"""Unit tests for step outputs, release notes and the build summary."""

from __future__ import annotations

from pathlib import Path

from release_ci.config import SourceConfig
from release_ci.fetcher import CommitInfo
from release_ci.gate import BuildDecision, BuildReason
from release_ci.notes import generate_release_body, release_title
from release_ci.outputs import commit_outputs, decision_outputs, write_outputs
from release_ci.summary import RunContext, render_summary

COMMIT = CommitInfo(
    short_hash="f9e8d7c",
    full_hash="f9e8d7c0123456789abcdef0123456789abcdef",
    commit_date="2026-10-18 09:00:00 +0000",
)
SOURCE = SourceConfig(repo="FongMi/TV", branch="release")
CONTEXT = RunContext(
    repository="me/apk-releases",
    workflow="Build",
    run_id="123",
    event_name="schedule",
    runner_os="Linux",
)


class TestOutputs:
    def test_appends_to_github_output(self, tmp_path: Path) -> None:
        """$GITHUB_OUTPUTにkey=value形式で追記し、boolは小文字になること."""
        output = tmp_path / "github_output"
        output.write_text("existing=1\n", encoding="utf-8")
        decision = BuildDecision(True, True, BuildReason.FIRST_RELEASE, "f9e8d7c")

        write_outputs(decision_outputs(decision), output)
        write_outputs(commit_outputs(COMMIT), output)

        assert output.read_text(encoding="utf-8").splitlines() == [
            "existing=1",
            "build_needed=true",
            "is_first_release=true",
            "build_reason=first_release",
            "short_hash=f9e8d7c",
            f"full_hash={COMMIT.full_hash}",
            "commit_date=2026-10-18 09:00:00 +0000",
        ]

    def test_without_output_file(self) -> None:
        write_outputs({"build_needed": False}, None)


class TestReleaseNotes:
    def test_title(self) -> None:
        assert release_title("FongMi TV APK Release {short_hash}", COMMIT) == "FongMi TV APK Release f9e8d7c"

    def test_body(self) -> None:
        """本文にcommitリンク・日時・ビルド理由が含まれること."""
        decision = BuildDecision(True, False, BuildReason.CODE_CHANGES, "f9e8d7c", "a1b2c3d")

        body = generate_release_body("FongMi/TV", COMMIT, decision)

        assert f"[`f9e8d7c`](https://github.com/FongMi/TV/commit/{COMMIT.full_hash})" in body
        assert "**Commit Date:** 2026-10-18 09:00:00 +0000" in body
        assert "**Build Reason:** code_changes" in body


class TestSummary:
    def test_skipped(self) -> None:
        decision = BuildDecision(False, False, BuildReason.NO_CHANGES, "f9e8d7c", "f9e8d7c")

        summary = render_summary(CONTEXT, SOURCE, COMMIT, decision, succeeded=True)

        assert "Status: ⏭️ Build Skipped" in summary
        assert "Reason: no_changes" in summary
        assert "Release:" not in summary

    def test_first_release_created(self) -> None:
        decision = BuildDecision(True, True, BuildReason.FIRST_RELEASE, "f9e8d7c")

        summary = render_summary(CONTEXT, SOURCE, COMMIT, decision, succeeded=True)

        assert "Status: ✅ Build Executed" in summary
        assert "Type: 🎉 First Release" in summary
        assert "Release: ✅ Created Successfully" in summary
        assert "Tag: f9e8d7c" in summary

    def test_failed_release(self) -> None:
        decision = BuildDecision(True, False, BuildReason.CODE_CHANGES, "f9e8d7c", "a1b2c3d")

        summary = render_summary(CONTEXT, SOURCE, COMMIT, decision, succeeded=False)

        assert "Type: 📦 Update Release" in summary
        assert "Release: ❌ Failed to Create" in summary

    def test_failure_before_decision(self) -> None:
        summary = render_summary(CONTEXT, SOURCE, None, None, succeeded=False)

        assert "Failed before build decision" in summary
        assert "Short Hash" not in summary

    def test_context_from_env(self) -> None:
        context = RunContext.from_env({"GITHUB_REPOSITORY": "me/r", "GITHUB_EVENT_NAME": "workflow_dispatch"})

        assert context.repository == "me/r"
        assert context.event_name == "workflow_dispatch"
        assert context.run_id == "-"
