"""GitHub Actions step outputs ($GITHUB_OUTPUT)."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from loguru import logger

from release_ci.fetcher import CommitInfo
from release_ci.gate import BuildDecision


def _render(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def decision_outputs(decision: BuildDecision) -> dict[str, object]:
    return {
        "build_needed": decision.build_needed,
        "is_first_release": decision.is_first_release,
        "build_reason": decision.build_reason.value,
    }


def commit_outputs(commit: CommitInfo) -> dict[str, object]:
    return {
        "short_hash": commit.short_hash,
        "full_hash": commit.full_hash,
        "commit_date": commit.commit_date,
    }


def write_outputs(values: Mapping[str, object], output_path: Path | None) -> None:
    """key=value 行を $GITHUB_OUTPUT に追記（未設定ならログ出力のみ）."""
    lines = [f"{key}={_render(value)}" for key, value in values.items()]
    if output_path is None:
        for line in lines:
            logger.info(f"output: {line}")
        return

    with open(output_path, "a", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
