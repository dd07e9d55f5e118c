"""Gradle build runner and artifact collection."""

from __future__ import annotations

import stat
import subprocess
from pathlib import Path
from typing import Iterable, Sequence

from loguru import logger

from release_ci.exceptions import BuildToolError
from release_ci.signing import SigningSecrets


def build_command(
    project_dir: Path,
    keystore: Path,
    secrets: SigningSecrets,
    task: str = "assembleRelease",
    extra_args: Sequence[str] = ("--no-daemon", "--stacktrace"),
) -> list[str]:
    return [
        str(project_dir / "gradlew"),
        task,
        f"-Pandroid.injected.signing.store.file={keystore.resolve()}",
        f"-Pandroid.injected.signing.store.password={secrets.store_password}",
        f"-Pandroid.injected.signing.key.alias={secrets.key_alias}",
        f"-Pandroid.injected.signing.key.password={secrets.key_password}",
        *extra_args,
    ]


def run_gradle_build(
    project_dir: Path,
    keystore: Path,
    secrets: SigningSecrets,
    task: str = "assembleRelease",
    extra_args: Sequence[str] = ("--no-daemon", "--stacktrace"),
) -> None:
    """Run the signed Gradle build in project_dir.

    Raises:
        BuildToolError: gradlew is missing or exits non-zero.
    """
    gradlew = project_dir / "gradlew"
    if not gradlew.exists():
        raise BuildToolError(f"gradlew not found in {project_dir}")

    gradlew.chmod(gradlew.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    cmd = build_command(project_dir, keystore, secrets, task=task, extra_args=extra_args)
    # signing parameters stay out of the log
    logger.info(f"Building release APKs: gradlew {task} {' '.join(extra_args)}")

    try:
        result = subprocess.run(cmd, cwd=project_dir, check=False)
    except OSError as e:
        raise BuildToolError(f"Failed to start gradlew: {e}") from e

    if result.returncode != 0:
        raise BuildToolError(f"gradlew {task} failed with exit code {result.returncode}", result.returncode)

    logger.info("APK build completed successfully")


def collect_artifacts(root: Path, patterns: Iterable[str]) -> list[Path]:
    """Expand artifact globs relative to root (sorted, without duplicates)."""
    found: set[Path] = set()
    for pattern in patterns:
        matches = [p for p in root.glob(pattern) if p.is_file()]
        if not matches:
            logger.warning(f"Pattern does not match any files: {pattern}")
        found.update(matches)

    artifacts = sorted(found)
    for path in artifacts:
        logger.info(f"Artifact: {path.relative_to(root)}")
    return artifacts
