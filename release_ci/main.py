"""CI orchestrator: fetch source, decide whether to build, build signed APKs, and publish a release."""

from __future__ import annotations

import argparse
import os
import sys
import time
from pathlib import Path
from typing import Callable, Mapping

from loguru import logger

from release_ci.config import DEFAULT_CONFIG_PATH, PipelineConfig, load_pipeline_config
from release_ci.exceptions import ConfigError, ReleaseCIError
from release_ci.fetcher import CommitInfo, fetch_source_repo
from release_ci.gate import BuildDecision, evaluate_build_gate
from release_ci.github import GitHubReleases
from release_ci.gradle import collect_artifacts, run_gradle_build
from release_ci.notes import generate_release_body, release_title
from release_ci.outputs import commit_outputs, decision_outputs, write_outputs
from release_ci.publisher import publish_release
from release_ci.signing import SigningSecrets, keystore_file
from release_ci.summary import RunContext, emit_summary, render_summary


def _env_path(environ: Mapping[str, str], name: str) -> Path | None:
    value = environ.get(name)
    return Path(value) if value else None


def _env_flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() == "true"


def _release_client(config: PipelineConfig) -> GitHubReleases:
    if not config.release_repo:
        raise ConfigError("GITHUB_REPOSITORY is not set; cannot look up releases")
    return GitHubReleases(config.release_repo, config.token, timeout=config.api.timeout)


def _build_and_publish(
    config: PipelineConfig,
    work_dir: Path,
    source_dir: Path,
    commit: CommitInfo,
    decision: BuildDecision,
    client: GitHubReleases,
    environ: Mapping[str, str],
) -> None:
    secrets = SigningSecrets.from_env(environ)
    secrets.require()

    with keystore_file(secrets, work_dir / config.build.keystore_path) as keystore:
        run_gradle_build(
            source_dir,
            keystore,
            secrets,
            task=config.build.task,
            extra_args=config.build.gradle_args,
        )

    artifacts = collect_artifacts(work_dir, config.release.artifacts)
    publish_release(
        client,
        tag=commit.short_hash,
        name=release_title(config.release.name, commit),
        body=generate_release_body(config.source.repo, commit, decision),
        artifacts=artifacts,
        draft=config.release.draft,
        prerelease=config.release.prerelease,
    )


def orchestrate(
    config: PipelineConfig,
    work_dir: Path,
    force: bool = False,
    dry_run: bool = False,
    environ: Mapping[str, str] | None = None,
    client: GitHubReleases | None = None,
    source_url: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildDecision:
    """Run the pipeline once, strictly in order.

    fetch source -> gate -> (secrets -> keystore -> gradle -> artifacts -> release).
    The build summary is emitted even when a step fails.

    Raises:
        ReleaseCIError: any fatal step failure.
    """
    environ = os.environ if environ is None else environ
    work_dir = Path(work_dir)
    source_dir = work_dir / config.source.path
    output_path = _env_path(environ, "GITHUB_OUTPUT")

    commit: CommitInfo | None = None
    decision: BuildDecision | None = None
    succeeded = False
    owns_client = client is None

    try:
        commit = fetch_source_repo(config.source, source_dir, url=source_url)
        write_outputs(commit_outputs(commit), output_path)

        if client is None:
            client = _release_client(config)

        logger.info("Checking if build is needed...")
        decision = evaluate_build_gate(
            force=force,
            current_hash=commit.short_hash,
            lookup=client.get_latest_release_tag,
            retry_count=config.api.retry_count,
            retry_delay=config.api.retry_delay,
            sleep=sleep,
        )
        write_outputs(decision_outputs(decision), output_path)

        if not decision.build_needed:
            logger.info(f"Skipping build ({decision.build_reason.value})")
        elif dry_run:
            logger.info(f"Dry run: build would run ({decision.build_reason.value})")
        else:
            _build_and_publish(config, work_dir, source_dir, commit, decision, client, environ)
        succeeded = True
        return decision
    finally:
        if owns_client and client is not None:
            client.close()
        emit_summary(
            render_summary(
                RunContext.from_env(environ),
                config.source,
                commit,
                decision,
                succeeded=succeeded,
                dry_run=dry_run,
            ),
            _env_path(environ, "GITHUB_STEP_SUMMARY"),
        )


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Build and release signed APKs when the tracked source changes")
    p.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="pipeline.yml path",
    )
    p.add_argument(
        "--work-dir",
        type=Path,
        default=Path.cwd(),
        help="working directory for the source checkout, keystore and artifacts (default: cwd)",
    )
    p.add_argument(
        "--force",
        action="store_true",
        help="Force build even if no changes detected (also FORCE_BUILD=true)",
    )
    p.add_argument("--dry-run", action="store_true", help="Stop after the build decision")
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log level",
    )

    args = p.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        config = load_pipeline_config(args.config)
        orchestrate(
            config,
            work_dir=args.work_dir,
            force=args.force or _env_flag(os.environ, "FORCE_BUILD"),
            dry_run=args.dry_run,
        )
    except ReleaseCIError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
