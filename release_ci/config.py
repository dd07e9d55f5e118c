"""pipeline.yml の読み込みと環境変数による上書き."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping

import yaml
from loguru import logger

from release_ci.exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(__file__).parent / "pipeline.yml"


@dataclass(frozen=True)
class SourceConfig:
    repo: str
    branch: str = "main"
    path: str = "src"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.repo}.git"


@dataclass(frozen=True)
class ApiConfig:
    retry_count: int = 3
    retry_delay: float = 5.0
    timeout: float = 30.0


@dataclass(frozen=True)
class BuildConfig:
    task: str = "assembleRelease"
    keystore_path: str = "keystore.jks"
    gradle_args: tuple[str, ...] = ("--no-daemon", "--stacktrace")


@dataclass(frozen=True)
class ReleaseConfig:
    name: str = "Release {short_hash}"
    artifacts: tuple[str, ...] = ()
    draft: bool = False
    prerelease: bool = False


@dataclass(frozen=True)
class PipelineConfig:
    source: SourceConfig
    api: ApiConfig = field(default_factory=ApiConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    release_repo: str | None = None
    token: str | None = None


def _section(config: dict, name: str) -> dict:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section must be a mapping, got {type(value).__name__}")
    return value


def _as_int(value: object, name: str) -> int:
    try:
        result = int(str(value))
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer: {value!r}") from e
    if result < 1:
        raise ConfigError(f"{name} must be >= 1: {result}")
    return result


def _as_float(value: object, name: str) -> float:
    try:
        result = float(str(value))
    except ValueError as e:
        raise ConfigError(f"{name} must be a number: {value!r}") from e
    if result < 0:
        raise ConfigError(f"{name} must be >= 0: {result}")
    return result


def _as_bool(value: object, name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false: {value!r}")
    return value


def _as_str_tuple(value: object, name: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a list of strings")
    return tuple(value)


def parse_pipeline_config(config: dict) -> PipelineConfig:
    """YAMLから読み込んだ辞書をPipelineConfigに変換.

    Args:
        config: pipeline.ymlの内容

    Returns:
        PipelineConfig

    Raises:
        ConfigError: 必須項目の欠落や型の不一致
    """
    source = _section(config, "source")
    if not source.get("repo"):
        raise ConfigError("source.repo is required")

    api = _section(config, "api")
    build = _section(config, "build")
    release = _section(config, "release")
    draft = _as_bool(release.get("draft", False), "release.draft")
    prerelease = _as_bool(release.get("prerelease", False), "release.prerelease")
    if draft or prerelease:
        # releases/latest はドラフト・プレリリースを返さない
        raise ConfigError(
            "release.draft and release.prerelease must be false: "
            "the build gate compares against releases/latest, which ignores them"
        )

    defaults_api = ApiConfig()
    defaults_build = BuildConfig()
    defaults_release = ReleaseConfig()

    return PipelineConfig(
        source=SourceConfig(
            repo=str(source["repo"]),
            branch=str(source.get("branch", "main")),
            path=str(source.get("path", "src")),
        ),
        api=ApiConfig(
            retry_count=_as_int(api.get("retry_count", defaults_api.retry_count), "api.retry_count"),
            retry_delay=_as_float(api.get("retry_delay", defaults_api.retry_delay), "api.retry_delay"),
            timeout=_as_float(api.get("timeout", defaults_api.timeout), "api.timeout"),
        ),
        build=BuildConfig(
            task=str(build.get("task", defaults_build.task)),
            keystore_path=str(build.get("keystore_path", defaults_build.keystore_path)),
            gradle_args=_as_str_tuple(
                build.get("gradle_args", list(defaults_build.gradle_args)), "build.gradle_args"
            ),
        ),
        release=ReleaseConfig(
            name=str(release.get("name", defaults_release.name)),
            artifacts=_as_str_tuple(release.get("artifacts", []), "release.artifacts"),
            draft=draft,
            prerelease=prerelease,
        ),
    )


def apply_env_overrides(config: PipelineConfig, environ: Mapping[str, str]) -> PipelineConfig:
    """ワークフローのenvで指定された値で設定を上書き.

    SOURCE_REPO / SOURCE_BRANCH / API_RETRY_COUNT / API_RETRY_DELAY と、
    リリース先の GITHUB_REPOSITORY / GITHUB_TOKEN を反映する。
    """
    source = config.source
    if environ.get("SOURCE_REPO"):
        source = replace(source, repo=environ["SOURCE_REPO"])
    if environ.get("SOURCE_BRANCH"):
        source = replace(source, branch=environ["SOURCE_BRANCH"])

    api = config.api
    if environ.get("API_RETRY_COUNT"):
        api = replace(api, retry_count=_as_int(environ["API_RETRY_COUNT"], "API_RETRY_COUNT"))
    if environ.get("API_RETRY_DELAY"):
        api = replace(api, retry_delay=_as_float(environ["API_RETRY_DELAY"], "API_RETRY_DELAY"))

    return replace(
        config,
        source=source,
        api=api,
        release_repo=environ.get("GITHUB_REPOSITORY") or config.release_repo,
        token=environ.get("GITHUB_TOKEN") or config.token,
    )


def load_pipeline_config(
    config_path: Path = DEFAULT_CONFIG_PATH,
    environ: Mapping[str, str] | None = None,
) -> PipelineConfig:
    """pipeline.ymlを読み込み、環境変数の上書きを適用した設定を返す.

    Args:
        config_path: pipeline.ymlのパス
        environ: 環境変数（省略時はos.environ）

    Returns:
        PipelineConfig
    """
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path} must contain a mapping")

    config = apply_env_overrides(parse_pipeline_config(raw), os.environ if environ is None else environ)
    logger.info(
        f"Loaded pipeline config from {config_path}: "
        f"source={config.source.repo}@{config.source.branch}, "
        f"retries={config.api.retry_count}x{config.api.retry_delay}s"
    )
    return config
