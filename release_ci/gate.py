"""ビルド要否の判定（最新リリースタグとソースのcommit hashを比較）."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from loguru import logger

from release_ci.exceptions import ReleaseLookupError


class BuildReason(str, Enum):
    FORCE_BUILD = "force_build"
    FIRST_RELEASE = "first_release"
    CODE_CHANGES = "code_changes"
    NO_CHANGES = "no_changes"
    API_FAILURE_FALLBACK = "api_failure_fallback"


@dataclass(frozen=True)
class BuildDecision:
    build_needed: bool
    is_first_release: bool
    build_reason: BuildReason
    current_hash: str
    latest_tag: str | None = None


def _lookup_with_retry(
    lookup: Callable[[], str | None],
    retry_count: int,
    retry_delay: float,
    sleep: Callable[[float], None],
) -> str | None:
    """一時的な失敗をretry_count回までリトライして最新リリースタグを取得.

    Args:
        lookup: 最新タグを返す関数（リリースなしはNone、一時的失敗はReleaseLookupError）
        retry_count: 最大試行回数（1未満は1として扱う）
        retry_delay: 試行間の待機秒数
        sleep: 待機関数

    Returns:
        最新リリースタグ、リリースが存在しなければNone

    Raises:
        ReleaseLookupError: 全試行が失敗した場合（最後のエラー）
    """
    attempts = max(1, retry_count)
    attempt = 1
    while True:
        logger.info(f"Fetching latest release (attempt {attempt}/{attempts})...")
        try:
            tag = lookup()
        except ReleaseLookupError as e:
            logger.warning(f"Release lookup failed: {e}")
            if attempt >= attempts:
                raise
            logger.info(f"Retrying in {retry_delay} seconds...")
            sleep(retry_delay)
            attempt += 1
            continue

        if tag is None:
            logger.info("No releases found (404) - this will be the first release")
        else:
            logger.info(f"Fetched latest release tag: {tag}")
        return tag


def evaluate_build_gate(
    force: bool,
    current_hash: str,
    lookup: Callable[[], str | None],
    retry_count: int = 3,
    retry_delay: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildDecision:
    """強制フラグ・最新リリースタグ・現在のcommit hashからビルド要否を判定.

    判定は上から順に最初に一致したものを採用する:
    force_build → api_failure_fallback → first_release → code_changes → no_changes

    Args:
        force: 強制ビルドフラグ（Trueならlookupを呼ばない）
        current_hash: 追跡ブランチ最新commitのshort hash
        lookup: 最新リリースタグの取得関数
        retry_count: lookupの最大試行回数
        retry_delay: lookup再試行までの秒数
        sleep: 待機関数（テスト用に差し替え可能）

    Returns:
        BuildDecision
    """
    if force:
        logger.info("Force build requested via workflow dispatch")
        return BuildDecision(True, False, BuildReason.FORCE_BUILD, current_hash)

    try:
        latest_tag = _lookup_with_retry(lookup, retry_count, retry_delay, sleep)
    except ReleaseLookupError:
        # フェイルオープン
        logger.error(f"Failed to fetch latest release after {max(1, retry_count)} attempts")
        logger.warning("Proceeding with build as fallback")
        return BuildDecision(True, False, BuildReason.API_FAILURE_FALLBACK, current_hash)

    logger.info(f"Comparison: latest release tag={latest_tag or 'none'}, current hash={current_hash}")

    if latest_tag is None:
        logger.info("No previous releases found - building first release")
        return BuildDecision(True, True, BuildReason.FIRST_RELEASE, current_hash)

    if latest_tag != current_hash:
        logger.info(f"Build needed: latest tag ({latest_tag}) != current hash ({current_hash})")
        return BuildDecision(True, False, BuildReason.CODE_CHANGES, current_hash, latest_tag)

    logger.info("Build not needed: latest tag matches current hash")
    return BuildDecision(False, False, BuildReason.NO_CHANGES, current_hash, latest_tag)
