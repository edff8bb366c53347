import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from bundle_size.bundle_analysis.analyzer import ManifestAnalyzer
from bundle_size.bundle_analysis.comment import (
    BUNDLE_SIZE_COMMENT_MARKER,
    render_comment,
)
from bundle_size.bundle_analysis.comparison import (
    DEFAULT_SIGNIFICANCE_THRESHOLD,
    BundleSnapshotComparison,
    compare_snapshots,
)
from bundle_size.bundle_analysis.models import BundleSnapshot
from bundle_size.bundle_analysis.notify import CommentPublisher, PublishResult
from bundle_size.bundle_analysis.storage import (
    BaseSnapshotStore,
    IssueSnapshotStore,
    RebuildSnapshotStore,
    StorageSnapshotStore,
)
from bundle_size.config import get_config
from bundle_size.storage import get_appropriate_storage_service
from bundle_size.torngit.base import TorngitBaseAdapter
from bundle_size.torngit.exceptions import TorngitError
from bundle_size.validation.helpers import ByteSizeSchemaField, Invalid
from bundle_size.validation.install import COMMENT_STRATEGIES

log = logging.getLogger(__name__)


class RunOutcome(Enum):
    SKIPPED = "skipped"
    SNAPSHOT_SAVED = "snapshot_saved"
    SNAPSHOT_SAVE_FAILED = "snapshot_save_failed"
    SKIPPED_INSIGNIFICANT = "skipped_insignificant"
    RENDERED = "rendered"
    PUBLISHED = "published"
    PUBLISH_FAILED = "publish_failed"


@dataclass
class BundleSizeCheckResult:
    outcome: RunOutcome
    current: BundleSnapshot
    comparison: Optional[BundleSnapshotComparison] = None
    body: Optional[str] = None
    significant: Optional[bool] = None
    publish_result: Optional[PublishResult] = None


def _coerce_threshold(threshold) -> int:
    # config that failed validation reaches us un-coerced, e.g. "2kb"
    try:
        threshold = ByteSizeSchemaField().validate(threshold)
    except Invalid as exc:
        log.warning(
            "Invalid significance threshold, using the default",
            extra=dict(
                threshold=repr(threshold),
                default=DEFAULT_SIGNIFICANCE_THRESHOLD,
                error=exc.error_message,
            ),
        )
        return DEFAULT_SIGNIFICANCE_THRESHOLD
    if threshold < 0:
        log.warning(
            "Negative significance threshold, using the default",
            extra=dict(threshold=threshold, default=DEFAULT_SIGNIFICANCE_THRESHOLD),
        )
        return DEFAULT_SIGNIFICANCE_THRESHOLD
    return threshold


def build_snapshot_store(
    strategy: Optional[str] = None,
    *,
    working_directory: Optional[str | os.PathLike] = None,
    repository_service: Optional[TorngitBaseAdapter] = None,
    repo_key: Optional[str] = None,
    analyzer: Optional[ManifestAnalyzer] = None,
) -> BaseSnapshotStore:
    strategy = strategy or get_config(
        "bundle_size", "snapshot_store", default="rebuild"
    )
    if strategy == "storage":
        repo_key = repo_key or get_config("bundle_size", "repo_key", default="default")
        return StorageSnapshotStore(get_appropriate_storage_service(), repo_key)
    if strategy == "issue":
        if repository_service is None:
            raise ValueError("The issue snapshot store needs a repository service")
        return IssueSnapshotStore(repository_service)
    if strategy == "rebuild":
        return RebuildSnapshotStore(
            working_directory
            or get_config("bundle_size", "working_directory", default="."),
            analyzer=analyzer,
            build_directory=get_config(
                "bundle_size", "build_directory", default=".next"
            ),
            install_command=get_config(
                "bundle_size", "install_command", default="npm ci"
            ),
            install_args=get_config(
                "bundle_size", "install_args", default="--legacy-peer-deps"
            ),
            build_command=get_config(
                "bundle_size", "build_command", default="npm run build"
            ),
        )
    raise ValueError(f"Unknown snapshot store strategy: {strategy}")


async def run_bundle_size_check(
    *,
    store: BaseSnapshotStore,
    publisher: Optional[CommentPublisher] = None,
    pullid: Optional[str] = None,
    branch: Optional[str] = None,
    working_directory: Optional[str | os.PathLike] = None,
    build_directory: Optional[str] = None,
    base_branch: Optional[str] = None,
    threshold: Optional[int] = None,
    comment_strategy: Optional[str] = None,
    analyzer: Optional[ManifestAnalyzer] = None,
) -> BundleSizeCheckResult:
    """
    Measures the current build and, for a pull request, compares it with the base
    snapshot and publishes the report.

    Only a current build that can't be analyzed is fatal (`BundleNotBuiltError`
    propagates). A missing base degrades the report to current sizes only, and
    storage or publishing failures are logged and reported in the result.
    """
    working_directory = Path(
        working_directory
        or get_config("bundle_size", "working_directory", default=".")
    )
    build_directory = build_directory or get_config(
        "bundle_size", "build_directory", default=".next"
    )
    base_branch = base_branch or get_config(
        "bundle_size", "base_branch", default="main"
    )
    if threshold is None:
        threshold = get_config(
            "bundle_size", "threshold", default=DEFAULT_SIGNIFICANCE_THRESHOLD
        )
    threshold = _coerce_threshold(threshold)
    comment_strategy = comment_strategy or get_config(
        "bundle_size", "comment_strategy", default="always"
    )
    if comment_strategy not in COMMENT_STRATEGIES:
        raise ValueError(f"Unknown comment strategy: {comment_strategy}")
    analyzer = analyzer or ManifestAnalyzer()

    log.info(
        "Running bundle size check",
        extra=dict(
            working_directory=str(working_directory),
            pullid=pullid,
            branch=branch,
            base_branch=base_branch,
        ),
    )
    current = analyzer.analyze(working_directory / build_directory)

    if pullid is None:
        # push builds record the snapshot future pull requests compare against
        if branch is None:
            log.info("Not a pull request and no branch given, nothing to do")
            return BundleSizeCheckResult(outcome=RunOutcome.SKIPPED, current=current)
        try:
            await store.save(branch, current)
        except TorngitError as exc:
            log.error(
                "Could not save bundle snapshot. "
                "Make sure the workflow token has 'issues: write' permission",
                extra=dict(branch=branch, error=str(exc)),
            )
            return BundleSizeCheckResult(
                outcome=RunOutcome.SNAPSHOT_SAVE_FAILED, current=current
            )
        except OSError as exc:
            log.error(
                "Could not save bundle snapshot",
                extra=dict(branch=branch, error=str(exc)),
            )
            return BundleSizeCheckResult(
                outcome=RunOutcome.SNAPSHOT_SAVE_FAILED, current=current
            )
        return BundleSizeCheckResult(outcome=RunOutcome.SNAPSHOT_SAVED, current=current)

    base = await store.load(base_branch)
    if base is None:
        log.warning(
            "Base snapshot unavailable, reporting current sizes only",
            extra=dict(base_branch=base_branch),
        )
    comparison = compare_snapshots(current, base)
    significant = comparison.is_significant(threshold)
    body = render_comment(comparison)
    result = BundleSizeCheckResult(
        outcome=RunOutcome.RENDERED,
        current=current,
        comparison=comparison,
        body=body,
        significant=significant,
    )

    if comment_strategy == "skip-insignificant" and not significant:
        log.info(
            "No significant changes detected, skipping comment",
            extra=dict(
                total_size_delta=comparison.total_size_delta, threshold=threshold
            ),
        )
        result.outcome = RunOutcome.SKIPPED_INSIGNIFICANT
        return result

    if publisher is None:
        return result

    publish_result = await publisher.publish(pullid, body, BUNDLE_SIZE_COMMENT_MARKER)
    result.publish_result = publish_result
    if publish_result.success:
        result.outcome = RunOutcome.PUBLISHED
    else:
        log.warning(
            "Could not post bundle size comment, but analysis completed successfully",
            extra=dict(pullid=pullid),
        )
        result.outcome = RunOutcome.PUBLISH_FAILED
    return result
