from bundle_size.bundle_analysis.analyzer import BundleNotBuiltError, ManifestAnalyzer
from bundle_size.bundle_analysis.checkout import (
    CheckoutRestoreError,
    CommandError,
    temporary_checkout,
)
from bundle_size.bundle_analysis.comment import (
    BUNDLE_SIZE_COMMENT_MARKER,
    render_comment,
)
from bundle_size.bundle_analysis.comparison import (
    BundleSnapshotComparison,
    ChangeDirection,
    ComparisonMode,
    RouteChange,
    TotalChange,
    compare_snapshots,
    is_significant,
)
from bundle_size.bundle_analysis.models import (
    BundleSnapshot,
    InvalidSnapshotError,
    RouteStat,
)
from bundle_size.bundle_analysis.notify import (
    CommentPublisher,
    PublishAction,
    PublishResult,
)
from bundle_size.bundle_analysis.runner import (
    BundleSizeCheckResult,
    RunOutcome,
    build_snapshot_store,
    run_bundle_size_check,
)
from bundle_size.bundle_analysis.storage import (
    BaseSnapshotStore,
    IssueSnapshotStore,
    RebuildSnapshotStore,
    StoragePaths,
    StorageSnapshotStore,
)
from bundle_size.bundle_analysis.utils import aggregate_size, file_size

__all__ = [
    "BUNDLE_SIZE_COMMENT_MARKER",
    "BaseSnapshotStore",
    "BundleNotBuiltError",
    "BundleSizeCheckResult",
    "BundleSnapshot",
    "BundleSnapshotComparison",
    "ChangeDirection",
    "CheckoutRestoreError",
    "CommandError",
    "CommentPublisher",
    "ComparisonMode",
    "InvalidSnapshotError",
    "IssueSnapshotStore",
    "ManifestAnalyzer",
    "PublishAction",
    "PublishResult",
    "RebuildSnapshotStore",
    "RouteChange",
    "RouteStat",
    "RunOutcome",
    "StoragePaths",
    "StorageSnapshotStore",
    "TotalChange",
    "aggregate_size",
    "build_snapshot_store",
    "compare_snapshots",
    "file_size",
    "is_significant",
    "render_comment",
    "run_bundle_size_check",
    "temporary_checkout",
]
