import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

import orjson
import sentry_sdk

from bundle_size.bundle_analysis.models import BundleSnapshot, RouteStat
from bundle_size.bundle_analysis.utils import StrPath, aggregate_size, file_size
from bundle_size.helpers.size import format_bytes
from bundle_size.metrics import Counter, inc_counter

log = logging.getLogger(__name__)

# App Router builds write app-build-manifest.json,
# Pages Router builds write build-manifest.json
DEFAULT_MANIFEST_NAMES = ("app-build-manifest.json", "build-manifest.json")
DEFAULT_ROUTES_KEYS = ("pages", "routes")
DEFAULT_STATIC_DIR = "static"

ANALYZER_RUN_COUNTER = Counter(
    "bundle_size_analyzer_runs",
    "Number of build analyses, by result",
    ["result"],
)

MISSING_ASSET_COUNTER = Counter(
    "bundle_size_missing_assets",
    "Number of manifest assets that were not found on disk",
)


class BundleNotBuiltError(Exception):
    """
    There is no usable build manifest, so there is nothing to measure.
    """

    def __init__(self, manifest_path: StrPath, reason: str):
        super().__init__(manifest_path, reason)
        self.manifest_path = os.fspath(manifest_path)
        self.reason = reason

    def __str__(self) -> str:
        return (
            f"Bundle not built: {self.reason} "
            f"(expected manifest at {self.manifest_path})"
        )


class ManifestAnalyzer:
    """
    Measures a build output directory using the route -> assets mapping of its
    build manifest.
    """

    def __init__(
        self,
        manifest_names: Sequence[str] = DEFAULT_MANIFEST_NAMES,
        routes_keys: Sequence[str] = DEFAULT_ROUTES_KEYS,
        static_dir: str = DEFAULT_STATIC_DIR,
    ):
        if not manifest_names:
            raise ValueError("At least one manifest name is required")
        self.manifest_names = tuple(manifest_names)
        self.routes_keys = tuple(routes_keys)
        self.static_dir = static_dir

    def find_manifest(self, build_output_root: Path) -> Optional[Path]:
        for name in self.manifest_names:
            candidate = build_output_root / name
            if candidate.is_file():
                return candidate
        return None

    def load_manifest(self, build_output_root: Path) -> dict:
        manifest_path = self.find_manifest(build_output_root)
        if manifest_path is None:
            expected = build_output_root / self.manifest_names[0]
            log.warning(
                "Build manifest not found. Make sure the build has completed",
                extra=dict(
                    expected_path=str(expected),
                    manifest_names=list(self.manifest_names),
                ),
            )
            raise BundleNotBuiltError(expected, "manifest not found")
        try:
            manifest = orjson.loads(manifest_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            log.warning(
                "Build manifest could not be parsed",
                extra=dict(manifest_path=str(manifest_path), error=str(exc)),
            )
            raise BundleNotBuiltError(manifest_path, f"unparsable manifest: {exc}")
        if not isinstance(manifest, dict):
            raise BundleNotBuiltError(manifest_path, "manifest is not a JSON object")
        log.info(
            "Build manifest loaded", extra=dict(manifest_path=str(manifest_path))
        )
        return manifest

    def _routes_from_manifest(self, manifest: dict) -> Dict[str, object]:
        for key in self.routes_keys:
            routes = manifest.get(key)
            if isinstance(routes, dict):
                return routes
        return {}

    def measure_route(
        self, build_output_root: Path, route: str, assets: Iterable[str]
    ) -> RouteStat:
        size, found_files, listed_files = 0, 0, 0
        for asset in assets:
            if not isinstance(asset, str):
                continue
            listed_files += 1
            # manifest paths are relative to the build output, even with a leading "/"
            asset_path = build_output_root / asset.lstrip("/")
            asset_size, found = file_size(asset_path)
            if found:
                size += asset_size
                found_files += 1
                log.debug(
                    "Found asset",
                    extra=dict(route=route, asset=asset, size=asset_size),
                )
            else:
                inc_counter(MISSING_ASSET_COUNTER)
                log.debug(
                    "Missing asset",
                    extra=dict(route=route, asset=asset, expected_path=str(asset_path)),
                )
        log.info(
            f"{route}: {format_bytes(size)} ({found_files}/{listed_files} files found)",
            extra=dict(
                route=route,
                size=size,
                found_files=found_files,
                listed_files=listed_files,
            ),
        )
        return RouteStat(size=size, files=found_files)

    @sentry_sdk.trace
    def analyze(self, build_output_root: StrPath) -> BundleSnapshot:
        """
        Produces the `BundleSnapshot` of a build output directory (`.next`).

        Raises:
            BundleNotBuiltError: the manifest is missing or unparsable
        """
        build_output_root = Path(build_output_root)
        log.info(
            "Starting bundle analysis",
            extra=dict(build_output_root=str(build_output_root)),
        )
        try:
            manifest = self.load_manifest(build_output_root)
        except BundleNotBuiltError:
            inc_counter(ANALYZER_RUN_COUNTER, labels=dict(result="not_built"))
            raise

        route_assets = self._routes_from_manifest(manifest)
        if not route_assets:
            log.warning(
                "No routes found in build manifest. "
                "This might indicate an incomplete build",
                extra=dict(build_output_root=str(build_output_root)),
            )
        else:
            log.info(
                f"Found {len(route_assets)} routes in build manifest",
                extra=dict(route_count=len(route_assets)),
            )

        routes = {}
        for route, assets in route_assets.items():
            if not isinstance(assets, list):
                log.warning(
                    "Route has no asset list in build manifest",
                    extra=dict(route=route, value_type=type(assets).__name__),
                )
                assets = []
            routes[route] = self.measure_route(build_output_root, route, assets)

        total_size = aggregate_size(build_output_root / self.static_dir)
        snapshot = BundleSnapshot(
            routes=routes,
            total_size=total_size,
            timestamp=datetime.now(timezone.utc),
        )
        inc_counter(ANALYZER_RUN_COUNTER, labels=dict(result="success"))
        log.info(
            "Finished bundle analysis",
            extra=dict(
                build_output_root=str(build_output_root),
                route_count=len(routes),
                total_size=total_size,
            ),
        )
        return snapshot
