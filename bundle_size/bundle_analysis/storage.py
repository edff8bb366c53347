import asyncio
import logging
import os
import re
import shlex
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import List, Optional

import sentry_sdk

from bundle_size.bundle_analysis.analyzer import BundleNotBuiltError, ManifestAnalyzer
from bundle_size.bundle_analysis.checkout import (
    CheckoutRestoreError,
    CommandError,
    run_command,
    temporary_checkout,
)
from bundle_size.bundle_analysis.models import BundleSnapshot, InvalidSnapshotError
from bundle_size.config import get_config
from bundle_size.storage.base import BaseStorageService
from bundle_size.storage.exceptions import FileNotInStorageError
from bundle_size.torngit.base import TorngitBaseAdapter
from bundle_size.torngit.exceptions import TorngitError

log = logging.getLogger(__name__)


def get_bucket_name() -> str:
    return get_config("bundle_size", "bucket_name", default="bundle-size")


class StoragePaths(Enum):
    bundle_snapshot = "v1/repos/{repo_key}/{snapshot_key}/bundle_snapshot.json"

    def path(self, **kwargs):
        return self.value.format(**kwargs)


class BaseSnapshotStore(ABC):
    """
    Where the base snapshot of a comparison comes from.

    `load` returns None when there is no usable snapshot for the key. Missing or
    malformed records are expected (first run on a branch) and never raise.
    """

    @abstractmethod
    async def load(self, key: str) -> Optional[BundleSnapshot]:
        raise NotImplementedError()

    @abstractmethod
    async def save(self, key: str, snapshot: BundleSnapshot) -> None:
        raise NotImplementedError()


class StorageSnapshotStore(BaseSnapshotStore):
    """
    Loads and saves snapshots into the underlying storage service, one record per
    key (branch name), overwritten on every save.
    """

    def __init__(self, storage_service: BaseStorageService, repo_key: str):
        self.storage_service = storage_service
        self.repo_key = repo_key
        self.bucket_name = get_bucket_name()

    def _path(self, key: str) -> str:
        return StoragePaths.bundle_snapshot.path(
            repo_key=self.repo_key, snapshot_key=key
        )

    @sentry_sdk.trace
    async def load(self, key: str) -> Optional[BundleSnapshot]:
        path = self._path(key)
        try:
            data = self.storage_service.read_file(self.bucket_name, path)
        except FileNotInStorageError:
            log.info(
                "No stored bundle snapshot",
                extra=dict(key=key, bucket=self.bucket_name, path=path),
            )
            return None
        except OSError as exc:
            log.warning(
                "Could not read stored bundle snapshot",
                extra=dict(
                    key=key, bucket=self.bucket_name, path=path, error=str(exc)
                ),
            )
            return None
        try:
            return BundleSnapshot.deserialize(data)
        except InvalidSnapshotError as exc:
            log.warning(
                "Stored bundle snapshot is malformed, ignoring it",
                extra=dict(key=key, path=path, error=str(exc)),
            )
            return None

    async def save(self, key: str, snapshot: BundleSnapshot) -> None:
        path = self._path(key)
        self.storage_service.write_file(self.bucket_name, path, snapshot.serialize())
        log.info(
            "Saved bundle snapshot",
            extra=dict(key=key, bucket=self.bucket_name, path=path),
        )


SNAPSHOT_ISSUE_LABEL = "bundle-size-snapshot"
SNAPSHOT_ISSUE_MARKER = "<!-- BUNDLE-SIZE-SNAPSHOT -->"
_snapshot_block_re = re.compile(r"```json\n(?P<record>.*?)\n```", re.DOTALL)


class IssueSnapshotStore(BaseSnapshotStore):
    """
    Keeps one labelled issue per key in the repository, its body holding the JSON
    snapshot. Useful when the CI has no storage that outlives a run.
    """

    def __init__(
        self,
        repository_service: TorngitBaseAdapter,
        label: str = SNAPSHOT_ISSUE_LABEL,
    ):
        self.repository_service = repository_service
        self.label = label

    @staticmethod
    def issue_title(key: str) -> str:
        return f"Bundle size snapshot: {key}"

    @staticmethod
    def issue_body(snapshot: BundleSnapshot) -> str:
        record = snapshot.serialize().decode()
        return "\n".join(
            [
                SNAPSHOT_ISSUE_MARKER,
                "Stored bundle size snapshot. "
                "Edited automatically, do not change by hand.",
                "",
                "```json",
                record,
                "```",
            ]
        )

    @staticmethod
    def parse_issue_body(body: str) -> BundleSnapshot:
        match = _snapshot_block_re.search(body or "")
        if SNAPSHOT_ISSUE_MARKER not in (body or "") or match is None:
            raise InvalidSnapshotError("issue has no snapshot record")
        return BundleSnapshot.deserialize(match.group("record"))

    async def _find_issue(self, key: str) -> Optional[dict]:
        title = self.issue_title(key)
        issues: List[dict] = await self.repository_service.list_issues([self.label])
        for issue in issues:
            if issue.get("title") == title and SNAPSHOT_ISSUE_MARKER in (
                issue.get("body") or ""
            ):
                return issue
        return None

    @sentry_sdk.trace
    async def load(self, key: str) -> Optional[BundleSnapshot]:
        try:
            issue = await self._find_issue(key)
        except TorngitError as exc:
            log.warning(
                "Could not list snapshot issues",
                extra=dict(key=key, label=self.label, error=str(exc)),
            )
            return None
        if issue is None:
            log.info("No snapshot issue", extra=dict(key=key, label=self.label))
            return None
        try:
            return self.parse_issue_body(issue.get("body"))
        except InvalidSnapshotError as exc:
            log.warning(
                "Snapshot issue is malformed, ignoring it",
                extra=dict(key=key, issue=issue.get("number"), error=str(exc)),
            )
            return None

    async def save(self, key: str, snapshot: BundleSnapshot) -> None:
        body = self.issue_body(snapshot)
        issue = await self._find_issue(key)
        if issue is not None:
            await self.repository_service.edit_issue(issue["number"], body)
            log.info(
                "Updated snapshot issue", extra=dict(key=key, issue=issue["number"])
            )
        else:
            created = await self.repository_service.create_issue(
                self.issue_title(key), body, [self.label]
            )
            log.info(
                "Created snapshot issue",
                extra=dict(key=key, issue=(created or {}).get("number")),
            )


class RebuildSnapshotStore(BaseSnapshotStore):
    """
    Produces the base snapshot by checking out the base branch, installing its
    dependencies, building it and analyzing the result, then restoring the working
    copy. Nothing is persisted, so `save` does nothing.
    """

    def __init__(
        self,
        working_directory: str | os.PathLike,
        analyzer: Optional[ManifestAnalyzer] = None,
        build_directory: str = ".next",
        install_command: str = "npm ci",
        install_args: Optional[str] = "--legacy-peer-deps",
        build_command: str = "npm run build",
        remote: Optional[str] = "origin",
    ):
        self.working_directory = Path(working_directory)
        self.analyzer = analyzer or ManifestAnalyzer()
        self.build_directory = build_directory
        self.install_command = shlex.split(install_command) + shlex.split(
            install_args or ""
        )
        self.build_command = shlex.split(build_command)
        self.remote = remote

    def _rebuild_and_analyze(self, branch: str) -> BundleSnapshot:
        with temporary_checkout(self.working_directory, branch, remote=self.remote):
            log.info(
                "Installing dependencies for base branch",
                extra=dict(command=" ".join(self.install_command)),
            )
            run_command(self.install_command, self.working_directory)
            log.info("Building base branch", extra=dict(branch=branch))
            run_command(self.build_command, self.working_directory)
            return self.analyzer.analyze(self.working_directory / self.build_directory)

    @sentry_sdk.trace
    async def load(self, key: str) -> Optional[BundleSnapshot]:
        log.info("Fetching base branch stats", extra=dict(branch=key))
        try:
            return await asyncio.to_thread(self._rebuild_and_analyze, key)
        except CheckoutRestoreError as exc:
            log.error(
                "Base branch was analyzed but the working copy was not restored",
                extra=dict(branch=key, original_ref=exc.original_ref, error=str(exc)),
            )
            return None
        except (CommandError, BundleNotBuiltError, OSError) as exc:
            log.warning(
                "Could not analyze base branch",
                extra=dict(branch=key, error=str(exc)),
            )
            return None

    async def save(self, key: str, snapshot: BundleSnapshot) -> None:
        log.debug(
            "Rebuild snapshot store does not persist snapshots", extra=dict(key=key)
        )
