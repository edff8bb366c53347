import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bundle_size.torngit.base import TorngitBaseAdapter
from bundle_size.torngit.exceptions import TorngitClientError, TorngitError

log = logging.getLogger(__name__)

REQUIRED_COMMENT_PERMISSION = "pull-requests: write"


class PublishAction(Enum):
    CREATED = "created"
    UPDATED = "updated"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishResult:
    action: PublishAction
    comment_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.action != PublishAction.FAILED


class CommentPublisher:
    """
    Keeps a single comment per pull request: the comment whose body contains the
    marker is edited, and a new one is posted only when there is none yet.
    """

    def __init__(self, repository_service: TorngitBaseAdapter):
        self.repository_service = repository_service

    async def find_comment(self, pullid: str, marker: str) -> Optional[dict]:
        comments = await self.repository_service.list_comments(pullid)
        for comment in comments:
            if marker in (comment.get("body") or ""):
                return comment
        return None

    async def publish(self, pullid: str, body: str, marker: str) -> PublishResult:
        """
        Never raises for git provider errors: a failed publish is logged and reported
        in the result, the analysis itself already succeeded.
        """
        log.info("Attempting to comment on pull request", extra=dict(pullid=pullid))
        try:
            existing = await self.find_comment(pullid, marker)
            if existing is not None:
                await self.repository_service.edit_comment(
                    pullid, existing["id"], body
                )
                log.info(
                    "Updated existing bundle size comment",
                    extra=dict(pullid=pullid, commentid=existing["id"]),
                )
                return PublishResult(PublishAction.UPDATED, str(existing["id"]))
            created = await self.repository_service.post_comment(pullid, body)
            comment_id = (created or {}).get("id")
            log.info(
                "Created new bundle size comment",
                extra=dict(pullid=pullid, commentid=comment_id),
            )
            return PublishResult(
                PublishAction.CREATED,
                str(comment_id) if comment_id is not None else None,
            )
        except TorngitClientError as exc:
            extra = dict(pullid=pullid, code=exc.code, error=str(exc))
            if exc.code in (401, 403, 404):
                log.error(
                    "Permission denied while posting bundle size comment. "
                    "Make sure the workflow token has "
                    f"'{REQUIRED_COMMENT_PERMISSION}' permission",
                    extra=dict(
                        required_permission=REQUIRED_COMMENT_PERMISSION, **extra
                    ),
                )
            else:
                log.error("Failed to post bundle size comment", extra=extra)
            return PublishResult(PublishAction.FAILED, error=str(exc))
        except TorngitError as exc:
            log.error(
                "Failed to post bundle size comment",
                extra=dict(pullid=pullid, error=str(exc)),
            )
            return PublishResult(PublishAction.FAILED, error=str(exc))
