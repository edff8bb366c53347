from enum import Enum, auto
from typing import Dict, List, Optional

import httpx

from bundle_size.torngit.exceptions import TorngitMisconfiguredCredentials


class TokenType(Enum):
    read = auto()
    comment = auto()
    issues = auto()


class TorngitBaseAdapter(object):
    service: str = None
    _token = None
    verify_ssl = None

    def get_client(self, timeouts: List[int] = []) -> httpx.AsyncClient:
        if timeouts:
            timeout = httpx.Timeout(timeouts[1], connect=timeouts[0])
        else:
            timeout = httpx.Timeout(self._timeouts[1], connect=self._timeouts[0])
        return httpx.AsyncClient(
            verify=self.verify_ssl if self.verify_ssl is not None else True,
            timeout=timeout,
        )

    def get_token_by_type(self, token_type: TokenType):
        if self._token_type_mapping.get(token_type) is not None:
            return self._token_type_mapping.get(token_type)
        return self.token

    def get_token_by_type_if_none(self, token: Optional[dict], token_type: TokenType):
        if token is not None:
            return token
        return self.get_token_by_type(token_type)

    def __init__(
        self,
        timeouts=None,
        token=None,
        token_type_mapping: Dict[TokenType, Dict] = None,
        verify_ssl=None,
        **kwargs,
    ):
        self._timeouts = timeouts or [10, 30]
        self._token = token
        self._token_type_mapping = token_type_mapping or {}
        self.data = {"owner": {}, "repo": {}}
        self.verify_ssl = verify_ssl
        self.data.update(kwargs)

    def __repr__(self):
        return "<%s slug=%s>" % (self.service, self.slug)

    @property
    def token(self):
        if not self._token:
            raise TorngitMisconfiguredCredentials()
        return self._token

    @property
    def slug(self):
        if self.data.get("owner") and self.data.get("repo"):
            if self.data["owner"].get("username") and self.data["repo"].get("name"):
                return "%s/%s" % (
                    self.data["owner"]["username"],
                    self.data["repo"]["name"],
                )

    # Comments
    # --------
    async def list_comments(self, issueid: str, token=None) -> List[dict]:
        raise NotImplementedError()

    async def post_comment(self, issueid: str, body: str, token=None) -> dict:
        raise NotImplementedError()

    async def edit_comment(
        self, issueid: str, commentid: str, body: str, token=None
    ) -> dict:
        raise NotImplementedError()

    # Issues
    # ------
    async def list_issues(self, labels: List[str], state="all", token=None):
        raise NotImplementedError()

    async def create_issue(
        self, title: str, body: str, labels: List[str], token=None
    ) -> dict:
        raise NotImplementedError()

    async def edit_issue(self, issueid: str, body: str, token=None) -> dict:
        raise NotImplementedError()
