import logging
import os
from string import Template
from typing import List, Optional
from urllib.parse import urlencode

import httpx
from httpx import Response

from bundle_size.config import get_config
from bundle_size.metrics import Counter, Histogram, inc_counter
from bundle_size.torngit.base import TokenType, TorngitBaseAdapter
from bundle_size.torngit.exceptions import (
    TorngitClientError,
    TorngitClientGeneralError,
    TorngitMisconfiguredCredentials,
    TorngitObjectNotFoundError,
    TorngitRateLimitError,
    TorngitServer5xxCodeError,
    TorngitServerUnreachableError,
    TorngitUnauthorizedError,
)

log = logging.getLogger(__name__)


GITHUB_API_CALL_COUNTER = Counter(
    "bundle_size_github_api_calls",
    "Number of times github was called for this endpoint",
    ["endpoint"],
)

GITHUB_API_ERROR_COUNTER = Counter(
    "bundle_size_github_api_errors",
    "Number of failed github calls, by kind of failure",
    ["kind"],
)

GITHUB_API_LATENCY = Histogram(
    "bundle_size_github_api_seconds",
    "Time taken by a single github http request",
)


GITHUB_API_ENDPOINTS = {
    "list_comments": Template("/repos/${slug}/issues/${issueid}/comments"),
    "post_comment": Template("/repos/${slug}/issues/${issueid}/comments"),
    "edit_comment": Template("/repos/${slug}/issues/comments/${commentid}"),
    "list_issues": Template("/repos/${slug}/issues"),
    "create_issue": Template("/repos/${slug}/issues"),
    "edit_issue": Template("/repos/${slug}/issues/${issueid}"),
}


# statuses the listing calls retry on
GET_STATUSES_TO_RETRY = [502, 503, 504]


class Github(TorngitBaseAdapter):
    service = "github"

    @classmethod
    def get_api_url(cls):
        return get_config("github", "api_url", default="https://api.github.com").strip(
            "/"
        )

    @property
    def api_url(self):
        return self.get_api_url()

    @classmethod
    def count_and_get_url_template(cls, url_name):
        inc_counter(GITHUB_API_CALL_COUNTER, labels=dict(endpoint=url_name))
        return GITHUB_API_ENDPOINTS[url_name]

    async def api(self, *args, token=None, **kwargs):
        """
        Makes a single http request to GitHub and returns the parsed response
        """
        token_to_use = token or self.token
        if not token_to_use:
            raise TorngitMisconfiguredCredentials()
        response = await self.make_http_call(*args, token_to_use=token_to_use, **kwargs)
        return self._parse_response(response)

    async def paginated_api_generator(
        self, client, method, url, token=None, statuses_to_retry=None, **kwargs
    ):
        """
        Generator that requests pages from GitHub and yields each page as they come.
        Continues to request pages while there's a link to the next page.
        """
        token_to_use = token or self.token
        if not token_to_use:
            raise TorngitMisconfiguredCredentials()
        while url:
            response = await self.make_http_call(
                client,
                method,
                url,
                token_to_use=token_to_use,
                statuses_to_retry=statuses_to_retry,
                **kwargs,
            )
            yield self._parse_response(response)
            url = response.links.get("next", {}).get("url", "")
            # the next link already carries the query string
            kwargs = {}

    def _parse_response(self, res: Response):
        if res.status_code == 204:
            return None
        elif (res.headers.get("Content-Type") or "")[:16] == "application/json":
            return res.json()
        else:
            return res.text

    async def make_http_call(
        self,
        client,
        method,
        url,
        body=None,
        headers=None,
        token_to_use=None,
        statuses_to_retry=None,
        **args,
    ) -> Response:
        _headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": os.getenv("USER_AGENT", "bundle-size"),
        }
        if token_to_use:
            _headers["Authorization"] = "token %s" % token_to_use["key"]
        _headers.update(headers or {})
        log_dict = {}

        method = (method or "GET").upper()
        if url[0] == "/":
            log_dict = dict(
                event="api",
                endpoint=url,
                method=method,
                repo_slug=self.slug,
            )
            url = self.api_url + url

        if args:
            url = url + ("&" if "?" in url else "?") + urlencode(args)

        kwargs = dict(json=body if body else None, headers=_headers)
        max_number_retries = 3
        for current_retry in range(1, max_number_retries + 1):
            try:
                with GITHUB_API_LATENCY.time():
                    res = await client.request(method, url, **kwargs)
                logged_body = None
                if res.status_code >= 300 and res.text is not None:
                    logged_body = res.text
                log.log(
                    logging.WARNING if res.status_code >= 300 else logging.INFO,
                    "Github HTTP %s",
                    res.status_code,
                    extra=dict(
                        current_retry=current_retry,
                        body=logged_body,
                        rl_remaining=res.headers.get("X-RateLimit-Remaining"),
                        rl_reset_time=res.headers.get("X-RateLimit-Reset"),
                        retry_after=res.headers.get("Retry-After"),
                        **log_dict,
                    ),
                )
            except (httpx.TimeoutException, httpx.NetworkError):
                inc_counter(GITHUB_API_ERROR_COUNTER, labels=dict(kind="unreachable"))
                raise TorngitServerUnreachableError(
                    "GitHub was not able to be reached."
                )
            if (res.status_code == 403 or res.status_code == 429) and (
                # Primary rate limit
                int(res.headers.get("X-RateLimit-Remaining", -1)) == 0
                # Secondary rate limit
                or res.headers.get("Retry-After") is not None
            ):
                inc_counter(GITHUB_API_ERROR_COUNTER, labels=dict(kind="ratelimit"))
                retry_after = res.headers.get("Retry-After")
                is_primary_rate_limit = (
                    int(res.headers.get("X-RateLimit-Remaining", -1)) == 0
                )
                reason = (
                    res.reason_phrase
                    if is_primary_rate_limit
                    else "secondary rate limit"
                )
                message = f"Github API rate limit error: {reason}"
                raise TorngitRateLimitError(
                    response_data=res.text,
                    message=message,
                    reset=res.headers.get("X-RateLimit-Reset"),
                    retry_after=int(retry_after) if retry_after is not None else None,
                )
            if (
                not statuses_to_retry
                or res.status_code not in statuses_to_retry
                or current_retry >= max_number_retries  # Last retry
            ):
                if res.status_code >= 500:
                    inc_counter(GITHUB_API_ERROR_COUNTER, labels=dict(kind="5xx"))
                    raise TorngitServer5xxCodeError("Github is having 5xx issues")
                elif res.status_code == 401:
                    message = f"Github API unauthorized error: {res.reason_phrase}"
                    inc_counter(
                        GITHUB_API_ERROR_COUNTER, labels=dict(kind="unauthorized")
                    )
                    raise TorngitUnauthorizedError(
                        response_data=res.text, message=message
                    )
                elif res.status_code >= 300:
                    message = f"Github API: {res.reason_phrase}"
                    inc_counter(GITHUB_API_ERROR_COUNTER, labels=dict(kind="client"))
                    raise TorngitClientGeneralError(
                        res.status_code, response_data=res.text, message=message
                    )
                return res
            else:
                log.info(
                    "Retrying request to GitHub",
                    extra=dict(status=res.status_code, **log_dict),
                )

    # Comments
    # --------
    async def list_comments(self, issueid, token=None) -> List[dict]:
        token = self.get_token_by_type_if_none(token, TokenType.read)
        # https://docs.github.com/en/rest/issues/comments#list-issue-comments
        comments = []
        async with self.get_client() as client:
            url = self.count_and_get_url_template(url_name="list_comments").substitute(
                slug=self.slug, issueid=issueid
            )
            try:
                async for page in self.paginated_api_generator(
                    client,
                    "get",
                    url,
                    token=token,
                    statuses_to_retry=GET_STATUSES_TO_RETRY,
                    per_page=100,
                ):
                    comments.extend(page or [])
            except TorngitClientError as ce:
                if ce.code == 404:
                    raise TorngitObjectNotFoundError(
                        response_data=ce.response_data,
                        message=f"Cannot find comments of PR {issueid}",
                    )
                raise
        return comments

    async def post_comment(self, issueid, body, token=None):
        token = self.get_token_by_type_if_none(token, TokenType.comment)
        # https://docs.github.com/en/rest/issues/comments#create-an-issue-comment
        async with self.get_client() as client:
            url = self.count_and_get_url_template(url_name="post_comment").substitute(
                slug=self.slug, issueid=issueid
            )
            res = await self.api(client, "post", url, body=dict(body=body), token=token)
            return res

    async def edit_comment(self, issueid, commentid, body, token=None):
        token = self.get_token_by_type_if_none(token, TokenType.comment)
        # https://docs.github.com/en/rest/issues/comments#update-an-issue-comment
        try:
            async with self.get_client() as client:
                url = self.count_and_get_url_template(
                    url_name="edit_comment"
                ).substitute(slug=self.slug, commentid=commentid)
                res = await self.api(
                    client, "patch", url, body=dict(body=body), token=token
                )
                return res
        except TorngitClientError as ce:
            if ce.code == 404:
                raise TorngitObjectNotFoundError(
                    response_data=ce.response_data,
                    message=f"Cannot find comment {commentid} from PR {issueid}",
                )
            raise

    # Issues
    # ------
    async def list_issues(self, labels, state="all", token=None) -> List[dict]:
        token = self.get_token_by_type_if_none(token, TokenType.read)
        # https://docs.github.com/en/rest/issues/issues#list-repository-issues
        issues = []
        async with self.get_client() as client:
            url = self.count_and_get_url_template(url_name="list_issues").substitute(
                slug=self.slug
            )
            async for page in self.paginated_api_generator(
                client,
                "get",
                url,
                token=token,
                statuses_to_retry=GET_STATUSES_TO_RETRY,
                labels=",".join(labels),
                state=state,
                per_page=100,
            ):
                # pull requests are issues too as far as this endpoint goes
                issues.extend(
                    issue for issue in (page or []) if "pull_request" not in issue
                )
        return issues

    async def create_issue(self, title, body, labels, token=None) -> dict:
        token = self.get_token_by_type_if_none(token, TokenType.issues)
        # https://docs.github.com/en/rest/issues/issues#create-an-issue
        async with self.get_client() as client:
            url = self.count_and_get_url_template(url_name="create_issue").substitute(
                slug=self.slug
            )
            return await self.api(
                client,
                "post",
                url,
                body=dict(title=title, body=body, labels=list(labels)),
                token=token,
            )

    async def edit_issue(self, issueid, body, token=None) -> dict:
        token = self.get_token_by_type_if_none(token, TokenType.issues)
        # https://docs.github.com/en/rest/issues/issues#update-an-issue
        try:
            async with self.get_client() as client:
                url = self.count_and_get_url_template(
                    url_name="edit_issue"
                ).substitute(slug=self.slug, issueid=issueid)
                return await self.api(
                    client, "patch", url, body=dict(body=body), token=token
                )
        except TorngitClientError as ce:
            if ce.code == 404:
                raise TorngitObjectNotFoundError(
                    response_data=ce.response_data,
                    message=f"Cannot find issue {issueid}",
                )
            raise


def get_github_handler(
    owner: str, repo: str, token: Optional[str] = None, **kwargs
) -> Github:
    if token is None:
        token = get_config("github", "bot", "key")
    return Github(
        owner=dict(username=owner),
        repo=dict(name=repo),
        token=dict(key=token) if token else None,
        verify_ssl=get_config("github", "verify_ssl"),
        **kwargs,
    )
