"""GitHub REST client for pull request reviews"""
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from review_keeper.constants import (
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_REQUESTS_PER_SECOND,
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_URL,
    GITHUB_TOKEN_ENV,
    PER_PAGE,
    RATE_LIMIT_RESET_HEADER,
)
from review_keeper.exceptions import (
    DecodeError,
    ForbiddenError,
    NetworkError,
    NoOpenPullRequestsError,
    NotFoundError,
    RateLimitedError,
    UpstreamError,
)
from review_keeper.logging_config import get_logger
from review_keeper.models.pull_request import PullRequest, ReviewComment, SchemaError
from review_keeper.models.review import FormattedReview
from review_keeper.services.rate_limiter import RateLimiter

logger = get_logger(__name__)

T = TypeVar("T")

PR_URL_PATTERN = re.compile(r"https://github\.com/([^/]+)/([^/]+)/pull/(\d+)")


@dataclass
class PullRequestRef:
    """A pull request identified by owner, repo and number."""
    owner: str
    repo: str
    number: int


def parse_pull_request_url(url: str) -> PullRequestRef:
    """Parse `https://github.com/owner/repo/pull/123`."""
    match = PR_URL_PATTERN.search(url)
    if not match:
        raise ValueError(
            "invalid GitHub URL format. Expected: https://github.com/owner/repo/pull/123"
        )
    return PullRequestRef(owner=match.group(1), repo=match.group(2), number=int(match.group(3)))


def resolve_token(token: Optional[str] = None) -> str:
    """Explicit token, else GITHUB_TOKEN, else anonymous ("")."""
    if token:
        return token
    return os.environ.get(GITHUB_TOKEN_ENV, "")


class ReviewClient:
    """Rate-limited GitHub client fetching pull requests and review comments."""

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = GITHUB_API_URL,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token = resolve_token(token)
        self.rate_limiter = rate_limiter or RateLimiter(DEFAULT_REQUESTS_PER_SECOND)
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": GITHUB_ACCEPT_HEADER})
        if self.token:
            self._session.headers.update({"Authorization": f"token {self.token}"})

    def _request(self, operation: str, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Issue one rate-limited GET and return the decoded JSON body."""
        self.rate_limiter.wait()

        url = f"{self.base_url}{path}"
        logger.debug(f"[GitHub] GET {url} {params or ''}")
        try:
            resp = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(operation, e) from e

        if resp.status_code == 404:
            raise NotFoundError(operation, resp.url or url)

        if resp.status_code == 403:
            reset = resp.headers.get(RATE_LIMIT_RESET_HEADER)
            if reset:
                try:
                    reset_at = datetime.fromtimestamp(int(reset), tz=timezone.utc)
                except ValueError:
                    reset_at = datetime.now(timezone.utc)
                raise RateLimitedError(operation, reset_at)
            raise ForbiddenError(operation)

        if resp.status_code != 200:
            raise UpstreamError(operation, resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as e:
            raise DecodeError(operation, str(e)) from e

    def _decode(self, operation: str, parse: Callable[[Any], T], data: Any) -> T:
        try:
            return parse(data)
        except SchemaError as e:
            raise DecodeError(operation, str(e)) from e

    def _decode_list(self, operation: str, parse: Callable[[Any], T], data: Any) -> List[T]:
        if not isinstance(data, list):
            raise DecodeError(operation, "expected a JSON array")
        return [self._decode(operation, parse, item) for item in data]

    def fetch_pull_request(self, owner: str, repo: str, number: int) -> PullRequest:
        """Metadata of one pull request."""
        operation = "fetch_pull_request"
        data = self._request(operation, f"/repos/{owner}/{repo}/pulls/{number}")
        return self._decode(operation, PullRequest.from_api, data)

    def fetch_review_comments(self, owner: str, repo: str, number: int) -> List[ReviewComment]:
        """Review comments of one pull request (single page)."""
        operation = "fetch_review_comments"
        data = self._request(operation, f"/repos/{owner}/{repo}/pulls/{number}/comments")
        return self._decode_list(operation, ReviewComment.from_api, data)

    def list_pulls(self, owner: str, repo: str, params: Dict[str, Any]) -> List[PullRequest]:
        """One page of the pull request listing."""
        operation = "list_pulls"
        data = self._request(operation, f"/repos/{owner}/{repo}/pulls", params=params)
        return self._decode_list(operation, PullRequest.from_api, data)

    def list_all_pulls(self, owner: str, repo: str, **filters: Any) -> List[PullRequest]:
        """All pages of the pull request listing, stopping at the first short page."""
        all_pulls: List[PullRequest] = []
        page = 1
        while True:
            params = {**filters, "per_page": PER_PAGE, "page": page}
            pulls = self.list_pulls(owner, repo, params)
            all_pulls.extend(pulls)
            if len(pulls) < PER_PAGE:
                break
            page += 1
        logger.debug(f"[GitHub] Listed {len(all_pulls)} pull request(s) for {owner}/{repo} over {page} page(s)")
        return all_pulls

    def list_open_pulls_for_branch(self, owner: str, repo: str, branch: str) -> List[PullRequest]:
        """Open pull requests whose head is `owner:branch`, newest first."""
        return self.list_all_pulls(
            owner,
            repo,
            state="open",
            head=f"{owner}:{branch}",
            sort="created",
            direction="desc",
        )

    def fetch_latest_open_pull(self, owner: str, repo: str) -> PullRequest:
        """The most recently created open pull request of the repository."""
        pulls = self.list_pulls(
            owner,
            repo,
            {"state": "open", "sort": "created", "direction": "desc", "per_page": 1},
        )
        if not pulls:
            raise NoOpenPullRequestsError(owner, repo)
        return pulls[0]

    def fetch_comments(self, owner: str, repo: str, number: int) -> FormattedReview:
        """Review comments on the current head commit made after its last push."""
        pull = self.fetch_pull_request(owner, repo, number)
        comments = self.fetch_review_comments(owner, repo, number)

        current = [c.to_formatted() for c in comments if c.is_current_for(pull)]
        logger.debug(
            f"[GitHub] PR #{number}: {len(current)} of {len(comments)} comment(s) "
            f"apply to {pull.head_sha[:7]}"
        )
        return FormattedReview(commit_sha=pull.head_sha, comments=current)

    def review(self, owner: str, repo: str, number: int = 0) -> FormattedReview:
        """Formatted review of a pull request; number <= 0 means the latest open one."""
        if number <= 0:
            number = self.fetch_latest_open_pull(owner, repo).number
        return self.fetch_comments(owner, repo, number)

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()
        self.rate_limiter.stop()
