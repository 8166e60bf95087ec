"""Services for review-keeper."""

from .agent import AgentRunner
from .change_status import ChangeStatusReader
from .git import GitOperations, parse_origin
from .github_client import ReviewClient, parse_pull_request_url, resolve_token
from .rate_limiter import RateLimiter
from .review_cache import ReviewCache

__all__ = [
    "AgentRunner",
    "ChangeStatusReader",
    "GitOperations",
    "parse_origin",
    "ReviewClient",
    "parse_pull_request_url",
    "resolve_token",
    "RateLimiter",
    "ReviewCache",
]
