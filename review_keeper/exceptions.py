"""Custom exceptions for review-keeper"""

from datetime import datetime
from typing import Optional, Sequence

from review_keeper.constants import GIT_COMMAND


class ReviewKeeperError(Exception):
    """Base exception for all review-keeper errors."""
    pass


class ToolInvocationError(ReviewKeeperError):
    """Exception raised when an external command cannot run or exits non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        output: str = "",
        message: Optional[str] = None,
    ):
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        self.message = message

        error_msg = f"Command '{' '.join(self.command)}' failed"
        if returncode is not None:
            error_msg += f" (exit {returncode})"
        if message:
            error_msg += f": {message}"
        elif output.strip():
            error_msg += f": {output.strip()}"

        super().__init__(error_msg)


class GitOperationError(ToolInvocationError):
    """Exception raised for errors in Git operations."""

    def __init__(
        self,
        operation: str,
        path: Optional[str] = None,
        message: Optional[str] = None,
        returncode: Optional[int] = None,
    ):
        self.operation = operation
        self.path = path
        command = [GIT_COMMAND, *operation.split()]
        super().__init__(command, returncode=returncode, message=message)

        error_msg = f"Git operation '{operation}' failed"
        if path:
            error_msg += f" in '{path}'"
        if message:
            error_msg += f": {message}"
        self.args = (error_msg,)


class MalformedOutputError(ReviewKeeperError):
    """Exception raised when tool or API output cannot be parsed."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"Malformed output from {source}: {message}")


class OriginParseError(ReviewKeeperError, ValueError):
    """Exception raised when a remote origin URL is not a forge repository URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(
            f"Cannot parse owner/repo from origin '{url}'. "
            "Expected git@host:owner/repo.git or https://host/owner/repo.git"
        )


class GitHubAPIError(ReviewKeeperError):
    """Exception raised for errors in GitHub API operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"GitHub API operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NetworkError(GitHubAPIError):
    """Exception raised when the GitHub API cannot be reached."""

    def __init__(self, operation: str, cause: Exception):
        self.cause = cause
        super().__init__(operation, f"network error: {cause}. Please check your internet connection")


class NotFoundError(GitHubAPIError):
    """Exception raised when the GitHub API returns 404."""

    def __init__(self, operation: str, url: str):
        self.url = url
        super().__init__(operation, f"GET {url} returns 404")


class ForbiddenError(GitHubAPIError):
    """Exception raised when the GitHub API returns 403 without rate limit headers."""

    def __init__(self, operation: str):
        super().__init__(
            operation,
            "access forbidden. This may be a private repository. "
            "Set GITHUB_TOKEN environment variable or use --token",
        )


class RateLimitedError(GitHubAPIError):
    """Exception raised when the GitHub API rate limit is exhausted."""

    def __init__(self, operation: str, reset_at: datetime):
        self.reset_at = reset_at
        super().__init__(
            operation,
            f"rate limit exceeded. Reset at: {reset_at.isoformat()}. "
            "Consider using a GitHub token (--token or GITHUB_TOKEN env var)",
        )


class UpstreamError(GitHubAPIError):
    """Exception raised for unexpected GitHub API status codes."""

    def __init__(self, operation: str, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(operation, f"status {status_code}: {body}")


class DecodeError(GitHubAPIError, MalformedOutputError):
    """Exception raised when a GitHub API response does not have the expected shape."""

    def __init__(self, operation: str, message: str):
        # Both parents chain through super(), so set fields here and init Exception once.
        self.operation = operation
        self.source = "GitHub API"
        self.message = f"failed to parse response: {message}"
        Exception.__init__(self, f"GitHub API operation '{operation}' failed: {self.message}")


class NoOpenPullRequestsError(GitHubAPIError):
    """Exception raised when a repository has no open pull requests."""

    def __init__(self, owner: str, repo: str):
        self.owner = owner
        self.repo = repo
        super().__init__("fetch_latest_open_pull", f"no open pull requests found for {owner}/{repo}")


class DeadlineExceeded(ReviewKeeperError):
    """Exception raised when a sync tick runs past its deadline."""

    def __init__(self, step: str):
        self.step = step
        super().__init__(f"Sync deadline exceeded during {step}")
