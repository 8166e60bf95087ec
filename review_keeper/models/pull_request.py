"""GitHub pull request and review comment models"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from review_keeper.models.review import FormattedComment


class SchemaError(ValueError):
    """Raised when an API payload does not have the expected shape."""


def parse_timestamp(value: Any, key: str) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp (`2024-01-01T00:00:00Z`)."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise SchemaError(f"'{key}' must be a timestamp string")
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise SchemaError(f"'{key}' is not a valid timestamp: {value!r}") from e
    # Offset-less timestamps are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require(data: Any, key: str, kind: type, what: str) -> Any:
    if not isinstance(data, dict):
        raise SchemaError(f"{what} must be an object")
    value = data.get(key)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise SchemaError(f"{what} '{key}' must be {kind.__name__}")
    return value


@dataclass
class PullRequest:
    """Pull request metadata needed to filter review comments."""
    number: int
    title: str
    created_at: Optional[datetime]
    html_url: str
    head_sha: str
    head_pushed_at: Optional[datetime]  # last push to the head repository

    @classmethod
    def from_api(cls, data: Any) -> "PullRequest":
        number = _require(data, "number", int, "pull request")
        head = data.get("head")
        head_sha = _require(head, "sha", str, "pull request head")
        head_repo = head.get("repo")
        pushed_at = None
        # head.repo is null when the fork was deleted
        if isinstance(head_repo, dict):
            pushed_at = parse_timestamp(head_repo.get("pushed_at"), "head.repo.pushed_at")
        return cls(
            number=number,
            title=data.get("title") or "",
            created_at=parse_timestamp(data.get("created_at"), "created_at"),
            html_url=data.get("html_url") or "",
            head_sha=head_sha,
            head_pushed_at=pushed_at,
        )


@dataclass
class ReviewComment:
    """A line or file review comment on a pull request."""
    id: int
    body: str
    created_at: datetime
    commit_id: str
    path: str = ""
    line: int = 0
    side: str = ""

    @classmethod
    def from_api(cls, data: Any) -> "ReviewComment":
        comment_id = _require(data, "id", int, "review comment")
        created_at = parse_timestamp(_require(data, "created_at", str, "review comment"), "created_at")
        line = data.get("line")
        if line is not None and (not isinstance(line, int) or isinstance(line, bool)):
            raise SchemaError("review comment 'line' must be int")
        return cls(
            id=comment_id,
            body=data.get("body") or "",
            created_at=created_at,
            commit_id=data.get("commit_id") or "",
            path=data.get("path") or "",
            line=line or 0,
            side=data.get("side") or "",
        )

    def is_current_for(self, pull: PullRequest) -> bool:
        """True if the comment targets the head commit and postdates the last push."""
        if self.commit_id != pull.head_sha:
            return False
        if pull.head_pushed_at is None:
            return True
        return self.created_at > pull.head_pushed_at

    def to_formatted(self) -> FormattedComment:
        return FormattedComment(
            file=self.path,
            line=self.line,
            type="suggestion",
            content=self.body,
            index=self.id,
            is_old_side=self.side.lower() == "left",
        )
