"""Data models for review-keeper."""

from .status import Artifact, Status, parse_change_names
from .review import FormattedComment, FormattedReview
from .pull_request import PullRequest, ReviewComment, SchemaError

__all__ = [
    "Artifact",
    "Status",
    "parse_change_names",
    "FormattedComment",
    "FormattedReview",
    "PullRequest",
    "ReviewComment",
    "SchemaError",
]
