"""Review rendering and tuicr review parsing."""

import json
from pathlib import Path
from typing import Any, List, Union

from review_keeper.constants import REVIEW_HEADER, REVIEW_LEGEND
from review_keeper.exceptions import MalformedOutputError
from review_keeper.models.review import FormattedComment, FormattedReview

TUICR_SOURCE = "tuicr"
OLD_SIDE = "old"


def render_review(review: FormattedReview) -> str:
    """
    Render a review as the instruction handed to the agent.

    Args:
        review: Review to render

    Returns:
        Header, commit line, type legend and a numbered comment list,
        ordered file-level first, then by file and ascending line.
    """
    parts = [
        f"{REVIEW_HEADER}\n\n",
        f"Reviewing commit: {review.short_sha}\n\n",
        f"{REVIEW_LEGEND}\n\n",
    ]
    for i, comment in enumerate(review.sorted_comments(), start=1):
        parts.append(f"{i}. {comment.comment_type()} {comment.location()}:\n{comment.content}\n\n")
    return "".join(parts)


def _comment(file: str, line: int, data: Any, index: int) -> FormattedComment:
    if not isinstance(data, dict):
        raise MalformedOutputError(TUICR_SOURCE, f"comment on {file} must be an object")
    return FormattedComment(
        file=file,
        line=line,
        type=data.get("comment_type") or "note",
        content=data.get("content") or "",
        index=index,
        is_old_side=data.get("side") == OLD_SIDE,
    )


def tuicr_comments(files: Any) -> List[FormattedComment]:
    """Flatten the `files` map of a tuicr document into comments."""
    if not isinstance(files, dict):
        raise MalformedOutputError(TUICR_SOURCE, "'files' must be an object")

    comments: List[FormattedComment] = []
    for file_name, info in files.items():
        if not isinstance(info, dict):
            raise MalformedOutputError(TUICR_SOURCE, f"entry for {file_name} must be an object")

        for data in info.get("file_comments") or []:
            comments.append(_comment(file_name, 0, data, len(comments)))

        for line_key, line_comments in (info.get("line_comments") or {}).items():
            try:
                line = int(line_key)
            except ValueError:
                raise MalformedOutputError(
                    TUICR_SOURCE, f"line key '{line_key}' in {file_name} is not a number"
                )
            for data in line_comments or []:
                comments.append(_comment(file_name, line, data, len(comments)))

    return comments


def parse_tuicr_review(path: Union[str, Path]) -> FormattedReview:
    """
    Read a tuicr review export.

    Raises:
        OSError: If the file cannot be read
        MalformedOutputError: If the JSON is invalid or id, version or files is missing
    """
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedOutputError(TUICR_SOURCE, f"failed to parse JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedOutputError(TUICR_SOURCE, "expected a JSON object")
    for key in ("id", "version"):
        if not data.get(key):
            raise MalformedOutputError(TUICR_SOURCE, f"missing required field: {key}")
    if data.get("files") is None:
        raise MalformedOutputError(TUICR_SOURCE, "missing required field: files")

    return FormattedReview(
        commit_sha=data.get("base_commit") or "",
        comments=tuicr_comments(data["files"]),
    )
