"""Formatting utilities for review-keeper.

- review: agent prompt rendering and tuicr parsing
- status: worktree status labels
"""

# Review formatters
from .review import render_review, parse_tuicr_review

# Status formatters
from .status import format_status_label, get_status_style

__all__ = [
    # Review
    "render_review",
    "parse_tuicr_review",
    # Status
    "format_status_label",
    "get_status_style",
]
