"""Git-related services for review-keeper."""

from .operations import GitOperations, parse_origin

__all__ = [
    "GitOperations",
    "parse_origin",
]
