"""Status label formatting utilities."""

from typing import Optional

from review_keeper.constants import (
    STATUS_COLORS,
    STATUS_NO_SETUP,
    STATUS_PENDING_PREFIX,
    STATUS_READY_FOR_APPLY,
    STATUS_READY_FOR_CHANGE,
    STATUS_READY_FOR_REVIEW,
)
from review_keeper.models.status import Status


def format_status_label(status: Optional[Status]) -> str:
    """
    Format a worktree status as display text.

    Args:
        status: Derived status, or None when derivation failed

    Returns:
        Display text for the status
    """
    if status is None:
        return STATUS_NO_SETUP
    if not status.change_name:
        return STATUS_READY_FOR_CHANGE
    if status.is_complete:
        return STATUS_READY_FOR_REVIEW
    if not status.apply_requires:
        return STATUS_READY_FOR_APPLY
    return STATUS_PENDING_PREFIX + ", ".join(status.apply_requires)


def get_status_style(status: Optional[Status]) -> str:
    """Rich style for a status label; pending states are red."""
    return STATUS_COLORS.get(format_status_label(status), "red")
