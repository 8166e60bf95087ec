"""Core model and control loop for review-keeper."""

from .project import Project, ReviewOutcome, Worktree
from .sync_loop import Deadline, LoopState, SyncLoop, TickReport
from .workspace import Workspace

__all__ = [
    "Project",
    "ReviewOutcome",
    "Worktree",
    "Workspace",
    "SyncLoop",
    "LoopState",
    "Deadline",
    "TickReport",
]
