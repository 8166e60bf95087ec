"""
review-keeper - Keep worktrees in sync with their pull request reviews
"""

from .__version__ import __version__
from .core import Project, Worktree, Workspace, SyncLoop
from .cli import main

__all__ = ["Project", "Worktree", "Workspace", "SyncLoop", "main", "__version__"]
