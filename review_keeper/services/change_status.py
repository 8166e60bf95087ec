"""Reads change-tracking status from the openspec CLI."""
from pathlib import Path
from typing import List, Optional, Union

from review_keeper.constants import CHANGE_TOOL_COMMAND
from review_keeper.logging_config import get_logger
from review_keeper.models.status import Status, parse_change_names
from review_keeper.utils.process import best_effort, run_command, run_json

logger = get_logger(__name__)

PathLike = Union[str, Path]


class ChangeStatusReader:
    """Service invoking the change-tracking tool inside a worktree."""

    def __init__(self, command: str = CHANGE_TOOL_COMMAND):
        self.command = command

    def list_changes(self, worktree_path: PathLike) -> List[str]:
        """Names of all changes known to the tool, in listing order.

        Raises:
            ToolInvocationError: If the tool cannot run or exits non-zero
            MalformedOutputError: If the output is not the expected JSON
        """
        cmd = [self.command, "list", "--json"]
        data = run_json(cmd, cwd=worktree_path)
        return parse_change_names(data, source=" ".join(cmd))

    def show_change(self, worktree_path: PathLike, change_name: str) -> Status:
        """Detailed status of one change.

        Raises:
            ToolInvocationError: If the tool cannot run or exits non-zero
            MalformedOutputError: If the output is not the expected JSON
        """
        cmd = [self.command, "status", "--change", change_name, "--json"]
        data = run_json(cmd, cwd=worktree_path)
        return Status.from_dict(data, source=" ".join(cmd))

    def derive_status(self, worktree_path: PathLike) -> Optional[Status]:
        """Status of the first incomplete change, never raising.

        Returns None when the tool is missing or fails, and an empty Status
        (no change name) when every change is complete or none exist.
        """
        changes = best_effort(self.list_changes, worktree_path)
        if changes is None:
            return None

        for change_name in changes:
            status = best_effort(self.show_change, worktree_path, change_name)
            if status is None:
                return None
            if not status.is_complete:
                return status

        return Status(change_name="")

    def init(self, worktree_path: PathLike, tools: str) -> None:
        """Bootstrap an empty change-tracking session in a worktree."""
        run_command([self.command, "init", "--tools", tools, "--force"], cwd=worktree_path)
        logger.info(f"Initialized {self.command} in {worktree_path}")
