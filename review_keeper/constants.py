"""Shared constants for review-keeper."""

from dataclasses import dataclass
from typing import List


# External tools
GIT_COMMAND = "git"
CHANGE_TOOL_COMMAND = "openspec"
AGENT_COMMAND = "opencode"
DEFAULT_AGENT_MODEL = "github-copilot/claude-sonnet-4.5"
DEFAULT_AGENT_TOOLS = "opencode"

# Agent command that implements a change whose only requirement is "tasks"
APPLY_COMMAND = "opsx-apply"
TASKS_REQUIREMENT = "tasks"

# GitHub API
GITHUB_API_URL = "https://api.github.com"
GITHUB_TOKEN_ENV = "GITHUB_TOKEN"
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"
PER_PAGE = 100
DEFAULT_REQUESTS_PER_SECOND = 5
DEFAULT_REQUEST_TIMEOUT = 30.0

# Workspace layout
REPO_DIR_NAME = "repo"
WORKTREE_DIR_NAME = "worktree"

# Sync loop
DEFAULT_SYNC_INTERVAL = 15 * 60  # seconds
BOOTSTRAP_COMMIT_MESSAGE = "Initialize openspec"


# Status display names
STATUS_NO_SETUP = f"No {CHANGE_TOOL_COMMAND} setup"
STATUS_READY_FOR_CHANGE = "Ready For Change"
STATUS_READY_FOR_REVIEW = "Ready For Review"
STATUS_READY_FOR_APPLY = "Ready For Apply"
STATUS_PENDING_PREFIX = "Pending – "


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


# Columns of the `status` table
COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("project", "Project", 30),
    ColumnDefinition("worktree", "Worktree", 30),
    ColumnDefinition("change", "Change", 24),
    ColumnDefinition("status", "Status", 30),
    ColumnDefinition("path", "Path"),
]


# Rich colors per status label
STATUS_COLORS = {
    STATUS_NO_SETUP: "dim",
    STATUS_READY_FOR_CHANGE: "cyan",
    STATUS_READY_FOR_REVIEW: "green",
    STATUS_READY_FOR_APPLY: "yellow",
}

# Review prompt text
REVIEW_HEADER = "I reviewed your code and have the following comments. Please address them."
REVIEW_LEGEND = (
    "Comment types: ISSUE (problems to fix), SUGGESTION (improvements), "
    "NOTE (observations), PRAISE (positive feedback)"
)
