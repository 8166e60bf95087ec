"""Configuration handling for review-keeper"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

from review_keeper.constants import (
    AGENT_COMMAND,
    CHANGE_TOOL_COMMAND,
    DEFAULT_AGENT_MODEL,
    DEFAULT_AGENT_TOOLS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_REQUESTS_PER_SECOND,
    DEFAULT_SYNC_INTERVAL,
    GITHUB_API_URL,
    REPO_DIR_NAME,
    WORKTREE_DIR_NAME,
)


def default_workspace() -> Path:
    """Default workspace directory holding repo/ and worktree/."""
    return Path.home() / ".local" / "share" / "review-keeper"


@dataclass
class Config:
    """Configuration for review-keeper with validation."""

    # Workspace
    workspace: Path = field(default_factory=default_workspace)

    # Sync loop
    interval: float = DEFAULT_SYNC_INTERVAL  # seconds between ticks
    isolate_failures: bool = True  # False: first project error ends the tick

    # GitHub integration
    github_token: Optional[str] = None
    api_base_url: str = GITHUB_API_URL
    requests_per_second: int = DEFAULT_REQUESTS_PER_SECOND
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # External tools
    agent_command: str = AGENT_COMMAND
    agent_model: str = DEFAULT_AGENT_MODEL
    agent_tools: str = DEFAULT_AGENT_TOOLS
    change_tool: str = CHANGE_TOOL_COMMAND

    # Execution modes
    verbose: bool = False
    debug: bool = False
    sequential: bool = False  # Force sequential status derivation
    workers: Optional[int] = None  # Number of parallel workers (None = auto-detect)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_workspace()
        self._validate_interval()
        self._validate_rate()
        self._validate_timeout()
        self._validate_workers()
        self._validate_commands()

    def _validate_workspace(self):
        """Normalize workspace to an expanded Path."""
        self.workspace = Path(self.workspace).expanduser()

    def _validate_interval(self):
        """Validate interval is positive."""
        if self.interval <= 0:
            raise ValueError(f"interval must be positive, got {self.interval}")

    def _validate_rate(self):
        """Validate requests_per_second is positive."""
        if self.requests_per_second <= 0:
            raise ValueError(
                f"requests_per_second must be positive, got {self.requests_per_second}"
            )

    def _validate_timeout(self):
        """Validate request_timeout is positive."""
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")

    def _validate_workers(self):
        """Validate workers, when given, is positive."""
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def _validate_commands(self):
        """Validate external tool names are not empty."""
        for name in ("agent_command", "change_tool"):
            value = getattr(self, name)
            if not value or not value.strip():
                raise ValueError(f"{name} cannot be empty")
            setattr(self, name, value.strip())

    @property
    def repo_dir(self) -> Path:
        return self.workspace / REPO_DIR_NAME

    @property
    def worktree_dir(self) -> Path:
        return self.workspace / WORKTREE_DIR_NAME

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
