"""Workspace: the directory holding every project checkout and its worktrees"""

import os
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Union

from review_keeper.constants import DEFAULT_AGENT_TOOLS, REPO_DIR_NAME, WORKTREE_DIR_NAME
from review_keeper.core.project import Project, Worktree
from review_keeper.exceptions import ReviewKeeperError
from review_keeper.logging_config import get_logger

if TYPE_CHECKING:
    from review_keeper.services.change_status import ChangeStatusReader
    from review_keeper.services.git.operations import GitOperations
    from review_keeper.services.review_cache import ReviewCache

logger = get_logger(__name__)


class Workspace:
    """Filesystem layout `<root>/repo/<name>` plus `<root>/worktree/<name>/<branch>`."""

    def __init__(
        self,
        root: Union[str, Path],
        git_ops: "GitOperations",
        status_reader: "ChangeStatusReader",
        cache: Optional["ReviewCache"] = None,
        agent_tools: str = DEFAULT_AGENT_TOOLS,
        agent_model: str = "",
        max_workers: Optional[int] = None,
        sequential: bool = False,
    ):
        self.root = Path(root)
        self.git_ops = git_ops
        self.status_reader = status_reader
        self.cache = cache
        self.agent_tools = agent_tools
        self.agent_model = agent_model
        self.max_workers = max_workers
        self.sequential = sequential

    @property
    def repo_dir(self) -> Path:
        return self.root / REPO_DIR_NAME

    @property
    def worktree_dir(self) -> Path:
        return self.root / WORKTREE_DIR_NAME

    def bootstrap(self) -> None:
        """Create the root, repo/ and worktree/ directories if needed."""
        for directory in (self.root, self.repo_dir, self.worktree_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def _load(self, repo_path: str) -> Project:
        project = Project.load(
            repo_path,
            str(self.worktree_dir),
            self.git_ops,
            self.status_reader,
            max_workers=self.max_workers,
            sequential=self.sequential,
        )
        for wt in project.worktrees:
            wt.model = self.agent_model
        return project

    def load_projects(self) -> List[Project]:
        """Load every checkout under repo/, sorted by directory name.

        A missing repo/ yields no projects. A checkout that fails to load is
        logged and skipped.
        """
        try:
            with os.scandir(self.repo_dir) as entries:
                paths = sorted(entry.path for entry in entries if entry.is_dir())
        except FileNotFoundError:
            return []

        projects = []
        for path in paths:
            try:
                projects.append(self._load(path))
            except (ReviewKeeperError, ValueError) as e:
                logger.warning(f"Skipping {path}: {e}")
        logger.debug(f"Loaded {len(projects)} project(s) from {self.repo_dir}")
        return projects

    def find_project(self, key: str) -> Optional[Project]:
        """Project whose `owner/repo` title or checkout directory name is `key`."""
        for project in self.load_projects():
            if key in (project.title(), os.path.basename(project.repo_path)):
                return project
        return None

    def clone(self, owner: str, repo: str) -> Project:
        """Clone `owner/repo` into repo/ and load it.

        Raises:
            GitOperationError: If the clone fails
        """
        self.bootstrap()
        path = self.git_ops.clone(str(self.repo_dir), owner, repo)
        return self._load(path)

    def _purge(self, worktree: Worktree) -> None:
        if self.cache is not None:
            self.cache.remove_worktree(worktree.path)

    def delete_project(self, project: Project) -> None:
        """Remove a project's checkout and worktree directories and its cached reviews."""
        for wt in project.worktrees:
            self._purge(wt)
        for path in (project.repo_path, project.worktree_path):
            if os.path.exists(path):
                shutil.rmtree(path)
        logger.info(f"Deleted project {project.title()}")

    def add_worktree(self, project: Project, name: str) -> Worktree:
        """Create a bootstrapped worktree named `name` in `project`."""
        return project.add_worktree(name, tools=self.agent_tools, model=self.agent_model)

    def delete_worktree(self, project: Project, name: str) -> None:
        """Remove a worktree and purge its cached reviews."""
        worktree = project.get_worktree(name)
        project.delete_worktree(name)
        if worktree is not None:
            self._purge(worktree)
        elif self.cache is not None:
            self.cache.remove_worktree(os.path.join(project.worktree_path, name))
