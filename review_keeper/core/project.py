"""Projects (repository checkouts) and their worktrees"""

import bisect
import os
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from threading import Lock
from typing import TYPE_CHECKING, List, Optional

from review_keeper.constants import APPLY_COMMAND, BOOTSTRAP_COMMIT_MESSAGE, DEFAULT_AGENT_TOOLS
from review_keeper.formatters import format_status_label, render_review
from review_keeper.logging_config import get_logger
from review_keeper.models.status import Status
from review_keeper.services.git.operations import parse_origin
from review_keeper.utils.threading import get_optimal_worker_count

if TYPE_CHECKING:
    from review_keeper.services.agent import AgentRunner
    from review_keeper.services.change_status import ChangeStatusReader
    from review_keeper.services.git.operations import GitOperations
    from review_keeper.services.github_client import ReviewClient
    from review_keeper.services.review_cache import ReviewCache

logger = get_logger(__name__)


class ReviewOutcome(Enum):
    """Result of one review pass over a worktree."""

    NO_REVIEW = "no_review"  # No open pull request for the branch
    NO_COMMENTS = "no_comments"  # Pull request has no comments on its current head
    APPLIED = "applied"  # Comments were handed to the agent and pushed

    @property
    def found_review(self) -> bool:
        return self is ReviewOutcome.APPLIED


class Worktree:
    """A branch checked out under a project's worktree directory.

    The directory name doubles as the branch name.
    """

    def __init__(
        self,
        name: str,
        path: str,
        owner: str,
        repo: str,
        model: str = "",
        status: Optional[Status] = None,
    ):
        self.name = name
        self.path = path
        self.owner = owner
        self.repo = repo
        self.model = model
        self.status = status

    def __repr__(self) -> str:
        return f"Worktree(name={self.name!r}, path={self.path!r}, status={self.description()!r})"

    def refresh(self, status_reader: "ChangeStatusReader") -> None:
        """Re-derive the change status; a failed derivation leaves None."""
        self.status = status_reader.derive_status(self.path)

    def title(self) -> str:
        return self.name

    def description(self) -> str:
        return format_status_label(self.status)

    def filter_key(self) -> str:
        return self.name

    @property
    def needs_task_apply(self) -> bool:
        return self.status is not None and self.status.needs_task_apply

    def review(
        self,
        client: "ReviewClient",
        agent: "AgentRunner",
        git_ops: "GitOperations",
        cache: Optional["ReviewCache"] = None,
    ) -> ReviewOutcome:
        """Hand the newest review of this branch's pull request to the agent.

        Looks up open pull requests for the branch, keeps the first one's
        comments on its current head, and when any remain prompts the agent,
        amends the last commit and force-pushes it.
        """
        pulls = client.list_open_pulls_for_branch(self.owner, self.repo, self.name)
        if not pulls:
            logger.debug(f"No open pull request for {self.owner}/{self.repo}:{self.name}")
            return ReviewOutcome.NO_REVIEW

        pull = pulls[0]
        review = client.fetch_comments(self.owner, self.repo, pull.number)
        if not review:
            logger.debug(f"PR #{pull.number} has no comments on {review.short_sha}")
            return ReviewOutcome.NO_COMMENTS

        prompt = render_review(review)
        if cache is not None:
            cache.set(self.path, pull.number, prompt)

        logger.info(
            f"Applying {len(review.comments)} review comment(s) from PR #{pull.number} to {self.name}"
        )
        agent.prompt(self.path, self.model, prompt)
        git_ops.amend_commit(self.path)
        git_ops.push(self.path)

        if cache is not None:
            cache.remove(self.path, pull.number)
        return ReviewOutcome.APPLIED

    def apply_tasks(self, agent: "AgentRunner", git_ops: "GitOperations") -> None:
        """Let the agent implement the outstanding tasks, then push."""
        logger.info(f"Applying tasks of change '{self.status.change_name}' in {self.name}")
        agent.run_command(self.path, self.model, APPLY_COMMAND)
        git_ops.push(self.path)


class Project:
    """A repository checkout plus the worktrees created from it."""

    def __init__(
        self,
        repo_path: str,
        worktree_path: str,
        owner: str,
        repo: str,
        git_ops: "GitOperations",
        status_reader: "ChangeStatusReader",
        max_workers: Optional[int] = None,
        sequential: bool = False,
    ):
        """Initialize a project.

        Args:
            repo_path: Path of the main checkout
            worktree_path: Directory holding one subdirectory per worktree
            owner: Repository owner on the forge
            repo: Repository name on the forge
            git_ops: Git service
            status_reader: Change-tracking status service
            max_workers: Worker count for status derivation (None = auto-detect)
            sequential: Derive statuses one at a time
        """
        self.repo_path = repo_path
        self.worktree_path = worktree_path
        self.owner = owner
        self.repo = repo
        self.git_ops = git_ops
        self.status_reader = status_reader
        self.max_workers = max_workers
        self.sequential = sequential
        self._worktrees: List[Worktree] = []
        self._lock = Lock()

    @classmethod
    def load(
        cls,
        repo_path: str,
        worktree_root: str,
        git_ops: "GitOperations",
        status_reader: "ChangeStatusReader",
        max_workers: Optional[int] = None,
        sequential: bool = False,
    ) -> "Project":
        """Load the project checked out at `repo_path` and its worktrees.

        Raises:
            GitOperationError: If the origin remote cannot be read
            OriginParseError: If the origin URL has no owner/repo
        """
        name = os.path.basename(os.path.normpath(repo_path))
        owner, repo = parse_origin(git_ops.origin_url(repo_path))
        project = cls(
            repo_path,
            os.path.join(worktree_root, name),
            owner,
            repo,
            git_ops,
            status_reader,
            max_workers=max_workers,
            sequential=sequential,
        )
        project.refresh()
        return project

    def __repr__(self) -> str:
        return f"Project({self.title()!r}, worktrees={len(self._worktrees)})"

    @property
    def worktrees(self) -> List[Worktree]:
        """Snapshot of the worktrees, sorted by name."""
        with self._lock:
            return list(self._worktrees)

    def _new_worktree(self, name: str) -> Worktree:
        return Worktree(name, os.path.join(self.worktree_path, name), self.owner, self.repo)

    def _derive_statuses(self, worktrees: List[Worktree]) -> None:
        if self.sequential or len(worktrees) <= 1:
            for wt in worktrees:
                wt.refresh(self.status_reader)
            return

        max_workers = get_optimal_worker_count(self.max_workers)
        logger.debug(f"Deriving {len(worktrees)} statuses with {max_workers} workers")
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # derive_status never raises, so results need no collection
            list(executor.map(lambda wt: wt.refresh(self.status_reader), worktrees))

    def refresh(self) -> None:
        """Re-read worktrees from disk and replace the whole set.

        A missing worktree directory yields an empty set. Other errors
        propagate and leave the previous set untouched.
        """
        try:
            with os.scandir(self.worktree_path) as entries:
                names = sorted(entry.name for entry in entries if entry.is_dir())
        except FileNotFoundError:
            names = []

        worktrees = [self._new_worktree(name) for name in names]
        self._derive_statuses(worktrees)

        with self._lock:
            self._worktrees = worktrees
        logger.debug(f"Loaded {len(worktrees)} worktree(s) for {self.title()}")

    def _insert(self, worktree: Worktree) -> None:
        with self._lock:
            names = [wt.name for wt in self._worktrees]
            i = bisect.bisect_left(names, worktree.name)
            if i < len(names) and names[i] == worktree.name:
                self._worktrees[i] = worktree
            else:
                self._worktrees.insert(i, worktree)

    def add_worktree(self, name: str, tools: str = DEFAULT_AGENT_TOOLS, model: str = "") -> Worktree:
        """Create a worktree, bootstrap change tracking in it and track it.

        Raises:
            GitOperationError: If the worktree cannot be created or committed
            ToolInvocationError: If change-tracking bootstrap fails
        """
        os.makedirs(self.worktree_path, exist_ok=True)
        worktree = self._new_worktree(name)
        worktree.model = model

        self.git_ops.create_worktree(self.repo_path, worktree.path)
        self.status_reader.init(worktree.path, tools)
        if self.git_ops.is_dirty(worktree.path):
            self.git_ops.commit(worktree.path, BOOTSTRAP_COMMIT_MESSAGE)

        worktree.refresh(self.status_reader)
        self._insert(worktree)
        logger.info(f"Added worktree {name} to {self.title()}")
        return worktree

    def delete_worktree(self, name: str) -> None:
        """Force-remove a worktree and stop tracking it.

        Raises:
            GitOperationError: If git refuses to remove the worktree
        """
        tree = os.path.join(self.worktree_path, name)
        self.git_ops.remove_worktree(self.repo_path, tree)

        with self._lock:
            names = [wt.name for wt in self._worktrees]
            i = bisect.bisect_left(names, name)
            if i < len(names) and names[i] == name:
                del self._worktrees[i]
        logger.info(f"Deleted worktree {name} from {self.title()}")

    def get_worktree(self, name: str) -> Optional[Worktree]:
        with self._lock:
            names = [wt.name for wt in self._worktrees]
            i = bisect.bisect_left(names, name)
            if i < len(names) and names[i] == name:
                return self._worktrees[i]
        return None

    def title(self) -> str:
        return f"{self.owner}/{self.repo}"

    def description(self) -> str:
        count = len(self.worktrees)
        return f"{count} worktree" + ("" if count == 1 else "s")

    def filter_key(self) -> str:
        return self.title()
