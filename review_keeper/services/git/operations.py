"""Git operations service"""

import os
from typing import Tuple
from urllib.parse import urlparse

import git

from review_keeper.constants import BOOTSTRAP_COMMIT_MESSAGE
from review_keeper.exceptions import GitOperationError, OriginParseError
from review_keeper.logging_config import get_logger

logger = get_logger(__name__)

CLONE_URL_TEMPLATE = "git@github.com:{owner}/{repo}.git"


def parse_origin(url: str) -> Tuple[str, str]:
    """Extract (owner, repo) from a remote origin URL.

    Accepts `git@host:owner/repo(.git)` and `https://host/owner/repo(.git)`.

    Raises:
        OriginParseError: If the URL is neither form or lacks owner/repo.
    """
    url = url.strip()
    if url.startswith("git@"):
        _, sep, path = url.partition(":")
        if not sep:
            raise OriginParseError(url)
    else:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise OriginParseError(url)
        path = parsed.path

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]

    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise OriginParseError(url)
    return parts[0], parts[1]


class GitOperations:
    """Service for the git commands the workspace needs.

    Every method opens a fresh `git.Repo` so instances can be shared
    between threads.
    """

    def _get_repo(self, path: str) -> git.Repo:
        """Get a thread-safe git.Repo instance for `path`."""
        try:
            return git.Repo(path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitOperationError("open", path, f"not a git repository: {e}") from e

    @staticmethod
    def _wrap(operation: str, path: str, e: git.exc.GitCommandError) -> GitOperationError:
        """Convert a GitCommandError into a GitOperationError with stderr and status."""
        stderr = (e.stderr if hasattr(e, "stderr") and e.stderr else str(e)).strip()
        status = e.status if hasattr(e, "status") else None
        returncode = status if isinstance(status, int) else None

        if stderr:
            error_msg = f"git {operation} failed (exit {status}): {stderr}"
        else:
            error_msg = f"git {operation} failed with exit code {status}"
        return GitOperationError(operation, path, error_msg, returncode=returncode)

    def origin_url(self, path: str) -> str:
        """URL of the `origin` remote of the repository at `path`."""
        repo = self._get_repo(path)
        try:
            return repo.git.remote("get-url", "origin").strip()
        except git.exc.GitCommandError as e:
            raise self._wrap("remote get-url origin", path, e) from e

    def create_worktree(self, repo_path: str, tree: str) -> None:
        """Run `git worktree add <tree>` in the checkout at `repo_path`."""
        repo = self._get_repo(repo_path)
        try:
            repo.git.worktree("add", tree)
        except git.exc.GitCommandError as e:
            raise self._wrap("worktree add", repo_path, e) from e
        logger.info(f"Created worktree at {tree}")

    def remove_worktree(self, repo_path: str, tree: str) -> None:
        """Run `git worktree remove --force <tree>`."""
        repo = self._get_repo(repo_path)
        try:
            repo.git.worktree("remove", "--force", tree)
        except git.exc.GitCommandError as e:
            raise self._wrap("worktree remove", repo_path, e) from e
        logger.info(f"Removed worktree at {tree}")

    def commit(self, path: str, message: str = BOOTSTRAP_COMMIT_MESSAGE) -> None:
        """Stage everything and commit it."""
        repo = self._get_repo(path)
        try:
            repo.git.add(".")
            repo.git.commit("-m", message)
        except git.exc.GitCommandError as e:
            raise self._wrap("commit", path, e) from e
        logger.debug(f"Committed '{message}' in {path}")

    def amend_commit(self, path: str) -> None:
        """Stage everything and fold it into the last commit."""
        repo = self._get_repo(path)
        try:
            repo.git.add(".")
            repo.git.commit("--amend", "--no-edit")
        except git.exc.GitCommandError as e:
            raise self._wrap("commit --amend", path, e) from e
        logger.debug(f"Amended last commit in {path}")

    def push(self, path: str) -> None:
        """Force-push the current branch."""
        repo = self._get_repo(path)
        try:
            repo.git.push("-f")
        except git.exc.GitCommandError as e:
            raise self._wrap("push", path, e) from e
        logger.info(f"Pushed {path}")

    def pull(self, path: str) -> None:
        """Pull the checked out branch from its upstream."""
        repo = self._get_repo(path)
        try:
            repo.git.pull()
        except git.exc.GitCommandError as e:
            raise self._wrap("pull", path, e) from e
        logger.debug(f"Pulled {path}")

    def clone(self, parent: str, owner: str, repo: str) -> str:
        """Clone `owner/repo` over ssh into `parent/<repo>` and return its path."""
        url = CLONE_URL_TEMPLATE.format(owner=owner, repo=repo)
        target = os.path.join(parent, repo)
        try:
            git.Repo.clone_from(url, target)
        except git.exc.GitCommandError as e:
            raise self._wrap("clone", parent, e) from e
        logger.info(f"Cloned {owner}/{repo} into {target}")
        return target

    def is_dirty(self, path: str, untracked_files: bool = True) -> bool:
        """True when the tree has staged, modified or (optionally) untracked files."""
        repo = self._get_repo(path)
        try:
            return repo.is_dirty(untracked_files=untracked_files)
        except git.exc.GitCommandError as e:
            raise self._wrap("status", path, e) from e
