"""In-memory cache of formatted reviews per worktree and pull request."""
from typing import Dict, List, Optional

from review_keeper.logging_config import get_logger
from review_keeper.utils.threading import ReadWriteLock

logger = get_logger(__name__)


class ReviewCache:
    """Thread-safe store of formatted review text keyed by (worktree path, PR number).

    Reads share the lock with other reads; writes are exclusive.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._reviews: Dict[str, Dict[int, str]] = {}

    def get(self, worktree_path: str, pr_number: int) -> Optional[str]:
        """Return the cached review, or None if it is not cached."""
        with self._lock.read_locked():
            return self._reviews.get(worktree_path, {}).get(pr_number)

    def set(self, worktree_path: str, pr_number: int, review: str) -> None:
        """Store a review, replacing any previous one for the same key."""
        with self._lock.write_locked():
            self._reviews.setdefault(worktree_path, {})[pr_number] = review
        logger.debug(f"Cached review for PR #{pr_number} at {worktree_path}")

    def remove(self, worktree_path: str, pr_number: int) -> None:
        """Remove one cached review. Does nothing if it doesn't exist."""
        with self._lock.write_locked():
            wt_cache = self._reviews.get(worktree_path)
            if wt_cache is None:
                return
            wt_cache.pop(pr_number, None)
            if not wt_cache:
                del self._reviews[worktree_path]

    def remove_worktree(self, worktree_path: str) -> None:
        """Remove all cached reviews for a worktree."""
        with self._lock.write_locked():
            removed = self._reviews.pop(worktree_path, None)
        if removed:
            logger.debug(f"Dropped {len(removed)} cached review(s) for {worktree_path}")

    def get_all_for_worktree(self, worktree_path: str) -> Dict[int, str]:
        """Return a copy of all cached reviews for a worktree (empty if none)."""
        with self._lock.read_locked():
            return dict(self._reviews.get(worktree_path, {}))

    def worktrees(self) -> List[str]:
        """Paths that currently have cached reviews."""
        with self._lock.read_locked():
            return list(self._reviews)

    def clear(self) -> None:
        """Remove all cached reviews."""
        with self._lock.write_locked():
            self._reviews = {}

    def __len__(self) -> int:
        with self._lock.read_locked():
            return sum(len(v) for v in self._reviews.values())
