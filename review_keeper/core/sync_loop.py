"""Background loop pulling, reviewing and applying across every project"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from review_keeper.constants import DEFAULT_SYNC_INTERVAL
from review_keeper.exceptions import DeadlineExceeded, ReviewKeeperError
from review_keeper.logging_config import get_logger

if TYPE_CHECKING:
    from review_keeper.core.project import Project
    from review_keeper.core.workspace import Workspace
    from review_keeper.services.agent import AgentRunner
    from review_keeper.services.git.operations import GitOperations
    from review_keeper.services.github_client import ReviewClient
    from review_keeper.services.review_cache import ReviewCache

logger = get_logger(__name__)


class LoopState(Enum):
    """Phase the loop is currently in."""

    IDLE = "idle"
    PULLING = "pulling"
    REVIEWING = "reviewing"
    APPLYING = "applying"


class Deadline:
    """Point in time after which a tick stops starting new work."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at = clock() + seconds

    def expired(self) -> bool:
        return self._clock() >= self.expires_at

    def check(self, step: str) -> None:
        """Raise DeadlineExceeded if the deadline has passed."""
        if self.expired():
            raise DeadlineExceeded(step)


@dataclass
class TickReport:
    """What one tick did."""

    pulled: List[str] = field(default_factory=list)  # project titles
    reviewed: List[str] = field(default_factory=list)  # owner/repo:branch with applied reviews
    applied: List[str] = field(default_factory=list)  # owner/repo:branch with applied tasks
    failures: List[Tuple[str, str]] = field(default_factory=list)  # (project title, error)
    deadline_exceeded: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.deadline_exceeded


class _AbortTick(Exception):
    """Internal signal that a project failure ends the whole tick."""


class SyncLoop:
    """Periodic driver: pull each checkout, apply reviews, auto-apply tasks."""

    def __init__(
        self,
        workspace: "Workspace",
        client: "ReviewClient",
        agent: "AgentRunner",
        git_ops: "GitOperations",
        cache: Optional["ReviewCache"] = None,
        interval: float = DEFAULT_SYNC_INTERVAL,
        isolate_failures: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the loop.

        Args:
            workspace: Workspace whose projects are synchronized
            client: Review client (shared, rate-limited)
            agent: Execution agent runner
            git_ops: Git service
            cache: Review cache shared with other consumers
            interval: Seconds between tick starts; also each tick's deadline
            isolate_failures: Keep going with other projects when one fails.
                False ends the tick at the first failure.
            clock: Monotonic clock, injectable for tests
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.workspace = workspace
        self.client = client
        self.agent = agent
        self.git_ops = git_ops
        self.cache = cache
        self.interval = interval
        self.isolate_failures = isolate_failures
        self._clock = clock
        self.state = LoopState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _sync_project(self, project: "Project", deadline: Deadline, report: TickReport) -> None:
        title = project.title()

        self.state = LoopState.PULLING
        deadline.check(f"pull of {title}")
        self.git_ops.pull(project.repo_path)
        report.pulled.append(title)

        self.state = LoopState.REVIEWING
        for wt in project.worktrees:
            deadline.check(f"review of {title}:{wt.name}")
            outcome = wt.review(self.client, self.agent, self.git_ops, self.cache)
            if outcome.found_review:
                logger.info(f"Got review for {title}:{wt.name}")
                report.reviewed.append(f"{title}:{wt.name}")

        self.state = LoopState.APPLYING
        for wt in project.worktrees:
            if not wt.needs_task_apply:
                continue
            deadline.check(f"apply of {title}:{wt.name}")
            wt.apply_tasks(self.agent, self.git_ops)
            report.applied.append(f"{title}:{wt.name}")

    def tick(self) -> TickReport:
        """Run one pass over every project on disk."""
        report = TickReport()
        deadline = Deadline(self.interval, self._clock)
        started = self._clock()

        try:
            for project in self.workspace.load_projects():
                try:
                    self._sync_project(project, deadline, report)
                except DeadlineExceeded:
                    raise
                except Exception as e:
                    # Tracebacks only for errors outside the tool and git taxonomy
                    expected = isinstance(e, (ReviewKeeperError, OSError))
                    logger.error(f"Sync of {project.title()} failed: {e}", exc_info=not expected)
                    report.failures.append((project.title(), str(e)))
                    if not self.isolate_failures:
                        raise _AbortTick() from e
        except DeadlineExceeded as e:
            logger.warning(f"{e}; remaining work moves to the next tick")
            report.deadline_exceeded = True
        except _AbortTick:
            logger.warning("Ending tick after first failure")
        finally:
            self.state = LoopState.IDLE

        logger.info(
            f"Tick finished in {self._clock() - started:.1f}s: pulled={len(report.pulled)} "
            f"reviewed={len(report.reviewed)} applied={len(report.applied)} "
            f"failures={len(report.failures)}"
        )
        return report

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Tick until `stop_event` is set; a long tick delays the next one."""
        stop_event = stop_event or self._stop_event
        logger.info(f"Sync loop started (interval {self.interval:.0f}s)")
        while not stop_event.is_set():
            started = self._clock()
            try:
                self.tick()
            except Exception as e:
                # The loop must outlive any single tick
                logger.error(f"Sync tick crashed: {e}", exc_info=True)
            elapsed = self._clock() - started
            if stop_event.wait(max(0.0, self.interval - elapsed)):
                break
        logger.info("Sync loop stopped")

    def start(self) -> None:
        """Run the loop on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run_forever, args=(self._stop_event,), name="sync-loop", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the loop to stop and wait for the current tick to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
