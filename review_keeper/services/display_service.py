"""Display service for workspace status and sync results"""
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from review_keeper.constants import COLUMNS
from review_keeper.core.project import Project
from review_keeper.core.sync_loop import TickReport
from review_keeper.formatters import format_status_label, get_status_style
from review_keeper.logging_config import get_logger

logger = get_logger(__name__)


class DisplayService:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_status_table(self, projects: List[Project]) -> None:
        """Display one row per worktree, grouped by project."""
        if not projects:
            self.console.print("[yellow]No projects in workspace. Use 'review-keeper clone owner/repo'.[/yellow]")
            return

        table = Table()
        for col in COLUMNS:
            table.add_column(col.label, width=col.width or None)

        for project in projects:
            worktrees = project.worktrees
            if not worktrees:
                table.add_row(project.title(), "[dim]-[/dim]", "", "", project.worktree_path)
                continue
            for wt in worktrees:
                change = wt.status.change_name if wt.status else ""
                table.add_row(
                    project.title(),
                    wt.title(),
                    change,
                    format_status_label(wt.status),
                    wt.path,
                    style=get_status_style(wt.status),
                )

        self.console.print(table)

    def display_tick_report(self, report: TickReport) -> None:
        """Summarize one sync tick."""
        self.console.print(
            f"Pulled {len(report.pulled)} project(s), applied {len(report.reviewed)} review(s), "
            f"applied tasks in {len(report.applied)} worktree(s)"
        )
        for name in report.reviewed:
            self.console.print(f"  [green]review[/green] {name}")
        for name in report.applied:
            self.console.print(f"  [green]tasks[/green] {name}")
        for title, error in report.failures:
            self.console.print(f"  [red]failed[/red] {title}: {error}")
        if report.deadline_exceeded:
            self.console.print("[yellow]Tick deadline exceeded; remaining work was skipped[/yellow]")
