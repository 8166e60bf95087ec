"""Command-line interface for review-keeper"""

import sys
from typing import List, Optional

from rich.console import Console

from review_keeper.cli.args import parse_args
from review_keeper.config import Config
from review_keeper.core import SyncLoop, Workspace
from review_keeper.exceptions import ReviewKeeperError
from review_keeper.formatters import parse_tuicr_review, render_review
from review_keeper.logging_config import setup_logging
from review_keeper.services import (
    AgentRunner,
    ChangeStatusReader,
    GitOperations,
    RateLimiter,
    ReviewCache,
    ReviewClient,
    parse_pull_request_url,
)
from review_keeper.services.display_service import DisplayService
from review_keeper.utils.threading import get_threading_info

console = Console()


def _split_repository(value: str):
    owner, sep, repo = value.partition("/")
    if not sep or not owner or not repo or "/" in repo:
        raise ValueError(f"expected owner/repo, got '{value}'")
    return owner, repo


class App:
    """Process-wide services built once and shared by every command."""

    def __init__(self, config: Config):
        self.config = config
        self.rate_limiter = RateLimiter(config.requests_per_second)
        self.client = ReviewClient(
            token=config.github_token,
            base_url=config.api_base_url,
            timeout=config.request_timeout,
            rate_limiter=self.rate_limiter,
        )
        self.cache = ReviewCache()
        self.git_ops = GitOperations()
        self.status_reader = ChangeStatusReader(config.change_tool)
        self.agent = AgentRunner(config.agent_command, config.agent_model)
        self.workspace = Workspace(
            config.workspace,
            self.git_ops,
            self.status_reader,
            self.cache,
            agent_tools=config.agent_tools,
            agent_model=config.agent_model,
            max_workers=config.workers,
            sequential=config.sequential,
        )
        self.display = DisplayService(console)

    def close(self) -> None:
        self.client.close()

    def _project(self, key: str):
        project = self.workspace.find_project(key)
        if project is None:
            raise ValueError(f"no project '{key}' in {self.workspace.repo_dir}")
        return project

    def github(self, args) -> int:
        if args.target.startswith("http"):
            ref = parse_pull_request_url(args.target)
            owner, repo, number = ref.owner, ref.repo, ref.number
        else:
            (owner, repo), number = _split_repository(args.target), args.number
        review = self.client.review(owner, repo, number)
        print(render_review(review))
        return 0

    def tuicr(self, args) -> int:
        print(render_review(parse_tuicr_review(args.file)))
        return 0

    def status(self, args) -> int:
        self.workspace.bootstrap()
        self.display.display_status_table(self.workspace.load_projects())
        return 0

    def clone(self, args) -> int:
        owner, repo = _split_repository(args.repository)
        project = self.workspace.clone(owner, repo)
        console.print(f"[green]Cloned {project.title()} into {project.repo_path}[/green]")
        return 0

    def remove_project(self, args) -> int:
        project = self._project(args.project)
        self.workspace.delete_project(project)
        console.print(f"[green]Deleted {project.title()}[/green]")
        return 0

    def add_worktree(self, args) -> int:
        project = self._project(args.project)
        worktree = self.workspace.add_worktree(project, args.name)
        console.print(f"[green]Created {worktree.path} ({worktree.description()})[/green]")
        return 0

    def remove_worktree(self, args) -> int:
        project = self._project(args.project)
        self.workspace.delete_worktree(project, args.name)
        console.print(f"[green]Removed worktree {args.name} from {project.title()}[/green]")
        return 0

    def sync(self, args) -> int:
        self.workspace.bootstrap()
        loop = SyncLoop(
            self.workspace,
            self.client,
            self.agent,
            self.git_ops,
            self.cache,
            interval=self.config.interval,
            isolate_failures=self.config.isolate_failures,
        )
        if args.once:
            report = loop.tick()
            self.display.display_tick_report(report)
            return 0 if report.ok else 1

        console.print(f"[green]Syncing {self.workspace.root} every {self.config.interval:.0f}s (Ctrl+C to stop)[/green]")
        loop.run_forever()
        return 0


COMMANDS = {
    "github": App.github,
    "tuicr": App.tuicr,
    "status": App.status,
    "clone": App.clone,
    "remove-project": App.remove_project,
    "add-worktree": App.add_worktree,
    "remove-worktree": App.remove_worktree,
    "sync": App.sync,
}


def build_config(parsed_args) -> Config:
    """Build config from parsed arguments."""
    values = {
        "workspace": parsed_args.workspace,
        "github_token": parsed_args.token,
        "verbose": parsed_args.verbose,
        "debug": parsed_args.debug,
        "sequential": parsed_args.sequential,
        "workers": parsed_args.workers,
    }
    if parsed_args.command == "sync":
        values["interval"] = parsed_args.interval
        values["isolate_failures"] = not parsed_args.fail_fast
        if parsed_args.model:
            values["agent_model"] = parsed_args.model
    return Config.from_dict(values)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    app = None
    try:
        setup_logging(
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
            daemon_mode=parsed_args.command == "sync" and not parsed_args.once,
        )
        config = build_config(parsed_args)

        if parsed_args.debug:
            threading_info = get_threading_info()
            console.print("[yellow]Debug mode enabled[/yellow]")
            console.print(f"  Python version: {threading_info['python_version']}")
            console.print(f"  Threading mode: {threading_info['mode']}")
            console.print(f"  Optimal workers: {threading_info['optimal_workers']}")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                if key == "github_token" and value:
                    value = "***"
                console.print(f"  {key}: {value}")

        app = App(config)
        return COMMANDS[parsed_args.command](app, parsed_args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (ReviewKeeperError, ValueError, OSError) as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1
    finally:
        if app is not None:
            app.close()


if __name__ == "__main__":
    sys.exit(main())
