"""Command-line argument parsing for review-keeper."""

import argparse
from typing import List, Optional

from review_keeper.__version__ import __version__
from review_keeper.config import default_workspace
from review_keeper.constants import DEFAULT_SYNC_INTERVAL


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument(
        "--workspace",
        default=str(default_workspace()),
        help="Directory holding repo/ and worktree/ (default: %(default)s)",
    )
    parser.add_argument("--token", help="GitHub token (default: GITHUB_TOKEN environment variable)")
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Number of parallel workers for status derivation (default: auto-detect based on CPU and threading mode)",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Force sequential status derivation (disable parallelism)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with one subparser per command."""
    parser = argparse.ArgumentParser(
        prog="review-keeper",
        description="Keep worktrees in sync with their pull request reviews",
        epilog="Setup: set GITHUB_TOKEN (or pass --token) to read private repositories "
        "and raise the API rate limit.",
    )
    parser.add_argument("--version", action="version", version=f"review-keeper {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    _add_common_arguments(common)

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    github = subparsers.add_parser(
        "github", parents=[common], help="Print the review prompt for a GitHub pull request"
    )
    github.add_argument(
        "target", help="Pull request URL (https://github.com/owner/repo/pull/123) or owner/repo"
    )
    github.add_argument(
        "number",
        type=int,
        nargs="?",
        default=0,
        help="Pull request number when target is owner/repo (default: latest open)",
    )

    tuicr = subparsers.add_parser(
        "tuicr", parents=[common], help="Print the review prompt for a tuicr review export"
    )
    tuicr.add_argument("file", help="tuicr review JSON file")

    subparsers.add_parser(
        "status", parents=[common], help="Show projects, worktrees and their change status"
    )

    clone = subparsers.add_parser("clone", parents=[common], help="Clone a repository into the workspace")
    clone.add_argument("repository", help="Repository as owner/repo")

    remove_project = subparsers.add_parser(
        "remove-project", parents=[common], help="Delete a project and all of its worktrees"
    )
    remove_project.add_argument("project", help="Project as owner/repo or checkout directory name")

    add_worktree = subparsers.add_parser(
        "add-worktree", parents=[common], help="Create a bootstrapped worktree in a project"
    )
    add_worktree.add_argument("project", help="Project as owner/repo or checkout directory name")
    add_worktree.add_argument("name", help="Worktree (and branch) name")

    remove_worktree = subparsers.add_parser(
        "remove-worktree", parents=[common], help="Force-remove a worktree from a project"
    )
    remove_worktree.add_argument("project", help="Project as owner/repo or checkout directory name")
    remove_worktree.add_argument("name", help="Worktree (and branch) name")

    sync = subparsers.add_parser(
        "sync", parents=[common], help="Pull, apply reviews and apply tasks periodically"
    )
    sync.add_argument("--once", action="store_true", help="Run a single tick and exit")
    sync.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_SYNC_INTERVAL,
        help="Seconds between ticks, also each tick's deadline (default: %(default)s)",
    )
    sync.add_argument(
        "--fail-fast",
        action="store_true",
        help="End a tick at the first project failure instead of moving on",
    )
    sync.add_argument("--model", help="Agent model (default: configured default model)")

    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
