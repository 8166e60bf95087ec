"""Tests for GitOperations and origin parsing"""
from pathlib import Path
from unittest.mock import patch

import git
import pytest

from review_keeper.exceptions import GitOperationError, OriginParseError, ToolInvocationError
from review_keeper.services.git.operations import GitOperations, parse_origin


class TestParseOrigin:
    """Test owner/repo extraction from remote URLs."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("git@github.com:octo/widgets.git", ("octo", "widgets")),
            ("git@github.com:octo/widgets", ("octo", "widgets")),
            ("https://github.com/octo/widgets.git", ("octo", "widgets")),
            ("https://github.com/octo/widgets", ("octo", "widgets")),
            ("https://github.com/octo/widgets/", ("octo", "widgets")),
            ("git@ghe.example.com:team/tool.git\n", ("team", "tool")),
        ],
    )
    def test_supported_forms(self, url, expected):
        assert parse_origin(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "git@github.com",
            "git@github.com:octo",
            "https://github.com/octo",
            "https://github.com/octo/widgets/extra",
            "ftp://github.com/octo/widgets.git",
            "/local/path/repo.git",
        ],
    )
    def test_malformed(self, url):
        with pytest.raises(OriginParseError):
            parse_origin(url)

    def test_is_value_error(self):
        """Callers catching ValueError also catch origin parse failures."""
        with pytest.raises(ValueError):
            parse_origin("nope")


class TestGitOperations:
    """Test git commands against real repositories."""

    def test_origin_url(self, git_repo):
        ops = GitOperations()
        assert ops.origin_url(git_repo.working_dir) == "git@github.com:test/test-repo.git"

    def test_origin_url_missing_remote(self, init_repo, temp_dir):
        repo = init_repo(temp_dir / "no_remote")
        with pytest.raises(GitOperationError):
            GitOperations().origin_url(repo.working_dir)

    def test_not_a_repository(self, temp_dir):
        with pytest.raises(GitOperationError):
            GitOperations().origin_url(str(temp_dir))

    def test_create_and_remove_worktree(self, git_repo, temp_dir):
        """A created worktree checks out a branch named after its directory."""
        ops = GitOperations()
        tree = temp_dir / "worktrees" / "feature-x"
        tree.parent.mkdir()

        ops.create_worktree(git_repo.working_dir, str(tree))

        assert (tree / "README.md").exists()
        assert git.Repo(str(tree)).active_branch.name == "feature-x"

        ops.remove_worktree(git_repo.working_dir, str(tree))
        assert not tree.exists()

    def test_remove_dirty_worktree_is_forced(self, git_repo, temp_dir):
        ops = GitOperations()
        tree = temp_dir / "dirty"
        ops.create_worktree(git_repo.working_dir, str(tree))
        (tree / "scratch.txt").write_text("uncommitted\n")

        ops.remove_worktree(git_repo.working_dir, str(tree))
        assert not tree.exists()

    def test_remove_unknown_worktree_fails(self, git_repo, temp_dir):
        with pytest.raises(GitOperationError) as exc_info:
            GitOperations().remove_worktree(git_repo.working_dir, str(temp_dir / "nope"))
        assert isinstance(exc_info.value, ToolInvocationError)
        assert "worktree remove" in str(exc_info.value)

    def test_create_existing_worktree_fails(self, git_repo, temp_dir):
        ops = GitOperations()
        tree = temp_dir / "twice"
        ops.create_worktree(git_repo.working_dir, str(tree))
        with pytest.raises(GitOperationError):
            ops.create_worktree(git_repo.working_dir, str(tree))

    def test_commit_and_is_dirty(self, git_repo):
        ops = GitOperations()
        path = git_repo.working_dir
        assert ops.is_dirty(path) is False

        (Path(path) / "new.txt").write_text("new\n")
        assert ops.is_dirty(path) is True

        ops.commit(path, "Add new file")
        assert ops.is_dirty(path) is False
        assert git_repo.head.commit.message.strip() == "Add new file"

    def test_commit_clean_tree_fails(self, git_repo):
        """Committing with nothing staged is a git error."""
        with pytest.raises(GitOperationError):
            GitOperations().commit(git_repo.working_dir, "empty")

    def test_amend_commit_keeps_history_length(self, git_repo):
        ops = GitOperations()
        path = git_repo.working_dir
        count = len(list(git_repo.iter_commits()))

        (Path(path) / "README.md").write_text("# Changed\n")
        ops.amend_commit(path)

        assert len(list(git_repo.iter_commits())) == count
        assert ops.is_dirty(path) is False
        assert git_repo.head.commit.message.strip() == "Initial commit"

    def test_pull_and_force_push(self, cloned_repo, temp_dir):
        """Amended history is force-pushed, and a fresh pull succeeds."""
        ops = GitOperations()
        path = cloned_repo.working_dir

        ops.pull(path)

        (Path(path) / "README.md").write_text("# Amended\n")
        ops.amend_commit(path)
        ops.push(path)

        remote = git.Repo(str(temp_dir / "remote.git"))
        assert remote.heads.main.commit.hexsha == cloned_repo.head.commit.hexsha

    def test_pull_without_upstream_fails(self, init_repo, temp_dir):
        repo = init_repo(temp_dir / "lonely")
        with pytest.raises(GitOperationError):
            GitOperations().pull(repo.working_dir)

    def test_clone_uses_ssh_url(self, temp_dir):
        with patch("review_keeper.services.git.operations.git.Repo.clone_from") as mock_clone:
            target = GitOperations().clone(str(temp_dir), "octo", "widgets")

        mock_clone.assert_called_once_with(
            "git@github.com:octo/widgets.git", str(temp_dir / "widgets")
        )
        assert target == str(temp_dir / "widgets")

    def test_clone_failure_is_wrapped(self, temp_dir):
        error = git.exc.GitCommandError(["git", "clone"], 128, stderr="Repository not found")
        with patch("review_keeper.services.git.operations.git.Repo.clone_from", side_effect=error):
            with pytest.raises(GitOperationError) as exc_info:
                GitOperations().clone(str(temp_dir), "octo", "missing")
        assert exc_info.value.returncode == 128
        assert "Repository not found" in str(exc_info.value)
