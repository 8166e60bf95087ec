"""Tests for Project and Worktree"""
import os
from unittest.mock import Mock, call, patch

import pytest

from review_keeper.constants import BOOTSTRAP_COMMIT_MESSAGE
from review_keeper.core.project import Project, ReviewOutcome, Worktree
from review_keeper.exceptions import GitOperationError, OriginParseError, ToolInvocationError
from review_keeper.formatters import render_review
from review_keeper.models.pull_request import PullRequest
from review_keeper.models.review import FormattedComment, FormattedReview
from review_keeper.models.status import Status
from review_keeper.services.git.operations import GitOperations
from review_keeper.services.review_cache import ReviewCache


def make_pull(number):
    return PullRequest(
        number=number, title="", created_at=None, html_url="", head_sha="abc1234", head_pushed_at=None
    )


@pytest.fixture
def status_reader():
    """Status reader deriving a distinct change per worktree directory."""
    reader = Mock()
    reader.derive_status.side_effect = lambda path: Status(change_name=os.path.basename(path))
    return reader


@pytest.fixture
def git_ops():
    ops = Mock(spec=GitOperations)
    ops.is_dirty.return_value = True
    return ops


@pytest.fixture
def project(temp_dir, git_ops, status_reader):
    return Project(
        str(temp_dir / "repo" / "widgets"),
        str(temp_dir / "worktree" / "widgets"),
        "octo",
        "widgets",
        git_ops,
        status_reader,
        sequential=True,
    )


def make_worktree_dirs(project, *names):
    for name in names:
        os.makedirs(os.path.join(project.worktree_path, name))


class TestProjectRefresh:
    """Test rebuilding the worktree set from disk."""

    def test_sorted_by_name(self, project):
        """Worktrees are always kept in name order."""
        make_worktree_dirs(project, "zeta", "alpha", "mid")
        with open(os.path.join(project.worktree_path, "notes.txt"), "w") as f:
            f.write("not a worktree")

        project.refresh()

        assert [wt.name for wt in project.worktrees] == ["alpha", "mid", "zeta"]
        assert [wt.status.change_name for wt in project.worktrees] == ["alpha", "mid", "zeta"]
        assert project.worktrees[0].path == os.path.join(project.worktree_path, "alpha")
        assert project.worktrees[0].owner == "octo"

    def test_parallel_matches_sequential(self, project):
        make_worktree_dirs(project, *[f"wt-{i:02d}" for i in range(12)])
        project.refresh()
        sequential = [(wt.name, wt.status) for wt in project.worktrees]

        project.sequential = False
        project.max_workers = 4
        project.refresh()

        assert [(wt.name, wt.status) for wt in project.worktrees] == sequential

    def test_missing_directory_is_empty(self, project):
        project.refresh()
        assert project.worktrees == []

    def test_refresh_replaces_whole_set(self, project):
        make_worktree_dirs(project, "a", "b")
        project.refresh()
        os.rmdir(os.path.join(project.worktree_path, "a"))

        project.refresh()

        assert [wt.name for wt in project.worktrees] == ["b"]

    def test_failed_refresh_keeps_previous_set(self, project):
        """Errors other than a missing directory propagate and change nothing."""
        make_worktree_dirs(project, "a")
        project.refresh()

        with patch("review_keeper.core.project.os.scandir", side_effect=PermissionError("denied")):
            with pytest.raises(PermissionError):
                project.refresh()

        assert [wt.name for wt in project.worktrees] == ["a"]

    def test_failed_status_is_none(self, project, status_reader):
        """A worktree whose status cannot be derived is still listed."""
        status_reader.derive_status.side_effect = None
        status_reader.derive_status.return_value = None
        make_worktree_dirs(project, "a")

        project.refresh()

        assert project.worktrees[0].status is None
        assert project.worktrees[0].description() == "No openspec setup"


class TestProjectLoad:
    """Test loading a project from a checkout."""

    def test_load_reads_origin(self, git_repo, temp_dir, status_reader):
        project = Project.load(
            git_repo.working_dir, str(temp_dir / "worktree"), GitOperations(), status_reader
        )
        assert project.title() == "test/test-repo"
        assert project.worktree_path == str(temp_dir / "worktree" / "test_repo")
        assert project.worktrees == []

    def test_load_bad_origin(self, init_repo, temp_dir, status_reader):
        repo = init_repo(temp_dir / "odd", "/srv/git/odd.git")
        with pytest.raises(OriginParseError):
            Project.load(repo.working_dir, str(temp_dir / "worktree"), GitOperations(), status_reader)


class TestProjectWorktrees:
    """Test adding and deleting worktrees."""

    def test_add_worktree_bootstraps_and_commits(self, project, git_ops, status_reader):
        worktree = project.add_worktree("feature", tools="opencode", model="m1")

        tree = os.path.join(project.worktree_path, "feature")
        git_ops.create_worktree.assert_called_once_with(project.repo_path, tree)
        status_reader.init.assert_called_once_with(tree, "opencode")
        git_ops.commit.assert_called_once_with(tree, BOOTSTRAP_COMMIT_MESSAGE)
        assert worktree.status == Status(change_name="feature")
        assert worktree.model == "m1"
        assert os.path.isdir(project.worktree_path)

    def test_add_worktree_clean_tree_skips_commit(self, project, git_ops):
        git_ops.is_dirty.return_value = False
        project.add_worktree("feature")
        git_ops.commit.assert_not_called()

    def test_add_keeps_order_and_replaces_same_name(self, project):
        for name in ("m", "a", "z"):
            project.add_worktree(name)
        first_m = project.get_worktree("m")

        project.add_worktree("m")

        assert [wt.name for wt in project.worktrees] == ["a", "m", "z"]
        assert project.get_worktree("m") is not first_m

    def test_failed_creation_adds_nothing(self, project, git_ops, status_reader):
        git_ops.create_worktree.side_effect = GitOperationError("worktree add", project.repo_path, "exists")

        with pytest.raises(GitOperationError):
            project.add_worktree("feature")

        assert project.worktrees == []
        status_reader.init.assert_not_called()

    def test_delete_worktree(self, project, git_ops):
        for name in ("a", "b", "c"):
            project.add_worktree(name)

        project.delete_worktree("b")

        git_ops.remove_worktree.assert_called_once_with(
            project.repo_path, os.path.join(project.worktree_path, "b")
        )
        assert [wt.name for wt in project.worktrees] == ["a", "c"]

    def test_delete_failure_keeps_worktree(self, project, git_ops):
        project.add_worktree("a")
        git_ops.remove_worktree.side_effect = GitOperationError("worktree remove")

        with pytest.raises(GitOperationError):
            project.delete_worktree("a")

        assert [wt.name for wt in project.worktrees] == ["a"]

    def test_descriptions(self, project):
        assert project.title() == "octo/widgets"
        assert project.filter_key() == "octo/widgets"
        assert project.description() == "0 worktrees"
        project.add_worktree("a")
        assert project.description() == "1 worktree"
        assert project.get_worktree("missing") is None

    def test_get_worktree_by_name(self, project):
        for name in ("delta", "alpha", "echo", "charlie", "bravo"):
            project.add_worktree(name)

        for name in ("alpha", "bravo", "charlie", "delta", "echo"):
            assert project.get_worktree(name).name == name
        assert project.get_worktree("aardvark") is None
        assert project.get_worktree("foxtrot") is None
        assert project.get_worktree("c") is None


@pytest.fixture
def worktree():
    return Worktree("feature", "/ws/worktree/widgets/feature", "octo", "widgets", model="m1")


@pytest.fixture
def review():
    return FormattedReview(
        commit_sha="abc1234",
        comments=[FormattedComment(file="a.py", line=3, type="issue", content="Fix it.")],
    )


class TestWorktreeReview:
    """Test handing reviews to the agent."""

    def test_no_open_pull(self, worktree):
        client, agent, git_ops = Mock(), Mock(), Mock()
        client.list_open_pulls_for_branch.return_value = []

        outcome = worktree.review(client, agent, git_ops)

        assert outcome is ReviewOutcome.NO_REVIEW
        assert outcome.found_review is False
        client.list_open_pulls_for_branch.assert_called_once_with("octo", "widgets", "feature")
        client.fetch_comments.assert_not_called()

    def test_no_current_comments(self, worktree):
        client, agent, git_ops = Mock(), Mock(), Mock()
        client.list_open_pulls_for_branch.return_value = [make_pull(7)]
        client.fetch_comments.return_value = FormattedReview(commit_sha="abc1234")

        outcome = worktree.review(client, agent, git_ops)

        assert outcome is ReviewOutcome.NO_COMMENTS
        assert outcome.found_review is False
        agent.prompt.assert_not_called()
        git_ops.push.assert_not_called()

    def test_applies_first_pull_review(self, worktree, review):
        """The first pull's review is prompted, amended and pushed in that order."""
        client, agent, git_ops = Mock(), Mock(), Mock()
        client.list_open_pulls_for_branch.return_value = [make_pull(7), make_pull(3)]
        client.fetch_comments.return_value = review
        cache = ReviewCache()
        seen_in_cache = []
        agent.prompt.side_effect = lambda *args: seen_in_cache.append(cache.get(worktree.path, 7))

        manager = Mock()
        manager.attach_mock(agent.prompt, "prompt")
        manager.attach_mock(git_ops.amend_commit, "amend_commit")
        manager.attach_mock(git_ops.push, "push")

        outcome = worktree.review(client, agent, git_ops, cache)

        assert outcome is ReviewOutcome.APPLIED
        assert outcome.found_review is True
        client.fetch_comments.assert_called_once_with("octo", "widgets", 7)
        assert manager.mock_calls == [
            call.prompt(worktree.path, "m1", render_review(review)),
            call.amend_commit(worktree.path),
            call.push(worktree.path),
        ]
        assert seen_in_cache == [render_review(review)]
        assert cache.get(worktree.path, 7) is None

    def test_agent_failure_keeps_cached_review(self, worktree, review):
        client, agent, git_ops = Mock(), Mock(), Mock()
        client.list_open_pulls_for_branch.return_value = [make_pull(7)]
        client.fetch_comments.return_value = review
        agent.prompt.side_effect = ToolInvocationError(["opencode"], returncode=1)
        cache = ReviewCache()

        with pytest.raises(ToolInvocationError):
            worktree.review(client, agent, git_ops, cache)

        git_ops.push.assert_not_called()
        assert cache.get(worktree.path, 7) == render_review(review)


class TestWorktreeApply:
    """Test the task auto-apply policy."""

    @pytest.mark.parametrize(
        "status, expected",
        [
            (Status("c", False, ["tasks"]), True),
            (Status("c", False, ["tasks", "specs"]), False),
            (Status("c", True, ["tasks"]), False),
            (Status("", False, []), False),
            (None, False),
        ],
    )
    def test_needs_task_apply(self, worktree, status, expected):
        worktree.status = status
        assert worktree.needs_task_apply is expected

    def test_apply_tasks(self, worktree):
        worktree.status = Status("c", False, ["tasks"])
        agent, git_ops = Mock(), Mock()

        worktree.apply_tasks(agent, git_ops)

        agent.run_command.assert_called_once_with(worktree.path, "m1", "opsx-apply")
        git_ops.push.assert_called_once_with(worktree.path)
