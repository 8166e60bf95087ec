"""Pytest fixtures for review-keeper tests"""
import json
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
import requests

from review_keeper.config import Config

TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def testdata_dir():
    """Directory holding recorded tool and API payloads."""
    return TESTDATA


@pytest.fixture
def status_payload():
    """A recorded `openspec status --json` payload."""
    return json.loads((TESTDATA / "status.json").read_text())


@pytest.fixture
def mock_config(temp_dir):
    """Create a configuration rooted in a temporary workspace."""
    return Config(
        workspace=temp_dir / "workspace",
        github_token="test_token_for_testing",
        sequential=True,
    )


def _init_repo(repo_path: Path, origin: str = None) -> git.Repo:
    repo_path.mkdir(parents=True)
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    repo.git.branch("-M", "main")

    if origin:
        repo.create_remote("origin", origin)
    return repo


@pytest.fixture
def init_repo():
    """Factory creating a repository with one commit on main."""
    return _init_repo


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with a GitHub origin."""
    repo = _init_repo(temp_dir / "test_repo", "git@github.com:test/test-repo.git")
    yield repo
    repo.close()


@pytest.fixture
def cloned_repo(temp_dir):
    """A clone tracking a local bare repository, so pull and push work offline."""
    source = _init_repo(temp_dir / "source")
    bare = source.clone(str(temp_dir / "remote.git"), bare=True)
    clone = git.Repo.clone_from(str(temp_dir / "remote.git"), str(temp_dir / "clone"))
    clone.config_writer().set_value("user", "name", "Test User").release()
    clone.config_writer().set_value("user", "email", "test@example.com").release()
    yield clone
    clone.close()
    bare.close()
    source.close()


@pytest.fixture
def make_response():
    """Factory for fake `requests` responses."""

    def _make(status_code=200, json_data=None, headers=None, text="", url="https://api.github.com/test"):
        resp = Mock()
        resp.status_code = status_code
        resp.headers = headers or {}
        resp.text = text
        resp.url = url
        if isinstance(json_data, Exception):
            resp.json.side_effect = json_data
        else:
            resp.json.return_value = json_data
        return resp

    return _make


@pytest.fixture
def http_session():
    """A real requests.Session whose `get` is a Mock."""
    session = requests.Session()
    session.get = Mock()
    return session


@pytest.fixture
def rate_limiter():
    """A rate limiter stand-in that records waits without sleeping."""
    limiter = Mock()
    limiter.wait = Mock()
    limiter.stop = Mock()
    return limiter
