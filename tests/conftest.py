"""
Shared pytest fixtures for the revstream test suite.

Usage in tests:
    def test_something(history):
        result = RevisionWalker(git=history.fake_git()).walk()

    def test_with_sink(recording_sink):
        walker = RevisionWalker(git=..., diagnostics=recording_sink)
"""

import subprocess

import pytest

from revstream.config import WalkConfig
from revstream.services.diagnostics import RecordingSink
from tests.factories import LogStreamFactory, git_is_available


@pytest.fixture
def history():
    """Eight linear commits, newest first (ids make_id(8) .. make_id(1))."""
    return LogStreamFactory().linear(8)


@pytest.fixture
def recording_sink():
    """Diagnostic sink that keeps every message for assertions."""
    return RecordingSink()


@pytest.fixture
def walk_config():
    """Walk settings without the legacy timestamp offset."""
    return WalkConfig(timestamp_offset_ms=0)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """
    Keep tests away from the real ~/.revstream and REVSTREAM_* variables.
    """
    from revstream.config import ConfigManager

    user_dir = tmp_path / "user_home" / ".revstream"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", user_dir)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", user_dir / "config.yaml")
    for var in ("REVSTREAM_GIT", "REVSTREAM_MAX_RESULTS", "REVSTREAM_PUBLISH_EVERY",
                "REVSTREAM_PROJECT_PATH", "REVSTREAM_ASCII_ONLY", "REVSTREAM_UNICODE"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def temp_git_repo(tmp_path):
    """
    Create a temporary git repository with three commits.

    Skips if git is not available.
    """
    if not git_is_available():
        pytest.skip("Git is not installed or not available")

    repo = tmp_path / "test_repo"
    repo.mkdir()

    def git(*args):
        subprocess.run(["git", *args], cwd=repo, capture_output=True, check=True)

    try:
        git("init")
        git("config", "user.email", "test@test.com")
        git("config", "user.name", "Test User")
        git("config", "commit.gpgsign", "false")
        for n in range(1, 4):
            (repo / "file.txt").write_text(f"version {n}\n")
            git("add", ".")
            git("commit", "-m", f"Commit {n}", "-m", f"Body of commit {n}")
    except subprocess.CalledProcessError:
        pytest.skip("Could not create test git repository")

    return repo


@pytest.fixture
def non_git_dir(tmp_path):
    """Create a directory that is not a git repository."""
    d = tmp_path / "not_git"
    d.mkdir()
    return d
