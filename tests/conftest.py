from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

FAKE_GIT_URL = "git@github.com:foo/bar.git"


class GitRepo:
    """Throwaway repository driven through the real git binary."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def run(self, *args: str) -> str:
        completed = subprocess.run(
            ["git", *args],
            cwd=self.path,
            check=True,
            capture_output=True,
            text=True,
        )
        return completed.stdout.strip()

    def init(self) -> "GitRepo":
        self.run("init", "--quiet")
        self.run("symbolic-ref", "HEAD", "refs/heads/main")
        self.run("config", "user.name", "test")
        self.run("config", "user.email", "test@example.com")
        self.run("config", "commit.gpgSign", "false")
        self.run("config", "tag.gpgSign", "false")
        return self

    def remote_add(self, url: str = FAKE_GIT_URL) -> None:
        self.run("remote", "add", "origin", url)

    def add(self) -> None:
        self.run("add", "-A")

    def commit(self, message: str) -> None:
        self.run("commit", "--allow-empty", "--quiet", "-m", message)

    def tag(self, name: str) -> None:
        self.run("tag", name)

    def annotated_tag(self, name: str, message: str) -> None:
        self.run("tag", "-a", name, "-m", message)

    def checkout_branch(self, name: str) -> None:
        self.run("checkout", "--quiet", "-b", name)


@pytest.fixture()
def git_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate git from the developer's configuration."""

    if shutil.which("git") is None:
        pytest.skip("git is not installed")
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(home / ".gitconfig"))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    for name in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture()
def work_dir(git_env: Path) -> Path:
    path = git_env / "work"
    path.mkdir()
    return path


@pytest.fixture()
def repo(work_dir: Path) -> GitRepo:
    return GitRepo(work_dir).init()
