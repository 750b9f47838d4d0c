import subprocess
import threading
import time

import pytest

from repoinfo.core import runner
from repoinfo.core.errors import CancelledError, GitCommandError, GitTimeoutError, NoGitError, NotRepositoryError


class FakeProcess:
    def __init__(self, cmd, out="", err="", code=0, hang=False, on_wait=None, **kwargs):
        self.cmd = cmd
        self.kwargs = kwargs
        self.pid = 4242
        self.returncode = None
        self.killed = False
        self._result = (out, err, code)
        self._hang = hang
        self._on_wait = on_wait

    def communicate(self, timeout=None):
        if self.killed:
            self.returncode = -9
            return "", ""
        if self._hang:
            if self._on_wait:
                self._on_wait()
            time.sleep(timeout or 0)
            raise subprocess.TimeoutExpired(self.cmd, timeout)
        stdout, stderr, self.returncode = self._result
        return stdout, stderr

    def kill(self):
        self.killed = True


def _install(monkeypatch: pytest.MonkeyPatch, **behaviour) -> list:
    created: list = []

    def factory(cmd, **kwargs):
        proc = FakeProcess(cmd, **behaviour, **kwargs)
        created.append(proc)
        return proc

    monkeypatch.setattr(runner.subprocess, "Popen", factory)
    return created


def test_run_git_returns_stripped_stdout(monkeypatch: pytest.MonkeyPatch):
    created = _install(monkeypatch, out="main\n")
    assert runner.run_git(["rev-parse", "--abbrev-ref", "HEAD"], "/repo") == "main"
    proc = created[0]
    assert proc.cmd == ["git", "rev-parse", "--abbrev-ref", "HEAD"]
    assert proc.kwargs["cwd"] == "/repo"
    assert proc.kwargs["env"]["LC_ALL"] == "C"


def test_run_git_raises_with_stderr(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, err="fatal: boom\n", code=128)
    with pytest.raises(GitCommandError) as excinfo:
        runner.run_git(["status"])
    assert str(excinfo.value) == "fatal: boom"
    assert excinfo.value.returncode == 128
    assert excinfo.value.command == ["git", "status"]


def test_run_git_error_without_output(monkeypatch: pytest.MonkeyPatch):
    _install(monkeypatch, code=1)
    with pytest.raises(GitCommandError, match="exited with status 1"):
        runner.run_git(["describe", "--tags"])


def test_missing_executable_is_no_git(monkeypatch: pytest.MonkeyPatch):
    def boom(cmd, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "git")

    monkeypatch.setattr(runner.subprocess, "Popen", boom)
    with pytest.raises(NoGitError):
        runner.run_git(["status"])


def test_find_git_without_path(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(runner.shutil, "which", lambda name: None)
    with pytest.raises(NoGitError):
        runner.find_git()


def test_cancel_kills_running_process(monkeypatch: pytest.MonkeyPatch):
    cancel = threading.Event()
    created = _install(monkeypatch, hang=True, on_wait=cancel.set)
    with pytest.raises(CancelledError) as excinfo:
        runner.run_git(["status"], cancel=cancel)
    assert not isinstance(excinfo.value, GitTimeoutError)
    assert created[0].killed is True


def test_cancel_set_before_start_skips_process(monkeypatch: pytest.MonkeyPatch):
    created = _install(monkeypatch)
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(CancelledError):
        runner.run_git(["status"], cancel=cancel)
    assert created == []


def test_deadline_kills_running_process(monkeypatch: pytest.MonkeyPatch):
    created = _install(monkeypatch, hang=True)
    with pytest.raises(GitTimeoutError):
        runner.run_git(["status"], deadline=runner.Deadline.after(0.05))
    assert created[0].killed is True


def test_deadline_without_timeout_never_expires():
    deadline = runner.Deadline.after(None)
    assert deadline.remaining() is None
    assert deadline.expired() is False
    assert runner.Deadline(expires_at=time.monotonic() - 1).expired() is True


def test_interrupt_kills_running_process(monkeypatch: pytest.MonkeyPatch):
    def interrupt():
        raise KeyboardInterrupt

    created = _install(monkeypatch, hang=True, on_wait=interrupt)
    with pytest.raises(KeyboardInterrupt):
        runner.run_git(["status"])
    assert created[0].killed is True


def test_output_decoding_never_raises(monkeypatch: pytest.MonkeyPatch):
    created = _install(monkeypatch, out="ok\n")
    runner.run_git(["status"])
    assert created[0].kwargs["encoding"] == "utf-8"
    assert created[0].kwargs["errors"] == "replace"


def test_unusable_working_directory_is_not_repository(monkeypatch: pytest.MonkeyPatch, tmp_path):
    target = tmp_path / "locked"
    target.mkdir()

    def boom(cmd, **kwargs):
        raise PermissionError(13, "Permission denied", kwargs["cwd"])

    monkeypatch.setattr(runner.subprocess, "Popen", boom)
    with pytest.raises(NotRepositoryError, match="Permission denied"):
        runner.run_git(["status"], str(target))
