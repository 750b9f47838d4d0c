"""Run read-only git queries with timeout and cancellation support."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from repoinfo.core.errors import CancelledError, GitCommandError, GitTimeoutError, NoGitError, NotRepositoryError

_LOG = logging.getLogger(__name__)

POLL_INTERVAL = 0.05
"""Seconds between checks of the cancel event while a git process runs."""


@dataclass
class Deadline:
    """Absolute point in time shared by every query of one extraction pass."""

    expires_at: Optional[float] = None

    @classmethod
    def after(cls, timeout: Optional[float]) -> "Deadline":
        if timeout is None:
            return cls()
        return cls(expires_at=time.monotonic() + timeout)

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return self.expires_at - time.monotonic()

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


def find_git() -> str:
    """Return the path of the git executable or raise :class:`NoGitError`."""

    executable = shutil.which("git")
    if not executable:
        raise NoGitError()
    return executable


def run_git(
    args: Sequence[str],
    cwd: Optional[str] = None,
    *,
    deadline: Optional[Deadline] = None,
    cancel: Optional[threading.Event] = None,
) -> str:
    """Run ``git <args>`` and return its stripped standard output.

    Raises :class:`GitCommandError` with git's stderr when the command exits
    non-zero, and :class:`CancelledError` / :class:`GitTimeoutError` when the
    ``cancel`` event is set or the deadline passes while it runs.
    """

    cmd = ["git", *args]
    _check_abort(deadline, cancel)
    _LOG.debug("running %s in %s", " ".join(cmd), cwd or ".")
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd or None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            errors="replace",
            env=_git_env(),
        )
    except OSError as exc:
        # Popen reports a failed chdir with the working directory as filename.
        if cwd and (exc.filename == cwd or not os.path.isdir(cwd)):
            raise NotRepositoryError(f"{cwd}: {exc.strerror or 'not a directory'}") from exc
        raise NoGitError() from exc
    stdout, stderr = _communicate(proc, deadline, cancel)
    if proc.returncode != 0:
        message = (stderr or stdout or "").strip()
        if not message:
            message = f"git {' '.join(args)} exited with status {proc.returncode}"
        raise GitCommandError(message, cmd, proc.returncode)
    return (stdout or "").strip()


def _git_env() -> Dict[str, str]:
    env = dict(os.environ)
    # Error messages are matched by callers, keep them untranslated.
    env["LC_ALL"] = "C"
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


def _check_abort(deadline: Optional[Deadline], cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CancelledError()
    if deadline is not None and deadline.expired():
        raise GitTimeoutError()


def _communicate(
    proc: subprocess.Popen,
    deadline: Optional[Deadline],
    cancel: Optional[threading.Event],
) -> Tuple[str, str]:
    try:
        while True:
            wait = POLL_INTERVAL
            remaining = deadline.remaining() if deadline is not None else None
            if remaining is not None:
                wait = max(0.0, min(wait, remaining))
            try:
                return proc.communicate(timeout=wait)
            except subprocess.TimeoutExpired:
                pass
            _check_abort(deadline, cancel)
    except BaseException:
        # Cancellation, timeout or KeyboardInterrupt: never leave git running.
        _kill(proc)
        raise


def _kill(proc: subprocess.Popen) -> None:
    _LOG.debug("killing git process %s", getattr(proc, "pid", "?"))
    proc.kill()
    proc.communicate()
