"""Error taxonomy for repository metadata extraction."""

from __future__ import annotations


class GitInfoError(Exception):
    """Base class for every failure reported by :func:`repoinfo.core.gitinfo.get_info`.

    ``soft`` errors are returned together with a populated record; all
    others come with an empty one.
    """

    soft = False
    kind = "error"


class NoGitError(GitInfoError):
    kind = "no-git"

    def __init__(self, message: str = "git not found in PATH") -> None:
        super().__init__(message)


class NotRepositoryError(GitInfoError):
    kind = "not-repository"

    def __init__(self, message: str = "current folder is not a git repository") -> None:
        super().__init__(message)


class GitCommandError(GitInfoError):
    """A git query exited non-zero; the message holds git's own output."""

    kind = "git"

    def __init__(self, message: str, args: list[str] | None = None, returncode: int | None = None) -> None:
        super().__init__(message)
        self.command = list(args or [])
        self.returncode = returncode

    def wrap(self, prefix: str) -> "GitCommandError":
        return GitCommandError(f"{prefix}: {self}", self.command, self.returncode)


class InvalidRemoteURLError(GitInfoError):
    kind = "invalid-url"


class CancelledError(GitInfoError):
    kind = "cancelled"

    def __init__(self, message: str = "git query cancelled") -> None:
        super().__init__(message)


class GitTimeoutError(CancelledError):
    kind = "timeout"

    def __init__(self, message: str = "git query timed out") -> None:
        super().__init__(message)


class NoTagError(GitInfoError):
    soft = True
    kind = "no-tag"

    def __init__(self, message: str = "couldn't find any tags") -> None:
        super().__init__(message)


class DirtyError(GitInfoError):
    soft = True
    kind = "dirty"

    def __init__(self, status: str = "") -> None:
        message = "git is in a dirty state"
        if status:
            message = f"{message}\nPlease check in your pipeline what can be changing the following files:\n{status}"
        super().__init__(message)
        self.status = status


class TemplateError(GitInfoError):
    kind = "template"
