"""Collect git metadata for build-time templating."""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from repoinfo.core import remote, runner
from repoinfo.core.errors import (
    DirtyError,
    GitCommandError,
    GitInfoError,
    NoTagError,
    NotRepositoryError,
)

_LOG = logging.getLogger(__name__)

DEFAULT_TAG = "v0.0.0"

SIGNATURE_BLOCK = re.compile(r"^-----BEGIN [A-Z ]*SIGNATURE-----$", re.MULTILINE)


@dataclass(frozen=True)
class TemplateValue:
    """Read-only view of :class:`RepositoryInfo` handed to templates."""

    branch: str = ""
    current_tag: str = ""
    short_commit: str = ""
    full_commit: str = ""
    first_commit: str = ""
    commit_date: str = ""
    commit_timestamp: int = 0
    url: str = ""
    summary: str = ""
    tag_subject: str = ""
    tag_contents: str = ""
    tag_body: str = ""
    is_dirty: bool = False
    is_clean: bool = True
    tree_state: str = "clean"

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the key names build templates refer to."""

        return {
            "Branch": self.branch,
            "CurrentTag": self.current_tag,
            "ShortCommit": self.short_commit,
            "FullCommit": self.full_commit,
            "FirstCommit": self.first_commit,
            "CommitDate": self.commit_date,
            "CommitTimestamp": self.commit_timestamp,
            "URL": self.url,
            "Summary": self.summary,
            "TagSubject": self.tag_subject,
            "TagContents": self.tag_contents,
            "TagBody": self.tag_body,
            "IsDirty": self.is_dirty,
            "IsClean": self.is_clean,
            "TreeState": self.tree_state,
        }


@dataclass(frozen=True)
class RepositoryInfo:
    """Metadata of a checkout. Either fully populated or entirely empty."""

    branch: str = ""
    current_tag: str = ""
    short_commit: str = ""
    full_commit: str = ""
    first_commit: str = ""
    commit_date: str = ""
    commit_timestamp: int = 0
    url: str = ""
    summary: str = ""
    tag_subject: str = ""
    tag_contents: str = ""
    tag_body: str = ""
    dirty: bool = False

    def is_empty(self) -> bool:
        return self == RepositoryInfo()

    def template_value(self) -> TemplateValue:
        return TemplateValue(
            branch=self.branch,
            current_tag=self.current_tag,
            short_commit=self.short_commit,
            full_commit=self.full_commit,
            first_commit=self.first_commit,
            commit_date=self.commit_date,
            commit_timestamp=self.commit_timestamp,
            url=self.url,
            summary=self.summary,
            tag_subject=self.tag_subject,
            tag_contents=self.tag_contents,
            tag_body=self.tag_body,
            is_dirty=self.dirty,
            is_clean=not self.dirty,
            tree_state="dirty" if self.dirty else "clean",
        )


@dataclass(frozen=True)
class Extraction:
    """Outcome of one extraction pass: the record and every error reported."""

    info: RepositoryInfo
    errors: Tuple[GitInfoError, ...] = ()

    @property
    def error(self) -> Optional[GitInfoError]:
        return self.errors[-1] if self.errors else None

    @property
    def hard(self) -> bool:
        return any(not err.soft for err in self.errors)


class _Git:
    """Binds the working directory, deadline and cancel event of one pass."""

    def __init__(self, path: Optional[str], deadline: runner.Deadline, cancel: Optional[threading.Event]):
        self.path = path
        self.deadline = deadline
        self.cancel = cancel

    def __call__(self, *args: str) -> str:
        return runner.run_git(args, self.path, deadline=self.deadline, cancel=self.cancel)

    def query(self, what: str, *args: str) -> str:
        try:
            return self(*args)
        except GitCommandError as exc:
            raise exc.wrap(f"couldn't get {what}") from exc


def get_info(
    path: Optional[str] = None,
    *,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> Tuple[RepositoryInfo, Optional[GitInfoError]]:
    """Return the git metadata of ``path`` and the error, if any.

    Errors are returned rather than raised. Read the record even when an
    error comes back: :class:`NoTagError` and :class:`DirtyError` are soft,
    they arrive with a fully populated record (``current_tag`` set to
    ``v0.0.0`` and ``dirty=True`` respectively) so that build tooling can
    decide whether to go on. Every other error comes with an empty record.
    When both soft conditions hold the dirty error is the one returned.
    """

    result = extract(path, timeout=timeout, cancel=cancel)
    return result.info, result.error


def require_info(
    path: Optional[str] = None,
    *,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    allow_dirty: bool = False,
    allow_no_tag: bool = False,
) -> RepositoryInfo:
    """Like :func:`get_info` but raise unless every reported error is allowed."""

    result = extract(path, timeout=timeout, cancel=cancel)
    for err in result.errors:
        if isinstance(err, DirtyError) and allow_dirty:
            continue
        if isinstance(err, NoTagError) and allow_no_tag:
            continue
        raise err
    return result.info


def extract(
    path: Optional[str] = None,
    *,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> Extraction:
    git = _Git(path or None, runner.Deadline.after(timeout), cancel)
    try:
        fields, soft_errors = _collect(git)
    except GitInfoError as exc:
        _LOG.debug("git metadata unavailable for %s: %s", path or ".", exc)
        return Extraction(info=RepositoryInfo(), errors=(exc,))
    for err in soft_errors:
        _LOG.info("git metadata for %s: %s", path or ".", str(err).splitlines()[0])
    return Extraction(info=RepositoryInfo(**fields), errors=tuple(soft_errors))


def _collect(git: _Git) -> Tuple[Dict[str, Any], List[GitInfoError]]:
    runner.find_git()
    _check_repository(git)

    fields: Dict[str, Any] = {}
    soft_errors: List[GitInfoError] = []

    fields["branch"] = git.query("current branch", "rev-parse", "--abbrev-ref", "HEAD")
    fields.update(_head_commit(git))
    fields["first_commit"] = _first_commit(git)

    raw_url = git.query("remote URL", "ls-remote", "--get-url")
    fields["url"] = remote.clean_remote_url(raw_url)

    tag = _current_tag(git)
    if tag:
        fields["current_tag"] = tag
    else:
        fields["current_tag"] = DEFAULT_TAG
        soft_errors.append(NoTagError())

    fields["summary"] = git.query("summary", "describe", "--tags", "--dirty", "--always")

    if tag:
        contents = git.query("tag contents", "tag", "-l", "--format=%(contents)", tag)
        subject, body = split_message(contents)
        fields.update(tag_contents=contents, tag_subject=subject, tag_body=body)

    status = git.query("working tree status", "status", "--porcelain")
    fields["dirty"] = bool(status)
    if status:
        soft_errors.append(DirtyError(status))
    return fields, soft_errors


def _check_repository(git: _Git) -> None:
    try:
        inside = git("rev-parse", "--is-inside-work-tree")
    except GitCommandError as exc:
        raise NotRepositoryError() from exc
    if inside != "true":
        raise NotRepositoryError()


def _head_commit(git: _Git) -> Dict[str, Any]:
    out = git.query("current commit", "show", "-s", "--format=%H%n%h%n%cI%n%ct", "HEAD")
    lines = out.splitlines()
    if len(lines) < 4:
        raise GitCommandError(f"couldn't get current commit: unexpected output {out!r}")
    full, short, date, stamp = (line.strip() for line in lines[-4:])
    try:
        timestamp = int(stamp)
    except ValueError as exc:
        raise GitCommandError(f"couldn't parse commit timestamp: {stamp!r}") from exc
    return {
        "full_commit": full,
        "short_commit": short,
        "commit_date": date,
        "commit_timestamp": timestamp,
    }


def _first_commit(git: _Git) -> str:
    out = git.query("first commit", "rev-list", "--max-parents=0", "HEAD")
    # Merged unrelated histories have several roots; the oldest comes last.
    roots = out.splitlines()
    return roots[-1].strip() if roots else ""


def _current_tag(git: _Git) -> str:
    """Tag on HEAD with the highest version, else the nearest reachable one."""

    for args in (
        ("tag", "--points-at", "HEAD", "--sort=-version:refname"),
        ("describe", "--tags", "--abbrev=0"),
    ):
        try:
            out = git(*args)
        except GitCommandError as exc:
            _LOG.debug("no tag from git %s: %s", args[0], exc)
            return ""
        if out:
            return out.splitlines()[0].strip()
    return ""


def split_message(contents: str) -> Tuple[str, str]:
    """Split a tag or commit message into its subject and body.

    The subject is the first line; the body is whatever follows the first
    blank line, so a subject wrapped onto several lines never leaks into it.
    """

    message = SIGNATURE_BLOCK.split(contents, maxsplit=1)[0].strip()
    subject = message.partition("\n")[0]
    body = re.split(r"\n[ \t]*\n", message, maxsplit=1)[1:]
    return subject.strip(), body[0].strip("\n").rstrip() if body else ""
