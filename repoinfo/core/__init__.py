"""Core utilities for repository metadata extraction."""

from .errors import (
    CancelledError,
    DirtyError,
    GitCommandError,
    GitInfoError,
    GitTimeoutError,
    InvalidRemoteURLError,
    NoGitError,
    NoTagError,
    NotRepositoryError,
    TemplateError,
)
from .gitinfo import DEFAULT_TAG, Extraction, RepositoryInfo, TemplateValue, extract, get_info, require_info

__all__ = [
    "CancelledError",
    "DEFAULT_TAG",
    "DirtyError",
    "Extraction",
    "GitCommandError",
    "GitInfoError",
    "GitTimeoutError",
    "InvalidRemoteURLError",
    "NoGitError",
    "NoTagError",
    "NotRepositoryError",
    "RepositoryInfo",
    "TemplateError",
    "TemplateValue",
    "extract",
    "get_info",
    "require_info",
]
