"""Render build-time templates against git metadata."""

from __future__ import annotations

import datetime as dt
import os
from typing import Any, Dict, Mapping, Optional

import jinja2

from repoinfo.core.errors import TemplateError
from repoinfo.core.gitinfo import RepositoryInfo

_ENV = jinja2.Environment(autoescape=False, undefined=jinja2.StrictUndefined, keep_trailing_newline=False)


def build_context(
    info: RepositoryInfo,
    env: Optional[Mapping[str, str]] = None,
    now: Optional[dt.datetime] = None,
) -> Dict[str, Any]:
    moment = now or dt.datetime.now(dt.timezone.utc)
    return {
        "Git": info.template_value().to_dict(),
        "Env": dict(os.environ if env is None else env),
        "Date": moment.isoformat(timespec="seconds"),
        "Timestamp": int(moment.timestamp()),
    }


def render(
    template: str,
    info: RepositoryInfo,
    env: Optional[Mapping[str, str]] = None,
    now: Optional[dt.datetime] = None,
) -> str:
    """Render ``template``, e.g. ``"{{ Git.CurrentTag }}-{{ Git.ShortCommit }}"``."""

    return _render(template, build_context(info, env, now))


def render_all(
    templates: Mapping[str, str],
    info: RepositoryInfo,
    env: Optional[Mapping[str, str]] = None,
    now: Optional[dt.datetime] = None,
) -> Dict[str, str]:
    context = build_context(info, env, now)
    return {name: _render(template, context, name) for name, template in templates.items()}


def _render(template: str, context: Dict[str, Any], name: str = "template") -> str:
    try:
        return _ENV.from_string(template).render(context)
    except jinja2.TemplateError as exc:
        raise TemplateError(f"couldn't render {name}: {exc}") from exc
