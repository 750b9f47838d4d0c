"""Report rendering utilities."""

from __future__ import annotations

import json
import pathlib
import re
import shlex
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import datetime as dt

from repoinfo.core.errors import GitInfoError
from repoinfo.core.gitinfo import RepositoryInfo

ENV_PREFIX = "GIT_"
SAFE_ENV_VALUE = re.compile(r"^[A-Za-z0-9_.,:/@+=-]*$")


@dataclass
class ReportPaths:
    json_path: pathlib.Path | None
    env_path: pathlib.Path | None
    markdown_path: pathlib.Path | None


def build_payload(
    info: RepositoryInfo,
    error: Optional[GitInfoError] = None,
    rendered: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    return {
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(),
        "git": info.template_value().to_dict(),
        "error": {"kind": error.kind, "message": str(error), "soft": error.soft} if error else None,
        "rendered": dict(rendered or {}),
    }


def write_reports(
    payload: Dict[str, Any],
    output_dir: pathlib.Path,
    formats: Sequence[str] | None = None,
) -> ReportPaths:
    output_dir.mkdir(parents=True, exist_ok=True)
    formats = [fmt.lower() for fmt in (formats or ["json", "env", "md"])]

    json_path = output_dir / "repoinfo.json" if "json" in formats else None
    env_path = output_dir / "repoinfo.env" if "env" in formats else None
    markdown_path = output_dir / "repoinfo.md" if "md" in formats else None

    if json_path:
        json_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    if env_path:
        env_path.write_text(render_env(payload), encoding="utf-8")
    if markdown_path:
        markdown_path.write_text(render_markdown(payload), encoding="utf-8")

    return ReportPaths(json_path=json_path, env_path=env_path, markdown_path=markdown_path)


def render_env(payload: Dict[str, Any]) -> str:
    """Render ``KEY=value`` lines suitable for a dotenv file or ``source``."""

    lines: List[str] = []
    for key, value in payload.get("git", {}).items():
        lines.append(f"{ENV_PREFIX}{_env_key(key)}={_env_value(value)}")
    for name, value in payload.get("rendered", {}).items():
        lines.append(f"{_env_key(name)}={_env_value(value)}")
    return "\n".join(lines) + "\n"


def render_markdown(payload: Dict[str, Any]) -> str:
    git = payload.get("git", {})
    lines: List[str] = ["# Repository Info", ""]
    lines.append(f"Generated: {payload.get('generated_at', '')}")
    lines.append("")
    error = payload.get("error")
    if error:
        severity = "warning" if error.get("soft") else "error"
        lines.append(f"> **{severity}** ({error.get('kind')}): {str(error.get('message', '')).splitlines()[0]}")
        lines.append("")
    lines.append("| Field | Value |")
    lines.append("|---|---|")
    for key in ("Branch", "CurrentTag", "ShortCommit", "FullCommit", "FirstCommit", "CommitDate", "URL", "Summary", "TreeState"):
        lines.append(f"| {key} | {_md_cell(git.get(key, ''))} |")
    if git.get("TagSubject"):
        lines.append("")
        lines.append("## Tag Message")
        lines.append("")
        lines.append(str(git["TagSubject"]))
        if git.get("TagBody"):
            lines.append("")
            lines.append(str(git["TagBody"]))
    if payload.get("rendered"):
        lines.append("")
        lines.append("## Rendered")
        for name, value in payload["rendered"].items():
            lines.append(f"- `{name}`: `{value}`")
    return "\n".join(lines) + "\n"


def _env_key(name: str) -> str:
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", name)
    return re.sub(r"[^A-Za-z0-9_]", "_", snake).upper()


def _env_value(value: Any) -> str:
    if isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if SAFE_ENV_VALUE.match(text):
        return text
    return shlex.quote(text)


def _md_cell(value: Any) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")
