"""Configuration file handling."""

from __future__ import annotations

import logging
import pathlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

_LOG = logging.getLogger(__name__)

DEFAULT_PATH = pathlib.Path(".repoinfo.yml")
FAIL_ON_CHOICES = ("dirty", "no-tag")


@dataclass
class Config:
    timeout: Optional[float] = None
    fail_on: List[str] = field(default_factory=lambda: ["dirty"])
    templates: Dict[str, str] = field(default_factory=dict)


def load_config(path: pathlib.Path = DEFAULT_PATH) -> Config:
    if not path.exists():
        return Config()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        _LOG.warning("ignoring %s: expected a mapping at the top level", path)
        return Config()
    config = Config(timeout=_parse_timeout(data.get("timeout")), templates=_parse_templates(data.get("templates")))
    if "fail_on" in data or "fail-on" in data:
        config.fail_on = _parse_fail_on(data.get("fail_on", data.get("fail-on")))
    return config


def _parse_timeout(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return None
    return timeout if timeout > 0 else None


def _parse_fail_on(value: object) -> List[str]:
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple, set)) else [value]
    fail_on: List[str] = []
    for item in items:
        name = str(item).strip().lower().replace("_", "-")
        if name in FAIL_ON_CHOICES and name not in fail_on:
            fail_on.append(name)
    return fail_on


def _parse_templates(value: object) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(name): str(template) for name, template in value.items() if template is not None}
