"""Command-line interface for printing repository metadata."""

from __future__ import annotations

import argparse
import json
import logging
import pathlib
import sys
from typing import Dict, List, Sequence

from repoinfo.core import config as config_loader
from repoinfo.core import gitinfo, reporter, s3util, template
from repoinfo.core.errors import DirtyError, GitInfoError, NoTagError

EXIT_OK = 0
EXIT_SOFT_FAILURE = 1
EXIT_HARD_FAILURE = 2

_LOG = logging.getLogger(__name__)


def build_parser(prog: str = "repoinfo") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=prog, description="Extract git metadata for build-time templating")
    parser.add_argument("path", nargs="?", default=".", help="Directory inside the git checkout")
    parser.add_argument("--config", type=pathlib.Path, default=None, help="YAML config file (defaults to <path>/.repoinfo.yml)")
    parser.add_argument("--timeout", type=float, default=None, help="Overall deadline for the git queries, in seconds")
    parser.add_argument("--fail-on", action="append", choices=config_loader.FAIL_ON_CHOICES, help="Soft failures that make the command fail (repeatable)")
    parser.add_argument("--allow-dirty", action="store_true", help="Never fail because of uncommitted changes")
    parser.add_argument("-t", "--template", action="append", default=[], metavar="NAME=TEMPLATE", help="Render a Jinja2 template, e.g. VERSION='{{ Git.CurrentTag }}'")
    parser.add_argument("--format", action="append", choices=["json", "env", "md"], help="Report formats to write to --out-dir (defaults to all)")
    parser.add_argument("--out-dir", type=pathlib.Path, default=None, help="Directory for report files")
    parser.add_argument("--s3-bucket", help="Upload the JSON payload to this bucket")
    parser.add_argument("--s3-key", default="repoinfo.json", help="Object key for --s3-bucket")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every git query")
    return parser


def main(argv: List[str] | None = None, prog: str = "repoinfo") -> int:
    parser = build_parser(prog)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    config_path = args.config or pathlib.Path(args.path) / config_loader.DEFAULT_PATH
    cfg = config_loader.load_config(config_path)
    timeout = args.timeout if args.timeout is not None else cfg.timeout
    fail_on = list(args.fail_on) if args.fail_on else list(cfg.fail_on)
    if args.allow_dirty and "dirty" in fail_on:
        fail_on.remove("dirty")

    try:
        templates = dict(cfg.templates)
        templates.update(_parse_templates(args.template))
    except ValueError as exc:
        parser.error(str(exc))

    result = gitinfo.extract(args.path, timeout=timeout)
    if result.hard:
        print(f"error: {result.error}", file=sys.stderr)
        return EXIT_HARD_FAILURE

    try:
        rendered = template.render_all(templates, result.info)
    except GitInfoError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_HARD_FAILURE

    payload = reporter.build_payload(result.info, result.error, rendered)
    if rendered:
        for name, value in rendered.items():
            print(f"{name}={value}")
    else:
        print(json.dumps(payload["git"], indent=2, sort_keys=True))

    if args.out_dir:
        paths = reporter.write_reports(payload, args.out_dir, formats=args.format)
        _LOG.debug("wrote reports %s", paths)
    if args.s3_bucket:
        s3util.upload_json(args.s3_bucket, args.s3_key, payload)

    failures = _failing_soft_errors(result.errors, fail_on)
    for err in result.errors:
        prefix = "error" if err in failures else "warning"
        print(f"{prefix}: {err}", file=sys.stderr)
    return EXIT_SOFT_FAILURE if failures else EXIT_OK


def _parse_templates(entries: List[str]) -> Dict[str, str]:
    templates: Dict[str, str] = {}
    for entry in entries:
        name, sep, value = entry.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"invalid --template {entry!r}, expected NAME=TEMPLATE")
        templates[name.strip()] = value
    return templates


def _failing_soft_errors(errors: Sequence[GitInfoError], fail_on: List[str]) -> List[GitInfoError]:
    failing: List[GitInfoError] = []
    for err in errors:
        if isinstance(err, DirtyError) and "dirty" in fail_on:
            failing.append(err)
        elif isinstance(err, NoTagError) and "no-tag" in fail_on:
            failing.append(err)
    return failing


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
