"""Run the CLI as ``python -m repoinfo``."""

from __future__ import annotations

from repoinfo import cli

PROG = "python -m repoinfo"


def main(argv: list[str] | None = None) -> int:
    # Usage and error lines name the module invocation rather than the script.
    return cli.main(argv, prog=PROG)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
