"""Per-user ``.env`` file for deployments without a process manager.

``~/.config/gradeless-mcp/.env`` fills in whatever the process environment
leaves unset, so ``gradeless-mcp`` can be started from any directory.
"""

from __future__ import annotations

import os
import re
from collections.abc import MutableMapping
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "gradeless-mcp" / ".env"

_ASSIGNMENT = re.compile(
    r"""
    ^\s*(?:export\s+)?
    (?P<key>[A-Za-z_][A-Za-z0-9_]*)
    \s*=\s*
    (?:
        "(?P<double>(?:[^"\\]|\\.)*)"
      | '(?P<single>[^']*)'
      | (?P<bare>.*?)
    )
    (?:\s+\#.*)?\s*$
    """,
    re.VERBOSE,
)
_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


def _unescape(value: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(0)), value)


def _parse_line(line: str) -> tuple[str, str] | None:
    """``(key, value)`` for an assignment line, None for anything else."""
    if not line.strip() or line.lstrip().startswith("#"):
        return None
    match = _ASSIGNMENT.match(line)
    if match is None:
        return None
    if match["double"] is not None:
        return match["key"], _unescape(match["double"])
    if match["single"] is not None:
        return match["key"], match["single"]
    return match["key"], match["bare"]


def parse_dotenv(path: Path) -> dict[str, str]:
    """Assignments in *path*, later lines winning; a missing file yields ``{}``.

    Unquoted values end at `` #``. Double quotes honour ``\\n``, ``\\t``,
    ``\\"`` and ``\\\\``; single quotes are literal. Lines that are not
    ``[export] KEY=VALUE`` are skipped. No ``${VAR}`` expansion.
    """
    if not path.is_file():
        return {}
    lines = path.read_text(encoding="utf-8").splitlines()
    return dict(pair for pair in map(_parse_line, lines) if pair is not None)


def _needs_value(key: str, current: str | None) -> bool:
    """Missing, blank, or a literal ``$KEY`` / ``${KEY}`` a host never expanded."""
    if current is None or not current.strip():
        return True
    return current.strip() in (f"${key}", f"${{{key}}}")


def load_dotenv(
    path: Path | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> dict[str, str]:
    """Copy entries from *path* into *environ* (default ``os.environ``).

    Only keys that :func:`_needs_value` accepts are written.

    Returns:
        The entries that were written.
    """
    target = os.environ if environ is None else environ
    entries = parse_dotenv(DEFAULT_ENV_PATH if path is None else path)
    injected = {key: value for key, value in entries.items() if _needs_value(key, target.get(key))}
    target.update(injected)
    return injected
