"""Argument tokenizing, slash-name matching, path display helpers."""

from __future__ import annotations

import shlex
from pathlib import Path


def split_args(rest: str) -> list[str]:
    """Split *rest* shell-style; fall back to a whitespace split on bad quoting."""
    if not rest.strip():
        return []
    try:
        return shlex.split(rest)
    except ValueError:
        return rest.split()


def parse_slash_name(text: str) -> tuple[str, str] | None:
    """Split '/name rest...' into ``(name, rest)``, or None if *text* isn't one."""
    text = text.lstrip()
    if not text.startswith("/"):
        return None
    stripped = text[1:]
    end = len(stripped)
    for i, ch in enumerate(stripped):
        if ch.isspace():
            end = i
            break
    name = stripped[:end]
    if not name:
        return None
    return name, stripped[end:].strip()


def short_cwd(p: Path) -> str:
    """Return path relative to home directory, using ~ prefix."""
    try:
        rel = p.relative_to(Path.home())
        return f"~/{rel}" if str(rel) != "." else "~"
    except ValueError:
        return str(p)
