"""Catalog data models: CommandScope, CustomCommand, CustomPrompt, DiscoveryError."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any


class CommandScope(Enum):
    USER = "user"
    PROJECT = "project"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def _to_dict(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None:
            continue
        if isinstance(value, Path):
            value = str(value)
        elif isinstance(value, Enum):
            value = value.value
        elif isinstance(value, list):
            value = list(value)
        out[f.name] = value
    return out


@dataclass
class CustomCommand:
    """A discovered commands/**/*.md file, header already stripped from content."""

    name: str
    path: Path
    content: str
    scope: CommandScope
    description: str | None = None
    argument_hint: str | None = None
    allowed_tools: list[str] | None = None
    model: str | None = None
    disable_model_invocation: bool | None = None
    scope_subdir: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _to_dict(self)


@dataclass
class CustomPrompt:
    """A saved prompt from prompts/*.md, invoked as /prompts:<name>."""

    name: str
    path: Path
    content: str
    description: str | None = None
    argument_hint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _to_dict(self)


@dataclass
class DiscoveryError:
    """A single file or directory that could not be turned into a catalog entry."""

    path: Path
    message: str

    def to_dict(self) -> dict[str, Any]:
        return _to_dict(self)


@dataclass
class DiscoveryOutcome:
    commands: list[CustomCommand] = field(default_factory=list)
    prompts: list[CustomPrompt] = field(default_factory=list)
    errors: list[DiscoveryError] = field(default_factory=list)
