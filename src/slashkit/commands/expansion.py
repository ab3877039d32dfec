"""Placeholder expansion for custom commands and saved prompts.

Two dialects share the same ``$`` scan:

- numeric: ``$1``..``$9`` take positional args, ``$ARGUMENTS`` takes all of them
  joined by a space, ``$$`` is kept as ``$$``. Missing positions expand to nothing.
- named (prompts only): ``$NAME`` tokens are filled from ``KEY=value`` arguments.
  Every name must be supplied, otherwise nothing is expanded.

A prompt uses the named dialect exactly when its content holds at least one
``$NAME`` token other than ``$ARGUMENTS``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from slashkit.core.utils import parse_slash_name, split_args

from .builtins import PROMPTS_CMD_PREFIX
from .models import CustomCommand, CustomPrompt

PROMPT_ARG_RE = re.compile(r"\$[A-Z][A-Z0-9_]*")
ARGUMENTS = "ARGUMENTS"


class Dialect(Enum):
    NUMERIC = "numeric"
    NAMED = "named"


# ── Errors ──────────────────────────────────────────────────────────


class InvalidPromptArgument(ValueError):
    """A single ``key=value`` token that could not be parsed."""

    def __init__(self, token: str):
        super().__init__(token)
        self.token = token

    def describe(self, command: str) -> str:
        raise NotImplementedError


class MissingAssignment(InvalidPromptArgument):
    def describe(self, command: str) -> str:
        return (
            f"Could not parse {command}: expected key=value but found '{self.token}'. "
            "Wrap values in double quotes if they contain spaces."
        )


class MissingKey(InvalidPromptArgument):
    def describe(self, command: str) -> str:
        return f"Could not parse {command}: expected a name before '=' in '{self.token}'."


class PromptExpansionError(Exception):
    """Base for failures surfaced to whoever typed the prompt invocation."""

    def __init__(self, command: str):
        super().__init__(command)
        self.command = command

    def user_message(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.user_message()


class PromptArgsError(PromptExpansionError):
    def __init__(self, command: str, error: InvalidPromptArgument):
        super().__init__(command)
        self.error = error

    def user_message(self) -> str:
        return self.error.describe(self.command)


class MissingPromptArgsError(PromptExpansionError):
    def __init__(self, command: str, missing: list[str]):
        super().__init__(command)
        self.missing = missing

    def user_message(self) -> str:
        names = ", ".join(self.missing)
        return (
            f"Missing required args for {self.command}: {names}. "
            "Provide as key=value (quote values with spaces)."
        )


# ── Dialects ────────────────────────────────────────────────────────


def expand_numeric_placeholders(content: str, args: list[str]) -> str:
    """Substitute ``$1``..``$9`` and ``$ARGUMENTS``; ``$$`` is copied through as ``$$``."""
    out: list[str] = []
    i = 0
    n = len(content)
    while True:
        j = content.find("$", i)
        if j == -1:
            break
        out.append(content[i:j])
        nxt = content[j + 1] if j + 1 < n else ""
        if nxt == "$":
            out.append("$$")
            i = j + 2
        elif "1" <= nxt <= "9":
            idx = ord(nxt) - ord("1")
            if idx < len(args):
                out.append(args[idx])
            i = j + 2
        elif content.startswith(ARGUMENTS, j + 1):
            if args:
                out.append(" ".join(args))
            i = j + 1 + len(ARGUMENTS)
        else:
            out.append("$")
            i = j + 1
    out.append(content[i:])
    return "".join(out)


def _escaped(content: str, start: int) -> bool:
    return start > 0 and content[start - 1] == "$"


def prompt_argument_names(content: str) -> list[str]:
    """Distinct ``$NAME`` tokens in first-seen order, ignoring ``$$NAME`` and ``$ARGUMENTS``."""
    names: list[str] = []
    for m in PROMPT_ARG_RE.finditer(content):
        if _escaped(content, m.start()):
            continue
        name = m.group()[1:]
        if name != ARGUMENTS and name not in names:
            names.append(name)
    return names


def expand_named_placeholders(content: str, args: dict[str, str]) -> str:
    """Replace ``$NAME`` with ``args[NAME]``; unknown names and ``$$NAME`` stay as written."""
    out: list[str] = []
    cursor = 0
    for m in PROMPT_ARG_RE.finditer(content):
        start, end = m.span()
        if _escaped(content, start):
            out.append(content[cursor:end])
        else:
            out.append(content[cursor:start])
            out.append(args.get(m.group()[1:], m.group()))
        cursor = end
    out.append(content[cursor:])
    return "".join(out)


def select_dialect(content: str) -> Dialect:
    return Dialect.NAMED if prompt_argument_names(content) else Dialect.NUMERIC


def parse_prompt_inputs(rest: str) -> dict[str, str]:
    """Parse ``KEY=value`` tokens. Raises MissingAssignment / MissingKey."""
    inputs: dict[str, str] = {}
    for token in split_args(rest):
        key, sep, value = token.partition("=")
        if not sep:
            raise MissingAssignment(token)
        if not key:
            raise MissingKey(token)
        inputs[key] = value
    return inputs


# ── Entry points ────────────────────────────────────────────────────


@dataclass
class CommandExpansion:
    text: str
    command: CustomCommand


def expand_custom_command(text: str, commands: list[CustomCommand]) -> CommandExpansion | None:
    """Expand '/name args...' against *commands*; None when nothing matches."""
    parsed = parse_slash_name(text)
    if parsed is None:
        return None
    name, rest = parsed
    command = next((c for c in commands if c.name == name), None)
    if command is None:
        return None
    return CommandExpansion(
        text=expand_numeric_placeholders(command.content, split_args(rest)),
        command=command,
    )


def expand_custom_command_text(text: str, commands: list[CustomCommand]) -> str | None:
    expansion = expand_custom_command(text, commands)
    return expansion.text if expansion else None


def expand_custom_prompt_text(text: str, prompts: list[CustomPrompt]) -> str | None:
    """Expand '/prompts:name args...' against *prompts*.

    Returns None when *text* is not a prompt invocation or no prompt matches.
    Raises PromptExpansionError when named arguments are malformed or missing.
    """
    parsed = parse_slash_name(text)
    if parsed is None:
        return None
    name, rest = parsed
    prefix = f"{PROMPTS_CMD_PREFIX}:"
    if not name.startswith(prefix):
        return None
    prompt_name = name[len(prefix) :]
    prompt = next((p for p in prompts if p.name == prompt_name), None)
    if prompt is None:
        return None

    command = f"/{name}"
    if select_dialect(prompt.content) is Dialect.NUMERIC:
        return expand_numeric_placeholders(prompt.content, split_args(rest))

    try:
        inputs = parse_prompt_inputs(rest)
    except InvalidPromptArgument as e:
        raise PromptArgsError(command, e) from e
    missing = [key for key in prompt_argument_names(prompt.content) if key not in inputs]
    if missing:
        raise MissingPromptArgsError(command, missing)
    return expand_named_placeholders(prompt.content, inputs)
