"""Custom command discovery: walk user and project roots, parse headers, merge by scope.

Layout::

    ~/.slashkit/commands/deploy.md             -> /deploy (user scope)
    <project>/.slashkit/commands/web/lint.md   -> /lint (project scope, scope_subdir "web")

Project entries shadow user entries with the same name. Nothing here raises for a
bad file: every problem becomes a ``DiscoveryError`` next to the entries that did load.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from slashkit.core.config import PROJECT_DIR_NAME
from slashkit.core.frontmatter import FrontmatterError, parse_frontmatter

from .builtins import RESERVED_COMMAND_NAMES
from .models import CommandScope, CustomCommand, DiscoveryError, DiscoveryOutcome

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping

    from slashkit.core.config import Config

logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"

# entry kinds reported by _scan_dir
DIR, FILE, SYMLINK, OTHER = "dir", "file", "symlink", "other"


# ── Filesystem primitives ───────────────────────────────────────────


def _scan_dir(directory: Path) -> list[tuple[Path, str | OSError]]:
    """List *directory* without following symlinks; per-entry type errors are kept."""
    out: list[tuple[Path, str | OSError]] = []
    with os.scandir(directory) as it:
        for entry in it:
            kind: str | OSError
            try:
                if entry.is_symlink():
                    kind = SYMLINK
                elif entry.is_dir(follow_symlinks=False):
                    kind = DIR
                elif entry.is_file(follow_symlinks=False):
                    kind = FILE
                else:
                    kind = OTHER
            except OSError as e:
                kind = e
            out.append((Path(entry.path), kind))
    return out


async def list_entries(directory: Path) -> list[tuple[Path, str | OSError]]:
    return await asyncio.to_thread(_scan_dir, directory)


async def resolve_symlink(path: Path) -> str:
    """Return the kind of a symlink's target. Raises OSError when it dangles."""
    st = await asyncio.to_thread(os.stat, path)
    if stat.S_ISDIR(st.st_mode):
        return DIR
    if stat.S_ISREG(st.st_mode):
        return FILE
    return OTHER


async def read_text(path: Path) -> str:
    """Read *path* as UTF-8 with newlines untouched."""
    data = await asyncio.to_thread(path.read_bytes)
    return data.decode("utf-8")


async def is_dir(path: Path) -> bool:
    return await asyncio.to_thread(os.path.isdir, path)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == MARKDOWN_SUFFIX


def valid_name(name: str) -> bool:
    # undecodable filename bytes surface as lone surrogates
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


# ── Project root ────────────────────────────────────────────────────


async def find_project_root(cwd: Path, markers: list[str]) -> Path:
    """Nearest ancestor of *cwd* (inclusive) holding any marker, else *cwd*."""
    if not markers:
        return cwd
    for ancestor in (cwd, *cwd.parents):
        for marker in markers:
            if await asyncio.to_thread(os.path.exists, ancestor / marker):
                return ancestor
    return cwd


async def resolve_command_roots(config: Config) -> dict[CommandScope, Path | None]:
    if config.project_dir is not None:
        project_commands = config.project_dir
    else:
        project_root = await find_project_root(config.cwd, config.markers)
        project_commands = project_root / PROJECT_DIR_NAME / "commands"
    return {
        CommandScope.USER: config.user_commands_dir,
        CommandScope.PROJECT: project_commands,
    }


# ── Walk ────────────────────────────────────────────────────────────


def _scope_subdir(root: Path, path: Path) -> str | None:
    try:
        rel = path.parent.relative_to(root)
    except ValueError:
        return None
    if rel == Path("."):
        return None
    return rel.as_posix()


async def discover_commands_in_root(
    root: Path | None,
    scope: CommandScope,
    reserved_names: Collection[str] = RESERVED_COMMAND_NAMES,
) -> tuple[list[CustomCommand], list[DiscoveryError]]:
    """Walk one scope root. Missing roots contribute nothing."""
    commands: list[CustomCommand] = []
    errors: list[DiscoveryError] = []
    seen: set[str] = set()

    if root is None or not await is_dir(root):
        logger.debug("%s commands root %s not present", scope.label, root)
        return commands, errors

    pending = [root]
    while pending:
        directory = pending.pop()
        try:
            entries = await list_entries(directory)
        except OSError as e:
            errors.append(DiscoveryError(directory, f"failed to read commands directory: {e}"))
            continue

        for path, kind in entries:
            if isinstance(kind, OSError):
                errors.append(DiscoveryError(path, f"failed to read command file type: {kind}"))
                continue
            if kind == DIR:
                pending.append(path)
                continue
            if kind == SYMLINK:
                try:
                    kind = await resolve_symlink(path)
                except OSError as e:
                    errors.append(DiscoveryError(path, f"failed to resolve command symlink: {e}"))
                    continue
                if kind == DIR:
                    logger.debug("not following directory symlink %s", path)
                    continue
            if kind != FILE or not is_markdown(path):
                continue

            name = path.stem
            if not valid_name(name):
                errors.append(DiscoveryError(path, "command filename is not valid UTF-8"))
                continue
            if name in reserved_names:
                errors.append(
                    DiscoveryError(path, f"`/{name}` conflicts with a built-in command name")
                )
                continue
            if name in seen:
                errors.append(
                    DiscoveryError(
                        path, f"duplicate command name `/{name}` in {scope.label} scope"
                    )
                )
                continue
            seen.add(name)

            try:
                content = await read_text(path)
            except (OSError, UnicodeDecodeError) as e:
                errors.append(DiscoveryError(path, f"failed to read command file: {e}"))
                continue

            try:
                parsed = parse_frontmatter(content)
            except FrontmatterError as e:
                errors.append(DiscoveryError(path, str(e)))
                continue

            commands.append(
                CustomCommand(
                    name=name,
                    path=path,
                    content=parsed.body,
                    scope=scope,
                    description=parsed.description,
                    argument_hint=parsed.argument_hint,
                    allowed_tools=parsed.allowed_tools,
                    model=parsed.model,
                    disable_model_invocation=parsed.disable_model_invocation,
                    scope_subdir=_scope_subdir(root, path),
                )
            )

    commands.sort(key=lambda c: c.name)
    logger.debug(
        "%s scope: %d command(s), %d error(s) under %s",
        scope.label,
        len(commands),
        len(errors),
        root,
    )
    return commands, errors


def merge_scopes(
    user_commands: list[CustomCommand], project_commands: list[CustomCommand]
) -> list[CustomCommand]:
    """Project entries win by name; user entries fill the remaining names."""
    project_by_name = {c.name: c for c in project_commands}
    merged = list(project_by_name.values())
    for command in user_commands:
        if command.name in project_by_name:
            logger.debug("project /%s shadows %s", command.name, command.path)
            continue
        merged.append(command)
    merged.sort(key=lambda c: c.name)
    return merged


async def discover_custom_commands_with_roots(
    roots: Mapping[CommandScope, Path | None],
    reserved_names: Collection[str] = RESERVED_COMMAND_NAMES,
) -> DiscoveryOutcome:
    user_commands, user_errors = await discover_commands_in_root(
        roots.get(CommandScope.USER), CommandScope.USER, reserved_names
    )
    project_commands, project_errors = await discover_commands_in_root(
        roots.get(CommandScope.PROJECT), CommandScope.PROJECT, reserved_names
    )
    errors = sorted(user_errors + project_errors, key=lambda e: e.path)
    return DiscoveryOutcome(commands=merge_scopes(user_commands, project_commands), errors=errors)


async def discover_custom_commands(
    config: Config, reserved_names: Collection[str] = RESERVED_COMMAND_NAMES
) -> DiscoveryOutcome:
    """Discover user and project commands for *config*."""
    roots = await resolve_command_roots(config)
    return await discover_custom_commands_with_roots(roots, reserved_names)
