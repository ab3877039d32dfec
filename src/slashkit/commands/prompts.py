"""Saved prompt discovery from prompts/*.md (flat, no subdirectories)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from slashkit.core.frontmatter import FrontmatterError, parse_frontmatter

from .discovery import (
    FILE,
    SYMLINK,
    is_dir,
    is_markdown,
    list_entries,
    read_text,
    resolve_symlink,
    valid_name,
)
from .models import CustomPrompt, DiscoveryError, DiscoveryOutcome

if TYPE_CHECKING:
    from collections.abc import Collection

logger = logging.getLogger(__name__)


async def discover_custom_prompts(
    prompts_dir: Path | None, exclude: Collection[str] = frozenset()
) -> DiscoveryOutcome:
    """Load every prompt file directly inside *prompts_dir*, skipping *exclude* names."""
    outcome = DiscoveryOutcome()
    if prompts_dir is None or not await is_dir(prompts_dir):
        return outcome

    try:
        entries = await list_entries(prompts_dir)
    except OSError as e:
        outcome.errors.append(DiscoveryError(prompts_dir, f"failed to read prompts directory: {e}"))
        return outcome

    seen: set[str] = set()
    for path, kind in entries:
        if isinstance(kind, OSError):
            outcome.errors.append(DiscoveryError(path, f"failed to read prompt file type: {kind}"))
            continue
        if kind == SYMLINK:
            try:
                kind = await resolve_symlink(path)
            except OSError as e:
                outcome.errors.append(DiscoveryError(path, f"failed to resolve prompt symlink: {e}"))
                continue
        if kind != FILE or not is_markdown(path):
            continue

        name = path.stem
        if not valid_name(name):
            outcome.errors.append(DiscoveryError(path, "prompt filename is not valid UTF-8"))
            continue
        if name in exclude:
            logger.debug("prompt %s excluded", path)
            continue
        if name in seen:
            outcome.errors.append(DiscoveryError(path, f"duplicate prompt name `/prompts:{name}`"))
            continue
        seen.add(name)

        try:
            content = await read_text(path)
        except (OSError, UnicodeDecodeError) as e:
            outcome.errors.append(DiscoveryError(path, f"failed to read prompt file: {e}"))
            continue
        try:
            parsed = parse_frontmatter(content)
        except FrontmatterError as e:
            outcome.errors.append(DiscoveryError(path, str(e)))
            continue

        outcome.prompts.append(
            CustomPrompt(
                name=name,
                path=path,
                content=parsed.body,
                description=parsed.description,
                argument_hint=parsed.argument_hint,
            )
        )

    outcome.prompts.sort(key=lambda p: p.name)
    outcome.errors.sort(key=lambda e: e.path)
    return outcome
