"""CLI entry point: one-shot expansion, catalog listing, interactive shell."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.text import Text

from .commands import PROMPTS_CMD_PREFIX, CommandHandler, DiscoveryOutcome, load_catalog
from .core.config import load_config
from .core.utils import short_cwd
from .tui import print_result, run_repl

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _print_banner(config, handler: CommandHandler) -> None:
    console.print()
    info = Text("  ")
    info.append("slashkit", style="bold")
    info.append("  ")
    info.append(short_cwd(config.cwd))
    console.print(info)
    console.print(
        f"  {len(handler.commands)} command(s), {len(handler.prompts)} prompt(s)"
        "  |  /help  |  Ctrl-D to exit",
        style="dim",
    )
    if handler.errors:
        console.print(f"  {len(handler.errors)} error(s), see /errors", style="red")
    console.print()


# ── `slashkit list` ─────────────────────────────────────────────────


def _outcome_json(outcome: DiscoveryOutcome) -> str:
    return json.dumps(
        {
            "commands": [c.to_dict() for c in outcome.commands],
            "prompts": [p.to_dict() for p in outcome.prompts],
            "errors": [e.to_dict() for e in outcome.errors],
        },
        indent=2,
    )


def _print_outcome(outcome: DiscoveryOutcome) -> None:
    if not outcome.commands and not outcome.prompts:
        console.print("no custom commands or prompts found", style="dim")
    for c in outcome.commands:
        scope = c.scope.value + (f":{c.scope_subdir}" if c.scope_subdir else "")
        console.print(
            f"  [bold]/{escape(f'{c.name:<16}')}[/bold] {escape(f'{scope:<12}')} "
            f"[dim]{escape(c.description or '')}[/dim]"
        )
    for p in outcome.prompts:
        console.print(
            f"  [bold]/{PROMPTS_CMD_PREFIX}:{escape(f'{p.name:<8}')}[/bold] {'prompt':<12} "
            f"[dim]{escape(p.description or '')}[/dim]"
        )
    if outcome.errors:
        console.print()
        for e in outcome.errors:
            console.print(f"  {escape(str(e.path))}: [red]{escape(e.message)}[/red]")


def _handle_list_cli() -> None:
    """Handle `slashkit list [--json] [--cwd DIR] [-v]`."""
    args = sys.argv[2:]
    as_json = "--json" in args
    verbose = "-v" in args or "--verbose" in args
    cwd = None
    if "--cwd" in args:
        idx = args.index("--cwd")
        if idx + 1 >= len(args):
            console.print("usage: slashkit list [--json] [--cwd DIR] [-v]", style="dim")
            sys.exit(2)
        cwd = Path(args[idx + 1]).resolve()

    _setup_logging(verbose)
    config = load_config(cwd=cwd, verbose=verbose)
    outcome = load_catalog(config)
    if as_json:
        click.echo(_outcome_json(outcome))
    else:
        _print_outcome(outcome)
    if outcome.errors:
        sys.exit(1)


# ── CLI entry point ─────────────────────────────────────────────────


@click.command()
@click.argument("text", required=False, default=None)
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Working directory used to locate the project root",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
def _click_main(text: str | None, cwd: Path | None, verbose: bool):
    """slashkit: expand custom slash commands and saved prompts."""
    _setup_logging(verbose)
    config = load_config(cwd=cwd.resolve() if cwd else None, verbose=verbose)
    handler = CommandHandler(config)

    if text:
        print_result(handler.handle(text), text)
        return

    _print_banner(config, handler)
    run_repl(config, handler)


def main():
    """True entry point: intercepts subcommands before click."""
    if len(sys.argv) > 1 and sys.argv[1] == "list":
        _handle_list_cli()
        return
    _click_main()


if __name__ == "__main__":
    main()
