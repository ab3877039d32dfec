"""Interactive REPL loop built on prompt_toolkit."""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import FileHistory
from rich.console import Console

from ..commands import CommandHandler, CommandResult
from .completers import SlashCompleter

console = Console()


def print_result(result: str | CommandResult | None, text: str = "") -> None:
    if result is None:
        # plain text passes through unchanged
        console.print(text, markup=False, highlight=False)
    elif isinstance(result, CommandResult):
        meta = []
        if result.model:
            meta.append(f"model={result.model}")
        if result.allowed_tools:
            meta.append("tools=" + ",".join(result.allowed_tools))
        if meta:
            console.print("  ".join(meta), style="dim", markup=False)
        console.print(result.prompt, markup=False, highlight=False)
    elif result:
        console.print(result)


def run_repl(config, cmd_handler: CommandHandler) -> None:
    history_path = config.global_dir / "history"
    config.global_dir.mkdir(parents=True, exist_ok=True)

    session: PromptSession = PromptSession(
        history=FileHistory(str(history_path)),
        multiline=False,
        completer=SlashCompleter(cmd_handler),
        auto_suggest=AutoSuggestFromHistory(),
    )
    _run_repl_loop(cmd_handler, session)


def _run_repl_loop(cmd_handler, session) -> None:
    while True:
        try:
            text = session.prompt("> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            break

        if not text.strip():
            continue

        result = cmd_handler.handle(text)
        if result == "quit":
            break
        print_result(result, text)
