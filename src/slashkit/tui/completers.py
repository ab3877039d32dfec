"""Prompt-toolkit completer for slash commands and saved prompts."""

from __future__ import annotations

from prompt_toolkit.completion import Completer, Completion

from ..commands import COMMANDS, PROMPTS_CMD_PREFIX


class SlashCompleter(Completer):
    """Autocomplete slash commands (built-in + custom + /prompts:*)."""

    def __init__(self, cmd_handler=None):
        self._handler = cmd_handler

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor.lstrip()
        if not text.startswith("/") or " " in text:
            return
        for cmd, desc in COMMANDS.items():
            if cmd.startswith(text):
                yield Completion(cmd, start_position=-len(text), display_meta=desc)
        if not self._handler:
            return
        for command in self._handler.commands:
            cmd = f"/{command.name}"
            if cmd.startswith(text):
                meta = command.description or command.argument_hint or ""
                yield Completion(cmd, start_position=-len(text), display_meta=meta)
        for prompt in self._handler.prompts:
            cmd = f"/{PROMPTS_CMD_PREFIX}:{prompt.name}"
            if cmd.startswith(text):
                meta = prompt.description or prompt.argument_hint or ""
                yield Completion(cmd, start_position=-len(text), display_meta=meta)
