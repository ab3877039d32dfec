"""CommandHandler: dispatch slash commands to built-ins, custom commands and saved prompts."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rich.markup import escape

from .builtins import COMMANDS, PROMPTS_CMD_PREFIX, RESERVED_COMMAND_NAMES
from .discovery import discover_custom_commands
from .expansion import PromptExpansionError, expand_custom_command, expand_custom_prompt_text
from .models import DiscoveryOutcome
from .prompts import discover_custom_prompts

if TYPE_CHECKING:
    from slashkit.core.config import Config


@dataclass
class CommandResult:
    """Structured result from expanding a custom command or prompt."""

    prompt: str
    allowed_tools: list[str] = field(default_factory=list)
    model: str = ""
    disable_model_invocation: bool = False


def _run_async(coro):
    try:
        asyncio.get_running_loop()
        import concurrent.futures

        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    except RuntimeError:
        return asyncio.run(coro)


async def discover_all(config: Config) -> DiscoveryOutcome:
    """Run command and prompt discovery and combine the two outcomes."""
    commands = await discover_custom_commands(config)
    prompts = await discover_custom_prompts(config.user_prompts_dir, exclude=RESERVED_COMMAND_NAMES)
    errors = sorted(commands.errors + prompts.errors, key=lambda e: e.path)
    return DiscoveryOutcome(commands=commands.commands, prompts=prompts.prompts, errors=errors)


def load_catalog(config: Config) -> DiscoveryOutcome:
    """Blocking wrapper around discover_all()."""
    return _run_async(discover_all(config))


class CommandHandler:
    """Handle slash commands (built-in + custom commands/**/*.md + prompts/*.md)."""

    def __init__(self, config: Config):
        self.config = config
        self.catalog = DiscoveryOutcome()
        self.reload()

    @property
    def commands(self):
        return self.catalog.commands

    @property
    def prompts(self):
        return self.catalog.prompts

    @property
    def errors(self):
        return self.catalog.errors

    def reload(self) -> None:
        self.catalog = load_catalog(self.config)

    def is_command(self, text: str) -> bool:
        return text.strip().startswith("/")

    def handle(self, text: str) -> str | CommandResult | None:
        text = text.strip()
        if not text.startswith("/"):
            return None

        parts = text.split(maxsplit=1)
        cmd = parts[0]

        if cmd == "/help":
            return self._help()

        elif cmd == "/quit":
            return "quit"

        elif cmd == "/reload":
            self.reload()
            return (
                f"loaded {len(self.commands)} command(s), {len(self.prompts)} prompt(s)"
                + (f", [red]{len(self.errors)} error(s)[/red]" if self.errors else "")
            )

        elif cmd == "/errors":
            if not self.errors:
                return "[dim]no errors[/dim]"
            return "\n".join(
                f"  {escape(str(e.path))}: [red]{escape(e.message)}[/red]" for e in self.errors
            )

        elif cmd.startswith(f"/{PROMPTS_CMD_PREFIX}:"):
            try:
                expanded = expand_custom_prompt_text(text, self.prompts)
            except PromptExpansionError as e:
                return f"[red]{escape(e.user_message())}[/red]"
            if expanded is None:
                return f"unknown prompt: {escape(cmd)}\n[dim]type /help for available commands[/dim]"
            return CommandResult(prompt=expanded)

        expansion = expand_custom_command(text, self.commands)
        if expansion is None:
            return f"unknown command: {escape(cmd)}\n[dim]type /help for available commands[/dim]"
        command = expansion.command
        return CommandResult(
            prompt=expansion.text,
            allowed_tools=list(command.allowed_tools or []),
            model=command.model or "",
            disable_model_invocation=bool(command.disable_model_invocation),
        )

    def _help(self) -> str:
        lines = [""]
        for c, desc in COMMANDS.items():
            lines.append(f"  [bold]{c:<12}[/bold] [dim]{desc}[/dim]")
        for command in self.commands:
            label = f"/{command.name}"
            if command.argument_hint:
                label += f" {command.argument_hint}"
            scope = command.scope.value
            if command.scope_subdir:
                scope += f":{command.scope_subdir}"
            desc = f"{command.description or ''} ({scope})"
            lines.append(f"  [bold]{escape(f'{label:<12}')}[/bold] [dim]{escape(desc)}[/dim]")
        for prompt in self.prompts:
            label = f"/{PROMPTS_CMD_PREFIX}:{prompt.name}"
            if prompt.argument_hint:
                label += f" {prompt.argument_hint}"
            desc = prompt.description or ""
            lines.append(f"  [bold]{escape(f'{label:<12}')}[/bold] [dim]{escape(desc)}[/dim]")
        lines.append("")
        return "\n".join(lines)
