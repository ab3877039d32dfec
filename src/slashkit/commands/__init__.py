"""Commands: custom command discovery, placeholder expansion, and slash dispatch."""

from .builtins import COMMANDS, PROMPTS_CMD_PREFIX, RESERVED_COMMAND_NAMES
from .discovery import (
    discover_commands_in_root,
    discover_custom_commands,
    discover_custom_commands_with_roots,
    find_project_root,
)
from .expansion import (
    CommandExpansion,
    Dialect,
    MissingAssignment,
    MissingKey,
    MissingPromptArgsError,
    PromptArgsError,
    PromptExpansionError,
    expand_custom_command,
    expand_custom_command_text,
    expand_custom_prompt_text,
    expand_named_placeholders,
    expand_numeric_placeholders,
    prompt_argument_names,
    select_dialect,
)
from .handler import CommandHandler, CommandResult, discover_all, load_catalog
from .models import CommandScope, CustomCommand, CustomPrompt, DiscoveryError, DiscoveryOutcome
from .prompts import discover_custom_prompts

__all__ = [
    "COMMANDS",
    "PROMPTS_CMD_PREFIX",
    "RESERVED_COMMAND_NAMES",
    "CommandExpansion",
    "CommandHandler",
    "CommandResult",
    "CommandScope",
    "CustomCommand",
    "CustomPrompt",
    "Dialect",
    "DiscoveryError",
    "DiscoveryOutcome",
    "MissingAssignment",
    "MissingKey",
    "MissingPromptArgsError",
    "PromptArgsError",
    "PromptExpansionError",
    "discover_all",
    "discover_commands_in_root",
    "discover_custom_commands",
    "discover_custom_commands_with_roots",
    "discover_custom_prompts",
    "expand_custom_command",
    "expand_custom_command_text",
    "expand_custom_prompt_text",
    "expand_named_placeholders",
    "expand_numeric_placeholders",
    "find_project_root",
    "load_catalog",
    "prompt_argument_names",
    "select_dialect",
]
