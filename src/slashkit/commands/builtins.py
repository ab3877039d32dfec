"""Built-in command names: the reserved list and the handler's own help table."""

from __future__ import annotations

# Names owned by the host session; custom command files may not use them.
RESERVED_COMMAND_NAMES = frozenset(
    {
        "model",
        "personality",
        "approvals",
        "permissions",
        "setup-elevated-sandbox",
        "experimental",
        "skills",
        "review",
        "new",
        "resume",
        "fork",
        "init",
        "compact",
        "collab",
        "agent",
        "diff",
        "mention",
        "status",
        "mcp",
        "logout",
        "quit",
        "exit",
        "feedback",
        "rollout",
        "ps",
        "test-approval",
        "help",
        "reload",
        "errors",
    }
)

COMMANDS = {
    "/help": "Show available commands",
    "/reload": "Re-scan custom commands and prompts",
    "/errors": "Show problems found while loading custom commands",
    "/quit": "Exit",
}

PROMPTS_CMD_PREFIX = "prompts"
