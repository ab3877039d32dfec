"""Public API for the slashkit TUI package."""

from .repl import print_result, run_repl

__all__ = ["run_repl", "print_result"]
