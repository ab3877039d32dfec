"""Tests for slashkit.tui.completers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

from prompt_toolkit.document import Document

from slashkit.commands import CommandScope, CustomCommand, CustomPrompt
from slashkit.tui.completers import SlashCompleter


def _handler():
    h = MagicMock()
    h.commands = [
        CustomCommand(
            name="deploy",
            path=Path("/fake/deploy.md"),
            content="",
            scope=CommandScope.USER,
            description="Ship it",
        ),
        CustomCommand(
            name="lint",
            path=Path("/fake/lint.md"),
            content="",
            scope=CommandScope.PROJECT,
            argument_hint="<path>",
        ),
    ]
    h.prompts = [CustomPrompt(name="review", path=Path("/fake/review.md"), content="")]
    return h


class TestSlashCompleter:
    def _completions(self, text, cmd_handler=None):
        completer = SlashCompleter(cmd_handler)
        doc = Document(text, len(text))
        return list(completer.get_completions(doc, None))

    def test_slash_trigger_returns_builtin_commands(self):
        texts = [c.text for c in self._completions("/")]
        assert "/help" in texts

    def test_no_slash_returns_nothing(self):
        assert self._completions("hello") == []

    def test_partial_slash_filters_commands(self):
        for c in self._completions("/hel", _handler()):
            assert c.text.startswith("/hel")

    def test_custom_commands_included(self):
        completions = self._completions("/de", _handler())
        assert [c.text for c in completions] == ["/deploy"]
        assert completions[0].display_meta_text == "Ship it"

    def test_argument_hint_as_meta(self):
        completions = self._completions("/li", _handler())
        assert completions[0].display_meta_text == "<path>"

    def test_prompts_included(self):
        texts = [c.text for c in self._completions("/prompts:", _handler())]
        assert texts == ["/prompts:review"]

    def test_stops_after_name(self):
        assert self._completions("/deploy pr", _handler()) == []
