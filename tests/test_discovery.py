"""Tests for custom command and prompt discovery."""

import asyncio
import os
import sys

import pytest

from slashkit.commands import (
    CommandScope,
    discover_commands_in_root,
    discover_custom_commands,
    discover_custom_commands_with_roots,
    discover_custom_prompts,
    find_project_root,
)
from slashkit.core.config import Config

unix_only = pytest.mark.skipif(sys.platform == "win32", reason="symlinks need privileges")


def _discover(user_root=None, project_root=None, **kwargs):
    roots = {CommandScope.USER: user_root, CommandScope.PROJECT: project_root}
    return asyncio.run(discover_custom_commands_with_roots(roots, **kwargs))


def _names(outcome):
    return [c.name for c in outcome.commands]


@pytest.fixture
def user_root(tmp_path):
    root = tmp_path / "home" / "commands"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def project_root(tmp_path):
    root = tmp_path / "project" / ".slashkit" / "commands"
    root.mkdir(parents=True)
    return root


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------
class TestDiscoverInRoot:
    def test_missing_root(self, tmp_path):
        commands, errors = asyncio.run(
            discover_commands_in_root(tmp_path / "nope", CommandScope.USER)
        )
        assert commands == []
        assert errors == []

    def test_none_root(self):
        assert asyncio.run(discover_commands_in_root(None, CommandScope.USER)) == ([], [])

    def test_root_is_a_file(self, tmp_path):
        f = tmp_path / "commands"
        f.write_text("x")
        assert asyncio.run(discover_commands_in_root(f, CommandScope.USER)) == ([], [])

    def test_parses_header_fields(self, user_root):
        (user_root / "deploy.md").write_text(
            "---\ndescription: Deploy\nargument-hint: env\nallowed-tools:\n  - shell\n"
            "model: gpt-4.1\ndisable-model-invocation: true\n---\nrun"
        )
        outcome = _discover(user_root=user_root)
        assert len(outcome.commands) == 1
        cmd = outcome.commands[0]
        assert cmd.name == "deploy"
        assert cmd.path == user_root / "deploy.md"
        assert cmd.description == "Deploy"
        assert cmd.argument_hint == "env"
        assert cmd.allowed_tools == ["shell"]
        assert cmd.model == "gpt-4.1"
        assert cmd.disable_model_invocation is True
        assert cmd.content == "run"
        assert cmd.scope is CommandScope.USER
        assert cmd.scope_subdir is None

    def test_no_header_keeps_content(self, user_root):
        (user_root / "plain.md").write_text("just $1\n")
        outcome = _discover(user_root=user_root)
        assert outcome.commands[0].content == "just $1\n"
        assert outcome.commands[0].description is None

    def test_crlf_preserved(self, user_root):
        (user_root / "win.md").write_bytes(b"line one\r\nline two\r\n")
        outcome = _discover(user_root=user_root)
        assert outcome.commands[0].content == "line one\r\nline two\r\n"

    def test_scope_subdir(self, user_root):
        nested = user_root / "frontend"
        nested.mkdir()
        (nested / "widget.md").write_text("hi")
        deeper = user_root / "a" / "b"
        deeper.mkdir(parents=True)
        (deeper / "deep.md").write_text("hi")

        outcome = _discover(user_root=user_root)
        by_name = {c.name: c for c in outcome.commands}
        assert by_name["widget"].scope_subdir == "frontend"
        assert by_name["deep"].scope_subdir == "a/b"

    def test_only_markdown(self, user_root):
        (user_root / "notes.txt").write_text("x")
        (user_root / "README").write_text("x")
        (user_root / "Upper.MD").write_text("x")
        (user_root / "ok.md").write_text("x")
        outcome = _discover(user_root=user_root)
        assert _names(outcome) == ["Upper", "ok"]
        assert outcome.errors == []

    def test_commands_sorted_by_name(self, user_root):
        for name in ("zeta", "alpha", "mid"):
            (user_root / f"{name}.md").write_text(name)
        assert _names(_discover(user_root=user_root)) == ["alpha", "mid", "zeta"]

    def test_rejects_built_in_names(self, project_root):
        (project_root / "init.md").write_text("nope")
        outcome = _discover(project_root=project_root)
        assert outcome.commands == []
        assert len(outcome.errors) == 1
        assert "conflicts with a built-in command name" in outcome.errors[0].message
        assert "/init" in outcome.errors[0].message

    def test_reserved_name_reported_for_every_file(self, project_root):
        (project_root / "init.md").write_text("one")
        (project_root / "sub").mkdir()
        (project_root / "sub" / "init.md").write_text("two")
        outcome = _discover(project_root=project_root)
        assert outcome.commands == []
        assert len(outcome.errors) == 2
        assert all("built-in" in e.message for e in outcome.errors)

    def test_custom_reserved_names(self, user_root):
        (user_root / "deploy.md").write_text("x")
        (user_root / "init.md").write_text("x")
        outcome = _discover(user_root=user_root, reserved_names={"deploy"})
        assert _names(outcome) == ["init"]
        assert len(outcome.errors) == 1

    def test_duplicate_name_in_scope(self, project_root):
        (project_root / "a.md").write_text("top")
        (project_root / "sub").mkdir()
        (project_root / "sub" / "a.md").write_text("nested")
        outcome = _discover(project_root=project_root)
        assert _names(outcome) == ["a"]
        assert outcome.commands[0].content == "top"
        assert len(outcome.errors) == 1
        assert outcome.errors[0].path == project_root / "sub" / "a.md"
        assert outcome.errors[0].message == "duplicate command name `/a` in Project scope"

    def test_unsupported_header_field(self, user_root):
        (user_root / "bad.md").write_text("---\nfoo: bar\n---\nhello")
        outcome = _discover(user_root=user_root)
        assert outcome.commands == []
        assert len(outcome.errors) == 1
        assert "unsupported header field 'foo'" in outcome.errors[0].message

    def test_unterminated_header_does_not_stop_siblings(self, user_root):
        (user_root / "broken.md").write_text("---\ndescription: x\nno end")
        (user_root / "good.md").write_text("fine")
        outcome = _discover(user_root=user_root)
        assert _names(outcome) == ["good"]
        assert len(outcome.errors) == 1
        assert outcome.errors[0].path == user_root / "broken.md"
        assert outcome.errors[0].message == "unterminated header block"

    def test_failed_parse_still_claims_name(self, user_root):
        (user_root / "x.md").write_text("---\nfoo: 1\n---\n")
        (user_root / "sub").mkdir()
        (user_root / "sub" / "x.md").write_text("ok")
        outcome = _discover(user_root=user_root)
        assert outcome.commands == []
        messages = sorted(e.message for e in outcome.errors)
        assert messages[0].startswith("duplicate command name")

    def test_invalid_utf8_content(self, user_root):
        (user_root / "bin.md").write_bytes(b"\xff\xfe\x00bad")
        (user_root / "ok.md").write_text("ok")
        outcome = _discover(user_root=user_root)
        assert _names(outcome) == ["ok"]
        assert outcome.errors[0].message.startswith("failed to read command file:")

    def test_errors_sorted_by_path(self, user_root):
        for name in ("c", "a", "b"):
            (user_root / f"{name}.md").write_text("---\nbogus: 1\n---\n")
        outcome = _discover(user_root=user_root)
        assert [e.path.name for e in outcome.errors] == ["a.md", "b.md", "c.md"]

    @unix_only
    def test_symlinked_file(self, tmp_path, user_root):
        target = tmp_path / "targets" / "source.md"
        target.parent.mkdir()
        target.write_text("hello")
        os.symlink(target, user_root / "linked.md")

        outcome = _discover(user_root=user_root)
        assert _names(outcome) == ["linked"]
        assert outcome.commands[0].content == "hello"

    @unix_only
    def test_symlinked_directory_not_followed(self, tmp_path, user_root):
        target = tmp_path / "elsewhere"
        target.mkdir()
        (target / "hidden.md").write_text("x")
        os.symlink(target, user_root / "linkdir")

        outcome = _discover(user_root=user_root)
        assert outcome.commands == []
        assert outcome.errors == []

    @unix_only
    def test_broken_symlink(self, tmp_path, user_root):
        os.symlink(tmp_path / "missing.md", user_root / "dangling.md")
        (user_root / "ok.md").write_text("ok")
        outcome = _discover(user_root=user_root)
        assert _names(outcome) == ["ok"]
        assert len(outcome.errors) == 1
        assert outcome.errors[0].message.startswith("failed to resolve command symlink:")

    @unix_only
    @pytest.mark.skipif(hasattr(os, "geteuid") and os.geteuid() == 0, reason="root ignores modes")
    def test_unreadable_directory(self, user_root):
        locked = user_root / "locked"
        locked.mkdir()
        (locked / "x.md").write_text("x")
        (user_root / "ok.md").write_text("ok")
        locked.chmod(0)
        try:
            outcome = _discover(user_root=user_root)
        finally:
            locked.chmod(0o755)
        assert _names(outcome) == ["ok"]
        assert outcome.errors[0].path == locked
        assert outcome.errors[0].message.startswith("failed to read commands directory:")


# ---------------------------------------------------------------------------
# Scope merge
# ---------------------------------------------------------------------------
class TestScopeMerge:
    def test_project_shadows_user(self, user_root, project_root):
        (user_root / "hello.md").write_text("---\ndescription: user\nmodel: m\n---\nuser")
        (project_root / "hello.md").write_text("project")
        outcome = _discover(user_root=user_root, project_root=project_root)
        assert _names(outcome) == ["hello"]
        cmd = outcome.commands[0]
        assert cmd.content == "project"
        assert cmd.scope is CommandScope.PROJECT
        # no field merging from the shadowed entry
        assert cmd.description is None
        assert cmd.model is None

    def test_union_of_distinct_names(self, user_root, project_root):
        (user_root / "b.md").write_text("user b")
        (project_root / "a.md").write_text("project a")
        (project_root / "c.md").write_text("project c")
        outcome = _discover(user_root=user_root, project_root=project_root)
        assert _names(outcome) == ["a", "b", "c"]
        assert [c.scope for c in outcome.commands] == [
            CommandScope.PROJECT,
            CommandScope.USER,
            CommandScope.PROJECT,
        ]

    def test_same_name_across_scopes_is_not_duplicate(self, user_root, project_root):
        (user_root / "x.md").write_text("u")
        (project_root / "x.md").write_text("p")
        assert _discover(user_root=user_root, project_root=project_root).errors == []

    def test_errors_from_both_scopes(self, user_root, project_root):
        (user_root / "init.md").write_text("x")
        (project_root / "status.md").write_text("x")
        outcome = _discover(user_root=user_root, project_root=project_root)
        assert len(outcome.errors) == 2
        assert [e.path for e in outcome.errors] == sorted(e.path for e in outcome.errors)


# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
class TestFindProjectRoot:
    def test_marker_in_ancestor(self, tmp_path):
        (tmp_path / ".git").write_text("gitdir: here")
        cwd = tmp_path / "a" / "b"
        cwd.mkdir(parents=True)
        assert asyncio.run(find_project_root(cwd, [".git"])) == tmp_path

    def test_nearest_marker_wins(self, tmp_path):
        (tmp_path / ".git").mkdir()
        inner = tmp_path / "inner"
        (inner / ".git").mkdir(parents=True)
        cwd = inner / "src"
        cwd.mkdir()
        assert asyncio.run(find_project_root(cwd, [".git"])) == inner

    def test_any_marker_counts(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("")
        cwd = tmp_path / "pkg"
        cwd.mkdir()
        assert asyncio.run(find_project_root(cwd, [".hg", "pyproject.toml"])) == tmp_path

    def test_no_markers_uses_cwd(self, tmp_path):
        (tmp_path / ".git").mkdir()
        cwd = tmp_path / "child"
        cwd.mkdir()
        assert asyncio.run(find_project_root(cwd, [])) == cwd

    def test_no_match_uses_cwd(self, tmp_path):
        cwd = tmp_path / "child"
        cwd.mkdir()
        marker = "no-such-marker-7f3a"
        assert asyncio.run(find_project_root(cwd, [marker])) == cwd


class TestDiscoverCustomCommands:
    def test_from_config(self, tmp_path):
        home = tmp_path / "home"
        (home / "commands").mkdir(parents=True)
        (home / "commands" / "hello.md").write_text("user")
        (home / "commands" / "only-user.md").write_text("user")

        project = tmp_path / "project"
        (project / ".slashkit" / "commands").mkdir(parents=True)
        (project / ".git").write_text("gitdir: here")
        (project / ".slashkit" / "commands" / "hello.md").write_text("project")
        cwd = project / "child"
        cwd.mkdir()

        config = Config(cwd=cwd, global_dir=home)
        outcome = asyncio.run(discover_custom_commands(config))
        assert _names(outcome) == ["hello", "only-user"]
        assert outcome.commands[0].content == "project"

    def test_explicit_project_dir(self, tmp_path):
        cmds = tmp_path / "elsewhere"
        cmds.mkdir()
        (cmds / "x.md").write_text("x")
        config = Config(cwd=tmp_path, global_dir=tmp_path / "home", project_dir=cmds)
        outcome = asyncio.run(discover_custom_commands(config))
        assert _names(outcome) == ["x"]
        assert outcome.commands[0].scope is CommandScope.PROJECT


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------
class TestDiscoverPrompts:
    def test_flat_directory(self, tmp_path):
        prompts = tmp_path / "prompts"
        (prompts / "nested").mkdir(parents=True)
        (prompts / "nested" / "deep.md").write_text("x")
        (prompts / "review.md").write_text(
            "---\ndescription: Review code\nargument-hint: USER=<name>\n---\nReview $USER"
        )
        (prompts / "notes.txt").write_text("x")

        outcome = asyncio.run(discover_custom_prompts(prompts))
        assert [p.name for p in outcome.prompts] == ["review"]
        p = outcome.prompts[0]
        assert p.description == "Review code"
        assert p.argument_hint == "USER=<name>"
        assert p.content == "Review $USER"

    def test_exclude(self, tmp_path):
        prompts = tmp_path / "prompts"
        prompts.mkdir()
        (prompts / "a.md").write_text("a")
        (prompts / "b.md").write_text("b")
        outcome = asyncio.run(discover_custom_prompts(prompts, exclude={"a"}))
        assert [p.name for p in outcome.prompts] == ["b"]
        assert outcome.errors == []

    def test_missing_dir(self, tmp_path):
        outcome = asyncio.run(discover_custom_prompts(tmp_path / "nope"))
        assert outcome.prompts == []
        assert outcome.errors == []

    def test_bad_header_reported(self, tmp_path):
        prompts = tmp_path / "prompts"
        prompts.mkdir()
        (prompts / "bad.md").write_text("---\nwhat: 1\n---\n")
        (prompts / "good.md").write_text("ok")
        outcome = asyncio.run(discover_custom_prompts(prompts))
        assert [p.name for p in outcome.prompts] == ["good"]
        assert "unsupported header field 'what'" in outcome.errors[0].message

    @unix_only
    def test_symlinked_prompt(self, tmp_path):
        prompts = tmp_path / "prompts"
        prompts.mkdir()
        target = tmp_path / "src.md"
        target.write_text("linked body")
        os.symlink(target, prompts / "linked.md")
        outcome = asyncio.run(discover_custom_prompts(prompts))
        assert outcome.prompts[0].content == "linked body"
