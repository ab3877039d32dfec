"""Header block parsing for command and prompt markdown files.

A definition file may start with a YAML block fenced by bare ``---`` lines::

    ---
    description: Deploy
    argument-hint: env
    allowed-tools:
      - shell
    ---
    run

Only a fixed set of keys is accepted; anything else rejects the whole file.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass

import yaml

DELIMITER = "---"


class FrontmatterError(ValueError):
    """Raised when a header block cannot be decoded."""


class _HeaderLoader(yaml.SafeLoader):
    """SafeLoader with YAML 1.2 booleans, no implicit timestamps and unique keys.

    Plain `yes`, `on` or `2024-01-01` stay strings.
    """

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            key = self.construct_object(key_node)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


_BOOL_TAG = "tag:yaml.org,2002:bool"
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"

_HeaderLoader.yaml_implicit_resolvers = {
    first: [(tag, rx) for tag, rx in resolvers if tag not in (_BOOL_TAG, _TIMESTAMP_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
_HeaderLoader.add_implicit_resolver(
    _BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)


@dataclass
class ParsedFrontmatter:
    """Decoded header fields plus the body that follows the block."""

    body: str = ""
    description: str | None = None
    argument_hint: str | None = None
    allowed_tools: list[str] | None = None
    model: str | None = None
    disable_model_invocation: bool | None = None


def _segments(content: str) -> Iterator[str]:
    # lines split on "\n" only, each keeping its terminator
    start = 0
    while start < len(content):
        end = content.find("\n", start)
        end = len(content) if end == -1 else end + 1
        yield content[start:end]
        start = end


def _is_delimiter(segment: str) -> bool:
    return segment.rstrip("\r\n").strip() == DELIMITER


def parse_frontmatter(content: str) -> ParsedFrontmatter:
    """Strip and decode the optional header block at the top of *content*."""
    segments = _segments(content)
    first = next(segments, None)
    if first is None:
        return ParsedFrontmatter(body="")
    if not _is_delimiter(first):
        return ParsedFrontmatter(body=content)

    header_lines: list[str] = []
    consumed = len(first)
    closed = False
    for segment in segments:
        consumed += len(segment)
        if _is_delimiter(segment):
            closed = True
            break
        header_lines.append(segment)

    if not closed:
        raise FrontmatterError("unterminated header block")

    parsed = ParsedFrontmatter(body=content[consumed:])
    header = "".join(header_lines)
    if header.strip():
        _decode_fields(header, parsed)
    return parsed


def _decode_fields(header: str, parsed: ParsedFrontmatter) -> None:
    try:
        data = yaml.load(header, Loader=_HeaderLoader)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"invalid header: {e}") from e
    if data is None:
        return
    if not isinstance(data, dict):
        raise FrontmatterError("header must be a mapping")

    for key, value in data.items():
        if not isinstance(key, str):
            raise FrontmatterError("header keys must be strings")
        if key == "description":
            parsed.description = _optional_string(value, "description")
        elif key in ("argument-hint", "argument_hint"):
            parsed.argument_hint = _optional_string(value, "argument-hint")
        elif key == "allowed-tools":
            parsed.allowed_tools = _string_list(value, "allowed-tools")
        elif key == "model":
            parsed.model = _optional_string(value, "model")
        elif key == "disable-model-invocation":
            parsed.disable_model_invocation = _optional_bool(value, "disable-model-invocation")
        else:
            raise FrontmatterError(f"unsupported header field '{key}'")


def _optional_string(value: object, field: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise FrontmatterError(f"'{field}' must be a string")


def _optional_bool(value: object, field: str) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    raise FrontmatterError(f"'{field}' must be a boolean")


def _string_list(value: object, field: str) -> list[str] | None:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise FrontmatterError(f"'{field}' must be a list of strings")
    return list(value)
