"""Configuration: env, paths, project root markers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_DIR_NAME = ".slashkit"
DEFAULT_PROJECT_ROOT_MARKERS = (".git",)


def _default_global_dir() -> Path:
    if home := os.getenv("SLASHKIT_HOME"):
        return Path(home)
    return Path.home() / PROJECT_DIR_NAME


@dataclass
class Config:
    cwd: Path = field(default_factory=Path.cwd)
    global_dir: Path = field(default_factory=_default_global_dir)
    project_dir: Path | None = None  # explicit override; None = resolve from root markers
    # raw settings value, validated by project_root_markers()
    project_root_markers: Any = None
    verbose: bool = False

    @property
    def user_commands_dir(self) -> Path:
        return self.global_dir / "commands"

    @property
    def user_prompts_dir(self) -> Path:
        return self.global_dir / "prompts"

    @property
    def markers(self) -> list[str]:
        return project_root_markers(self.project_root_markers)


def project_root_markers(value: Any) -> list[str]:
    """Validate a raw marker list; anything malformed falls back to the default."""
    if not isinstance(value, list):
        return list(DEFAULT_PROJECT_ROOT_MARKERS)
    if not all(isinstance(m, str) for m in value):
        return list(DEFAULT_PROJECT_ROOT_MARKERS)
    return list(value)


def _apply_settings(config: Config, path: Path) -> None:
    """Apply a single settings.json file to config."""
    if not path.exists():
        return
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("skipping settings file %s: %s", path, e)
        return
    if not isinstance(data, dict):
        logger.warning("skipping settings file %s: not a JSON object", path)
        return
    if "project_root_markers" in data:
        config.project_root_markers = data["project_root_markers"]


def load_config(cwd: Path | None = None, verbose: bool = False) -> Config:
    """Load config with priority: env > settings.local.json > project > global > defaults."""
    load_dotenv()

    config = Config()
    if cwd is not None:
        config.cwd = cwd
    config.verbose = verbose

    project_dir = config.cwd / PROJECT_DIR_NAME
    _apply_settings(config, config.global_dir / "settings.json")
    _apply_settings(config, project_dir / "settings.json")
    _apply_settings(config, project_dir / "settings.local.json")

    if env_markers := os.getenv("SLASHKIT_PROJECT_ROOT_MARKERS"):
        config.project_root_markers = [m.strip() for m in env_markers.split(",") if m.strip()]

    return config
