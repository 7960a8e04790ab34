"""YAML configuration for a setup run."""

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger("dotsetup")

DEFAULT_CONFIG = Path(__file__).parent.resolve() / "configs" / "setup.yaml"


@dataclass
class SetupConfig:
    required_tools: List[str] = field(default_factory=lambda: ["stow", "git", "curl"])
    max_depth: int = 3
    ignore: List[str] = field(
        default_factory=lambda: [
            ".git",
            ".gitignore",
            ".gitmodules",
            ".svn",
            ".hg",
            "_darcs",
            "CVS",
            "RCS",
            ".cvsignore",
            "*~",
            "#*#",
            ".#*",
        ]
    )
    ignore_top_level: List[str] = field(
        default_factory=lambda: ["README*", "LICENSE*", "COPYING"]
    )
    required_dirs: List[str] = field(
        default_factory=lambda: [
            ".config",
            ".config/backgrounds",
            ".local/bin",
            ".local/share/fonts",
        ]
    )
    background: Dict[str, str] = field(
        default_factory=lambda: {
            "path": ".config/backgrounds/shaded.png",
            "url": "https://raw.githubusercontent.com/catppuccin/wallpapers/main/minimalistic/dark-cat.png",
        }
    )
    tmux_plugin_manager: Dict[str, str] = field(
        default_factory=lambda: {
            "repo": "https://github.com/tmux-plugins/tpm",
            "path": ".tmux/plugins/tpm",
        }
    )
    starship: Dict[str, str] = field(
        default_factory=lambda: {"installer_url": "https://starship.rs/install.sh"}
    )
    chsh_timeout: int = 60
    download_timeout: int = 30
    steps: List[str] = field(
        default_factory=lambda: [
            "required_dirs",
            "background",
            "tmux",
            "neovim",
            "starship",
            "zsh",
        ]
    )


_EXPECTED_TYPES = {
    "required_tools": list,
    "max_depth": int,
    "ignore": list,
    "ignore_top_level": list,
    "required_dirs": list,
    "background": dict,
    "tmux_plugin_manager": dict,
    "starship": dict,
    "chsh_timeout": int,
    "download_timeout": int,
    "steps": list,
}


class ConfigLoader:
    """Loads YAML configurations."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG
        self.data: Dict[str, Any] = {}
        self.load()

    def load(self):
        if not self.config_path.exists():
            logger.error(f"Config file not found: {self.config_path}")
            return
        try:
            with open(self.config_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_path}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self.config_path} must contain a mapping at top level")
        self.data = data

    def to_config(self) -> SetupConfig:
        known = {f.name for f in fields(SetupConfig)}
        values = {}
        for key, value in self.data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            expected = _EXPECTED_TYPES[key]
            # bool is an int subclass
            if not isinstance(value, expected) or (
                expected is int and isinstance(value, bool)
            ):
                raise ConfigError(
                    f"Config key '{key}' must be of type {expected.__name__}, "
                    f"got {type(value).__name__}"
                )
            if expected is dict:
                value = {**getattr(SetupConfig(), key), **value}
            values[key] = value

        config = SetupConfig(**values)
        if config.max_depth < 1:
            raise ConfigError("max_depth must be at least 1")
        if config.chsh_timeout < 1 or config.download_timeout < 1:
            raise ConfigError("Timeouts must be positive")
        return config


def load_config(config_path: Optional[Path] = None) -> SetupConfig:
    return ConfigLoader(config_path).to_config()
