"""Configuration management for agentlink."""

import os

# Define path constants directly to avoid circular imports with utils
# (utils.terminal_ui imports Config, and utils.runtime is in the utils package)
_RUNTIME_DIR = os.environ.get("AGENTLINK_HOME") or os.path.join(
    os.path.expanduser("~"), ".agentlink"
)
_CONFIG_FILE = os.path.join(_RUNTIME_DIR, "config")

_LINK_MODES = ("symlink", "copy", "auto")

# Default configuration template
_DEFAULT_CONFIG = """\
# agentlink configuration

# Repository checkout holding agents/ and commands/ (empty = current directory)
SOURCE_DIR=

# Where capability documents are linked to
DESTINATION_DIR=~/.claude

# Extra roots that override shipped documents (comma separated)
OVERLAY_DIRS=
SOURCE_TRUST_LEVEL=0
OVERLAY_TRUST_LEVEL=10

# symlink, copy, or auto (symlink with per-entry copy fallback)
LINK_MODE=symlink

# Name under which links are recorded in the destination manifest
LINEAGE=agentlink

# Substituted for $ARGUMENTS when a command is invoked without arguments
DEFAULT_ARGUMENTS_PHRASE=No arguments were provided.

LOG_LEVEL=DEBUG
UI_THEME=dark
"""


def _load_config(path: str) -> dict[str, str]:
    """Parse a KEY=VALUE config file, skipping comments and blank lines."""
    cfg: dict[str, str] = {}
    if not os.path.isfile(path):
        return cfg
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            # Strip inline comments (# ...) from the value
            if "#" in value:
                value = value[: value.index("#")]
            cfg[key.strip()] = value.strip()
    return cfg


def ensure_config():
    """Ensure the config file exists, create with defaults if not."""
    if not os.path.exists(_CONFIG_FILE):
        os.makedirs(_RUNTIME_DIR, exist_ok=True)
        with open(_CONFIG_FILE, "w", encoding="utf-8") as f:
            f.write(_DEFAULT_CONFIG)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


_cfg = _load_config(_CONFIG_FILE)


class Config:
    """Configuration for agentlink.

    All configuration is centralized here. Access config values directly via Config.XXX.
    """

    # Source and destination trees
    SOURCE_DIR = _cfg.get("SOURCE_DIR") or None
    DESTINATION_DIR = _cfg.get("DESTINATION_DIR") or os.path.join("~", ".claude")
    OVERLAY_DIRS = _split_list(_cfg.get("OVERLAY_DIRS", ""))

    # Conflict resolution
    SOURCE_TRUST_LEVEL = int(_cfg.get("SOURCE_TRUST_LEVEL", "0"))
    OVERLAY_TRUST_LEVEL = int(_cfg.get("OVERLAY_TRUST_LEVEL", "10"))

    # Linker
    LINK_MODE = _cfg.get("LINK_MODE", "symlink").lower()
    LINEAGE = _cfg.get("LINEAGE") or "agentlink"

    # Invocation
    DEFAULT_ARGUMENTS_PHRASE = _cfg.get("DEFAULT_ARGUMENTS_PHRASE") or "No arguments were provided."

    # Logging Configuration
    # Note: Logging is controlled via --verbose flag
    LOG_LEVEL = _cfg.get("LOG_LEVEL", "DEBUG").upper()

    # UI Configuration
    UI_THEME = _cfg.get("UI_THEME", "dark")  # "dark" or "light"

    @classmethod
    def validate(cls):
        """Validate configuration.

        Raises:
            ValueError: If a configuration value is invalid
        """
        if cls.LINK_MODE not in _LINK_MODES:
            raise ValueError(
                f"LINK_MODE must be one of {', '.join(_LINK_MODES)}, got '{cls.LINK_MODE}'. "
                "Please fix it in ~/.agentlink/config."
            )
        if not cls.LINEAGE.strip():
            raise ValueError("LINEAGE cannot be empty. Please set it in ~/.agentlink/config.")
