"""Runtime directory management for agentlink.

All runtime data is stored under ~/.agentlink/ (or $AGENTLINK_HOME):
- config: Configuration file (created by the CLI on first run)
- logs/: Log files (only created with --verbose)
"""

import os

RUNTIME_DIR = os.environ.get("AGENTLINK_HOME") or os.path.join(
    os.path.expanduser("~"), ".agentlink"
)


def get_runtime_dir() -> str:
    """Get the runtime directory path.

    Returns:
        Path to ~/.agentlink directory
    """
    return RUNTIME_DIR


def get_config_file() -> str:
    """Get the configuration file path.

    Returns:
        Path to ~/.agentlink/config
    """
    return os.path.join(RUNTIME_DIR, "config")


def get_log_dir() -> str:
    """Get the log directory path.

    Returns:
        Path to ~/.agentlink/logs/
    """
    return os.path.join(RUNTIME_DIR, "logs")


def ensure_runtime_dirs(create_logs: bool = False) -> None:
    """Ensure runtime directories exist.

    Note: ~/.agentlink/config is created by the CLI on first run.

    Args:
        create_logs: Whether to create the logs directory (for --verbose mode)
    """
    os.makedirs(get_runtime_dir(), exist_ok=True)

    if create_logs:
        os.makedirs(get_log_dir(), exist_ok=True)
