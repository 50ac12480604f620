"""External command execution for git, pm2, npm and friends."""

from node_redeploy.runner.commands import EXIT_NOT_FOUND, EXIT_TIMEOUT, CommandRunner

__all__ = [
    "CommandRunner",
    "EXIT_NOT_FOUND",
    "EXIT_TIMEOUT",
]
