"""Dependency installation for the backend checkout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from node_redeploy.core.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from node_redeploy.models.results import CommandResult
    from node_redeploy.runner.commands import CommandRunner

logger = get_logger(__name__)

DEFAULT_INSTALL_ARGS = ("install", "--production")


def install_dependencies(
    runner: CommandRunner,
    workdir: Path,
    args: list[str] | tuple[str, ...] = DEFAULT_INSTALL_ARGS,
) -> CommandResult:
    """Run npm in the checkout.

    Always runs; package.json changes are not detected.

    Raises:
        CommandError: If npm exits non-zero.
    """
    result = runner.run(["npm", *args], cwd=workdir, check=True)
    logger.info("dependencies_installed", duration_ms=round(result.duration_ms, 1))
    return result
