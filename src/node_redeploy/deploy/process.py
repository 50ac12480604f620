"""Stopping and starting the backend process.

The backend normally runs under pm2. When pm2 is missing or refuses to
start the app, the server is launched directly in the background with its
output appended to a log file.
"""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING

from node_redeploy.core.exceptions import StartError
from node_redeploy.core.logging import get_logger
from node_redeploy.models.results import LaunchMode

if TYPE_CHECKING:
    from node_redeploy.runner.commands import CommandRunner

logger = get_logger(__name__)


class ProcessSupervisor:
    """Controls the backend server process.

    Attributes:
        workdir: Backend checkout containing the entrypoint.
        app_name: pm2 process name.
        entrypoint: Server entry file passed to node.
        log_file: Output file for unmanaged launches, relative to workdir.
    """

    def __init__(
        self,
        runner: CommandRunner,
        workdir: Path,
        app_name: str,
        entrypoint: str = "app.js",
        log_file: str = "app.log",
    ) -> None:
        self.runner = runner
        self.workdir = workdir
        self.app_name = app_name
        self.entrypoint = entrypoint
        self.log_path = workdir / log_file

    @property
    def node_command(self) -> list[str]:
        return ["node", self.entrypoint]

    def pm2_available(self) -> bool:
        return self.runner.available("pm2")

    def is_registered(self) -> bool:
        """Check whether pm2 knows a process with the app name."""
        if not self.pm2_available():
            return False
        result = self.runner.run(["pm2", "jlist"], cwd=self.workdir)
        if not result.ok:
            return False
        try:
            processes = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            logger.warning("pm2_jlist_unparseable")
            return False
        return any(proc.get("name") == self.app_name for proc in processes)

    def stop(self) -> list[str]:
        """Stop every running instance of the server.

        Each action is best effort: a process that is not running is not
        an error.

        Returns:
            Descriptions of the actions that succeeded.
        """
        actions: list[str] = []
        if self.pm2_available():
            for verb in ("stop", "delete"):
                result = self.runner.run(["pm2", verb, self.app_name], cwd=self.workdir)
                if result.ok:
                    actions.append(f"pm2 {verb} {self.app_name}")
        else:
            logger.info("pm2_not_installed")

        pattern = " ".join(self.node_command)
        result = self.runner.run(["pkill", "-f", pattern])
        if result.ok:
            actions.append(f"killed '{pattern}'")

        logger.info("server_stopped", actions=actions)
        return actions

    def start(self) -> LaunchMode:
        """Start the server under pm2, falling back to a background launch.

        Returns:
            How the server was launched.

        Raises:
            StartError: If neither launch method worked.
        """
        if self.pm2_available():
            result = self.runner.run(
                ["pm2", "start", self.entrypoint, "--name", self.app_name],
                cwd=self.workdir,
            )
            if result.ok:
                save = self.runner.run(["pm2", "save"], cwd=self.workdir)
                if not save.ok:
                    logger.warning("pm2_save_failed", stderr=save.stderr.strip())
                logger.info("server_started", mode=LaunchMode.PM2)
                return LaunchMode.PM2
            logger.warning("pm2_start_failed", stderr=result.stderr.strip())

        try:
            pid = self.runner.spawn_background(
                self.node_command, cwd=self.workdir, log_path=self.log_path
            )
        except OSError as e:
            raise StartError(f"Server could not be started: {e}") from e
        logger.info("server_started", mode=LaunchMode.NOHUP, pid=pid)
        return LaunchMode.NOHUP

    def recent_logs(self, mode: LaunchMode | None, lines: int = 20) -> str:
        """Return the last lines of server output for diagnostics."""
        if mode == LaunchMode.PM2:
            result = self.runner.run(
                ["pm2", "logs", self.app_name, "--lines", str(lines), "--nostream"],
                cwd=self.workdir,
            )
            return result.stdout or result.stderr
        return tail_file(self.log_path, lines)


def tail_file(path: Path, lines: int) -> str:
    """Return the last ``lines`` lines of a text file, or '' if absent."""
    if not path.is_file():
        return ""
    with path.open(encoding="utf-8", errors="replace") as fh:
        return "".join(deque(fh, maxlen=lines))
