"""External command execution.

This module wraps ``subprocess`` for the git, pm2, npm and pkill calls the
redeploy makes, turning each invocation into a ``CommandResult`` instead of
raising on non-zero exits unless asked to.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import TYPE_CHECKING

from node_redeploy.core.exceptions import CommandError
from node_redeploy.core.logging import get_logger
from node_redeploy.models.results import CommandResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

logger = get_logger(__name__)

# Conventional shell exit statuses
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127

DEFAULT_TIMEOUT_SECONDS = 600


class CommandRunner:
    """Runs external commands and captures their output.

    Attributes:
        timeout: Default per-command timeout in seconds.
        dry_run: When set, commands are logged and reported as successful
            without being executed.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        dry_run: bool = False,
    ) -> None:
        self.timeout = timeout
        self.dry_run = dry_run

    def available(self, tool: str) -> bool:
        """Check whether an executable is on PATH."""
        return shutil.which(tool) is not None

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path | None = None,
        check: bool = False,
        timeout: int | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            argv: Command and arguments.
            cwd: Working directory for the command.
            check: Raise CommandError on a non-zero exit.
            timeout: Override for the default timeout.
            env: Extra environment variables merged over os.environ.

        Returns:
            CommandResult describing the run.

        Raises:
            CommandError: If check is set and the command failed.
        """
        args = [str(a) for a in argv]
        log = logger.bind(command=" ".join(args), cwd=str(cwd) if cwd else None)

        if self.dry_run:
            log.info("command_dry_run")
            return CommandResult(argv=args, returncode=0)

        merged_env = {**os.environ, **env} if env else None
        start = time.perf_counter()
        try:
            process = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout or self.timeout,
                env=merged_env,
                check=False,
            )
            result = CommandResult(
                argv=args,
                returncode=process.returncode,
                stdout=process.stdout or "",
                stderr=process.stderr or "",
                duration_ms=(time.perf_counter() - start) * 1000,
            )
        except FileNotFoundError:
            result = CommandResult(
                argv=args,
                returncode=EXIT_NOT_FOUND,
                stderr=f"{args[0]}: command not found",
                duration_ms=(time.perf_counter() - start) * 1000,
            )
        except subprocess.TimeoutExpired as e:
            log.error("command_timeout", timeout=e.timeout)
            result = CommandResult(
                argv=args,
                returncode=EXIT_TIMEOUT,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr) or f"timed out after {e.timeout}s",
                duration_ms=(time.perf_counter() - start) * 1000,
            )

        log.debug(
            "command_finished",
            returncode=result.returncode,
            duration_ms=round(result.duration_ms, 1),
        )
        if check and not result.ok:
            if result.stderr.strip():
                log.error("command_failed", stderr=result.stderr.strip()[-500:])
            raise CommandError(f"Command failed: {result.command_line}", result)
        return result

    def first_success(
        self,
        chain: Iterable[Sequence[str]],
        *,
        cwd: str | Path | None = None,
    ) -> CommandResult:
        """Run commands in order until one succeeds.

        Args:
            chain: Alternative commands, most preferred first.
            cwd: Working directory for every command.

        Returns:
            The first successful result, or the last result if none succeed.

        Raises:
            ValueError: If the chain is empty.
        """
        result: CommandResult | None = None
        for argv in chain:
            result = self.run(argv, cwd=cwd)
            if result.ok:
                return result
            logger.info("command_fallback", failed=result.command_line, returncode=result.returncode)
        if result is None:
            raise ValueError("Command chain is empty")
        return result

    def spawn_background(
        self,
        argv: Sequence[str],
        *,
        cwd: str | Path,
        log_path: str | Path,
    ) -> int:
        """Start a detached process with output appended to a log file.

        Args:
            argv: Command and arguments.
            cwd: Working directory for the process.
            log_path: File receiving both stdout and stderr.

        Returns:
            PID of the spawned process (0 in dry-run mode).

        Raises:
            OSError: If the process could not be started.
        """
        args = [str(a) for a in argv]
        if self.dry_run:
            logger.info("spawn_dry_run", command=" ".join(args))
            return 0

        with open(log_path, "ab") as log_file:
            process = subprocess.Popen(
                args,
                cwd=cwd,
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
        logger.info("spawned_background", command=" ".join(args), pid=process.pid, log=str(log_path))
        return process.pid


def _decode(output: str | bytes | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
