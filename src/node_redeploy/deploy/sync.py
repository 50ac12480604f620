"""Git synchronisation of the backend checkout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from node_redeploy.core.exceptions import SyncError
from node_redeploy.core.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from node_redeploy.runner.commands import CommandRunner

logger = get_logger(__name__)


class GitSync:
    """Pulls the backend checkout from its remote.

    Branches are tried in order, so a repository that still uses ``master``
    is pulled when ``main`` does not exist.

    Attributes:
        workdir: Path of the git checkout.
        remote: Remote name.
        branches: Branch names, most preferred first.
    """

    def __init__(
        self,
        runner: CommandRunner,
        workdir: Path,
        remote: str = "origin",
        branches: list[str] | None = None,
    ) -> None:
        self.runner = runner
        self.workdir = workdir
        self.remote = remote
        self.branches = branches or ["main", "master"]

    def _git(self, *args: str):
        return self.runner.run(["git", *args], cwd=self.workdir)

    def fetch(self) -> bool:
        result = self._git("fetch", self.remote)
        if not result.ok:
            logger.warning("git_fetch_failed", stderr=result.stderr.strip())
        return result.ok

    def pull(self) -> str:
        """Pull the first branch that succeeds.

        Returns:
            Name of the branch that was pulled.

        Raises:
            SyncError: If every branch fails.
        """
        result = self.runner.first_success(
            [["git", "pull", self.remote, branch] for branch in self.branches],
            cwd=self.workdir,
        )
        if result.ok:
            branch = result.argv[-1]
            logger.info("git_pull_succeeded", branch=branch)
            return branch
        logger.warning("git_pull_failed", stderr=result.stderr.strip())
        raise SyncError(
            f"git pull failed for {self.remote} on branches: {', '.join(self.branches)}",
            branches=list(self.branches),
        )

    def status(self) -> list[str]:
        """Return porcelain status lines for uncommitted changes."""
        result = self._git("status", "--porcelain")
        if not result.ok:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]

    def rev_parse(self, ref: str) -> str | None:
        result = self._git("rev-parse", ref)
        return result.stdout.strip() if result.ok else None

    def is_behind(self) -> bool | None:
        """Compare local HEAD with the first remote branch that resolves.

        Returns:
            True if HEAD differs from the remote branch, False if they match,
            None if either side cannot be resolved.
        """
        local = self.rev_parse("HEAD")
        if local is None:
            return None
        for branch in self.branches:
            remote = self.rev_parse(f"{self.remote}/{branch}")
            if remote is not None:
                return local != remote
        return None

    def recent_commits(self, count: int = 3) -> list[str]:
        result = self._git("log", "--oneline", f"-{count}")
        return result.stdout.splitlines() if result.ok else []
