"""Redeploy pipeline.

Runs the restart sequence for the Node.js backend:

    workdir -> env -> sync -> routes -> stop -> install -> start -> health -> probes

Each stage records a StepResult on the DeployReport. A fatal stage records a
failed step and ends the run; later stages are not recorded.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import httpx
import structlog

from node_redeploy.core.config import Settings, get_settings
from node_redeploy.core.exceptions import (
    CommandError,
    HealthCheckError,
    RedeployError,
    RouteCheckError,
    StartError,
    SyncError,
)
from node_redeploy.core.logging import get_logger
from node_redeploy.deploy.envcheck import check_env_file
from node_redeploy.deploy.packages import install_dependencies
from node_redeploy.deploy.probes import check_health, create_client, default_probes, run_probe
from node_redeploy.deploy.process import ProcessSupervisor
from node_redeploy.deploy.routes import verify_routes
from node_redeploy.deploy.sync import GitSync
from node_redeploy.deploy.workdir import ensure_entrypoint, locate_workdir
from node_redeploy.models.results import DeployReport, StatusReport, StepStatus
from node_redeploy.runner.commands import CommandRunner

logger = get_logger(__name__)


class _StopRun(Exception):
    """Internal signal that a fatal step was recorded."""


class Redeployer:
    """Orchestrates a backend restart on a single host.

    Attributes:
        settings: Tool settings.
        runner: Command runner shared by every stage.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        runner: CommandRunner | None = None,
        client_factory: Callable[[], httpx.Client] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.runner = runner or CommandRunner(
            timeout=self.settings.COMMAND_TIMEOUT_SECONDS,
            dry_run=self.settings.DRY_RUN,
        )
        self._client_factory = client_factory or (
            lambda: create_client(self.settings.base_url, self.settings.HTTP_TIMEOUT_SECONDS)
        )
        self._sleep = sleep

    @property
    def dry_run(self) -> bool:
        return self.settings.DRY_RUN

    def resolve_workdir(self, workdir: str | Path | None = None) -> Path:
        candidates = [workdir] if workdir else self.settings.CANDIDATE_DIRS
        path = locate_workdir(candidates)
        ensure_entrypoint(path, self.settings.ENTRYPOINT)
        return path

    def supervisor(self, workdir: Path) -> ProcessSupervisor:
        return ProcessSupervisor(
            self.runner,
            workdir,
            app_name=self.settings.APP_NAME,
            entrypoint=self.settings.ENTRYPOINT,
            log_file=self.settings.LOG_FILE,
        )

    def git(self, workdir: Path) -> GitSync:
        return GitSync(
            self.runner,
            workdir,
            remote=self.settings.GIT_REMOTE,
            branches=self.settings.GIT_BRANCHES,
        )

    def _fail(self, report: DeployReport, step: str, error: RedeployError, **details) -> None:
        report.add_step(
            step,
            StepStatus.FAILED,
            error.message,
            error_code=error.error_code,
            **error.details,
            **details,
        )
        report.exit_code = error.exit_code
        logger.error("step_failed", step=step, error_code=error.error_code, message=error.message)
        raise _StopRun

    def run(self, workdir: str | Path | None = None) -> DeployReport:
        """Run the full redeploy.

        Args:
            workdir: Explicit backend directory; candidates are used if None.

        Returns:
            DeployReport; ``success`` is False if a fatal step failed.
        """
        report = DeployReport()
        try:
            self._run(report, workdir)
        except _StopRun:
            pass
        report.finished_at = datetime.now()
        logger.info("redeploy_finished", success=report.success, exit_code=report.exit_code)
        return report

    def _run(self, report: DeployReport, workdir: str | Path | None) -> None:
        s = self.settings

        try:
            path = self.resolve_workdir(workdir)
        except RedeployError as e:
            self._fail(report, "workdir", e)
        report.workdir = str(path)
        structlog.contextvars.bind_contextvars(workdir=str(path))
        report.add_step("workdir", StepStatus.OK, str(path))

        env = check_env_file(path / s.ENV_FILE)
        report.add_step(
            "env",
            StepStatus.OK if env.ok else StepStatus.WARNING,
            "env file complete" if env.ok else "env file incomplete",
            exists=env.exists,
            readable=env.readable,
            missing=env.missing,
            empty=env.empty,
        )

        git = self.git(path)
        self._sync(report, git)

        supervisor = self.supervisor(path)
        if s.VERIFY_ROUTES:
            try:
                routes = verify_routes(path / s.ROUTES_FILE)
            except RouteCheckError as e:
                self._fail(report, "routes", e, recent_commits=git.recent_commits(3))
            report.add_step("routes", StepStatus.OK, "routes found in code", routes=routes)
        else:
            report.add_step("routes", StepStatus.SKIPPED, "route check disabled")

        actions = supervisor.stop()
        report.add_step("stop", StepStatus.OK, "server stopped", actions=actions)
        self._pause(s.STOP_SETTLE_SECONDS)

        try:
            install_dependencies(self.runner, path, s.NPM_INSTALL_ARGS)
        except CommandError as e:
            self._fail(report, "install", e)
        report.add_step("install", StepStatus.OK, "dependencies installed")

        try:
            mode = supervisor.start()
        except StartError as e:
            self._fail(report, "start", e)
        report.launch_mode = mode
        report.add_step("start", StepStatus.OK, f"started with {mode}", mode=mode.value)

        if self.dry_run:
            report.add_step("health", StepStatus.SKIPPED, "dry run")
            report.add_step("probes", StepStatus.SKIPPED, "dry run")
            return

        self._pause(s.STARTUP_WAIT_SECONDS)
        with self._client_factory() as client:
            self._health(report, client, supervisor)
            self._probes(report, client)

    def _sync(self, report: DeployReport, git: GitSync) -> None:
        git.fetch()
        try:
            branch = git.pull()
        except SyncError as e:
            if self.settings.PULL_FAILURE_POLICY == "abort":
                self._fail(report, "sync", e)
            report.add_step(
                "sync",
                StepStatus.WARNING,
                "git pull failed, continuing with current checkout",
                error_code=e.error_code,
                behind_remote=git.is_behind(),
                **e.details,
            )
            return
        report.add_step(
            "sync",
            StepStatus.OK,
            f"pulled {git.remote}/{branch}",
            branch=branch,
            uncommitted=git.status(),
            behind_remote=git.is_behind(),
        )

    def _health(
        self,
        report: DeployReport,
        client: httpx.Client,
        supervisor: ProcessSupervisor | None,
    ) -> None:
        s = self.settings
        result = check_health(
            client,
            s.HEALTH_PATH,
            attempts=s.HEALTH_ATTEMPTS,
            interval=s.HEALTH_INTERVAL_SECONDS,
            sleep=self._sleep,
            body_limit=s.PROBE_BODY_LIMIT,
        )
        report.probes.append(result)
        if result.passed:
            report.add_step("health", StepStatus.OK, "server is running", status_code=result.status_code)
            return

        last_error = result.error or f"HTTP {result.status_code}"
        logs = supervisor.recent_logs(report.launch_mode, s.LOG_TAIL_LINES) if supervisor else ""
        self._fail(
            report,
            "health",
            HealthCheckError(f"{s.base_url}{s.HEALTH_PATH}", s.HEALTH_ATTEMPTS, last_error),
            logs=logs,
        )

    def _probes(self, report: DeployReport, client: httpx.Client) -> None:
        s = self.settings
        results = [
            run_probe(client, spec, s.PROBE_BODY_LIMIT)
            for spec in default_probes(s.PROBE_LAST_NAME)
        ]
        report.probes.extend(results)
        failed = [r.spec.name for r in results if not r.passed]
        report.add_step(
            "probes",
            StepStatus.WARNING if failed else StepStatus.OK,
            f"{len(results) - len(failed)}/{len(results)} probes passed",
            failed=failed,
        )

    def probe(self) -> DeployReport:
        """Check health and feature routes of an already running server."""
        report = DeployReport()
        try:
            with self._client_factory() as client:
                self._health(report, client, None)
                self._probes(report, client)
        except _StopRun:
            pass
        report.finished_at = datetime.now()
        return report

    def status(self, workdir: str | Path | None = None) -> StatusReport:
        """Report process registration and checkout state.

        Raises:
            WorkdirNotFoundError: If no backend directory exists.
        """
        path = self.resolve_workdir(workdir)
        supervisor = self.supervisor(path)
        git = self.git(path)
        git.fetch()
        return StatusReport(
            workdir=str(path),
            pm2_available=supervisor.pm2_available(),
            registered=supervisor.is_registered(),
            uncommitted=git.status(),
            behind_remote=git.is_behind(),
            recent_commits=git.recent_commits(3),
        )

    def _pause(self, seconds: float) -> None:
        if seconds > 0 and not self.dry_run:
            self._sleep(seconds)
