"""Command-line entry point for node-redeploy."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from node_redeploy import __version__
from node_redeploy.core.config import Settings, get_settings
from node_redeploy.core.exceptions import EnvCheckError, RedeployError
from node_redeploy.core.logging import bind_run_context, configure_logging, get_logger
from node_redeploy.deploy.envcheck import check_env_file
from node_redeploy.deploy.pipeline import Redeployer
from node_redeploy.models.results import DeployReport, EnvCheckResult, StatusReport, StepStatus

logger = get_logger(__name__)

STATUS_MARKERS = {
    StepStatus.OK: "[ok]",
    StepStatus.WARNING: "[warn]",
    StepStatus.FAILED: "[FAIL]",
    StepStatus.SKIPPED: "[skip]",
}


def _common_options(top_level: bool) -> argparse.ArgumentParser:
    """Options accepted both before and after the subcommand.

    Subcommand copies default to SUPPRESS so they only replace the top-level
    value when the flag is given after the subcommand.
    """
    common = argparse.ArgumentParser(add_help=False)
    default = {} if top_level else {"default": argparse.SUPPRESS}
    common.add_argument("--json", action="store_true", help="print the report as JSON", **default)
    common.add_argument("--workdir", help="backend directory (skips candidate search)", **default)
    common.add_argument("--port", type=int, help="local port the backend listens on", **default)
    return common


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="node-redeploy",
        description="Pull, reinstall and restart a pm2-managed Node.js backend, then smoke-test it.",
        parents=[_common_options(top_level=True)],
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = _common_options(top_level=False)
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser(
        "run", parents=[common], help="full redeploy: sync, stop, install, start, probe"
    )
    run.add_argument("--skip-route-check", action="store_true", help="do not grep for routes")
    run.add_argument(
        "--allow-stale",
        action="store_true",
        help="continue when git pull fails instead of aborting",
    )
    run.add_argument("--dry-run", action="store_true", help="log commands without running them")
    run.add_argument("--health-attempts", type=int, help="health check attempts before failing")

    probe = sub.add_parser("probe", parents=[common], help="health check and feature probes only")
    probe.add_argument("--health-attempts", type=int, help="health check attempts before failing")

    sub.add_parser(
        "check-env", parents=[common], help="verify the backend env file has every required key"
    )
    sub.add_parser("status", parents=[common], help="show pm2 registration and checkout state")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Apply command-line overrides on top of loaded settings.

    Raises:
        ValidationError: If an override violates a settings constraint.
    """
    settings = base or get_settings()
    overrides: dict[str, Any] = {}
    if args.port is not None:
        overrides["PORT"] = args.port
    if getattr(args, "health_attempts", None) is not None:
        overrides["HEALTH_ATTEMPTS"] = args.health_attempts
    if getattr(args, "skip_route_check", False):
        overrides["VERIFY_ROUTES"] = False
    if getattr(args, "allow_stale", False):
        overrides["PULL_FAILURE_POLICY"] = "warn"
    if getattr(args, "dry_run", False):
        overrides["DRY_RUN"] = True
    if not overrides:
        return settings
    return Settings.model_validate({**settings.model_dump(), **overrides})


def render_report(report: DeployReport) -> str:
    lines: list[str] = []
    if report.workdir:
        lines.append(f"Backend directory: {report.workdir}")
    for step in report.steps:
        lines.append(f"{STATUS_MARKERS[step.status]:<7} {step.name}: {step.message}")
        for key in ("missing", "empty", "failed", "recent_commits"):
            value = step.details.get(key)
            if value:
                lines.append(f"        {key}: {', '.join(value)}")
        if step.details.get("behind_remote"):
            lines.append("        local HEAD differs from the remote branch")
        if step.details.get("logs"):
            lines.append("        recent logs:")
            lines.extend(f"          {line}" for line in step.details["logs"].splitlines())

    for probe in report.probes:
        spec = probe.spec
        outcome = f"HTTP {probe.status_code}" if probe.status_code is not None else probe.error
        marker = "[ok]" if probe.passed else "[FAIL]"
        lines.append("")
        lines.append(f"{marker:<7} {spec.method} {spec.path} -> {outcome}")
        if probe.body:
            lines.append(f"        {probe.body}")

    lines.append("")
    if report.success:
        lines.append("Done." + (" Check status: pm2 list" if report.launch_mode == "pm2" else ""))
    else:
        lines.append(f"Redeploy failed (exit {report.exit_code}).")
    return "\n".join(lines)


def render_env(result: EnvCheckResult) -> str:
    if not result.exists:
        return f"[FAIL]  {result.path} does not exist"
    if not result.readable:
        return f"[FAIL]  {result.path} could not be read"
    lines = [f"Env file: {result.path}"]
    lines.extend(f"[ok]    {key}" for key in result.present)
    lines.extend(f"[FAIL]  {key} (missing)" for key in result.missing)
    lines.extend(f"[FAIL]  {key} (empty)" for key in result.empty)
    return "\n".join(lines)


def render_status(status: StatusReport) -> str:
    behind = {True: "yes", False: "no", None: "unknown"}[status.behind_remote]
    lines = [
        f"Backend directory: {status.workdir}",
        f"pm2 installed:     {'yes' if status.pm2_available else 'no'}",
        f"pm2 registered:    {'yes' if status.registered else 'no'}",
        f"Behind remote:     {behind}",
        f"Uncommitted files: {len(status.uncommitted)}",
    ]
    lines.extend(f"  {line}" for line in status.uncommitted)
    if status.recent_commits:
        lines.append("Recent commits:")
        lines.extend(f"  {line}" for line in status.recent_commits)
    return "\n".join(lines)


def _emit(args: argparse.Namespace, model: Any, text: str) -> None:
    print(model.model_dump_json(indent=2) if args.json else text)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings)
    bind_run_context(args.command)
    redeployer = Redeployer(settings)

    try:
        if args.command == "run":
            report = redeployer.run(args.workdir)
            _emit(args, report, render_report(report))
            return report.exit_code
        if args.command == "probe":
            report = redeployer.probe()
            _emit(args, report, render_report(report))
            return report.exit_code
        if args.command == "check-env":
            workdir = redeployer.resolve_workdir(args.workdir)
            result = check_env_file(Path(workdir) / settings.ENV_FILE)
            _emit(args, result, render_env(result))
            if not result.ok:
                raise EnvCheckError(result.path, result.missing, result.empty)
            return 0
        if args.command == "status":
            status = redeployer.status(args.workdir)
            _emit(args, status, render_status(status))
            return 0
    except RedeployError as e:
        logger.error("command_failed", error_code=e.error_code, details=e.details)
        print(f"Error: {e.message}", file=sys.stderr)
        return e.exit_code

    parser.error(f"unknown command {args.command}")
    return 2
