"""Custom exceptions for node-redeploy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from node_redeploy.models.results import CommandResult


class RedeployError(Exception):
    """Base exception for all redeploy failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
        exit_code: int = 1,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.exit_code = exit_code
        super().__init__(self.message)


class ConfigurationError(RedeployError):
    """Raised when configuration is invalid or missing."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"config_key": config_key},
        )
        self.config_key = config_key


class WorkdirNotFoundError(RedeployError):
    """Raised when none of the candidate backend directories exist."""

    def __init__(self, candidates: list[str]) -> None:
        super().__init__(
            message="Backend directory not found",
            error_code="WORKDIR_NOT_FOUND",
            details={"candidates": candidates},
        )
        self.candidates = candidates


class CommandError(RedeployError):
    """Raised when a required external command fails."""

    def __init__(self, message: str, result: CommandResult) -> None:
        super().__init__(
            message=message,
            error_code="COMMAND_FAILED",
            details={
                "argv": result.argv,
                "returncode": result.returncode,
                "stderr": result.stderr[-2000:],
            },
        )
        self.result = result


class SyncError(RedeployError):
    """Raised when the checkout cannot be pulled from any branch."""

    def __init__(self, message: str, branches: list[str]) -> None:
        super().__init__(
            message=message,
            error_code="SYNC_FAILED",
            details={"branches": branches},
        )
        self.branches = branches


class RouteCheckError(RedeployError):
    """Raised when expected route declarations are missing from the source."""

    def __init__(self, missing: list[str], source: str) -> None:
        super().__init__(
            message=f"Routes not found in {source}: {', '.join(missing)}",
            error_code="ROUTES_MISSING",
            details={"missing": missing, "source": source},
        )
        self.missing = missing


class StartError(RedeployError):
    """Raised when the server could not be launched by any method."""

    def __init__(self, message: str = "Server could not be started") -> None:
        super().__init__(message=message, error_code="START_FAILED")


class HealthCheckError(RedeployError):
    """Raised when the server does not answer its health endpoint."""

    def __init__(self, url: str, attempts: int, last_error: str | None = None) -> None:
        super().__init__(
            message=f"Server not responding at {url}",
            error_code="HEALTH_CHECK_FAILED",
            details={"url": url, "attempts": attempts, "last_error": last_error},
        )
        self.url = url
        self.attempts = attempts


class EnvCheckError(RedeployError):
    """Raised when the backend env file is missing or incomplete."""

    def __init__(self, path: str, missing: list[str], empty: list[str]) -> None:
        super().__init__(
            message=f"Env file {path} is incomplete",
            error_code="ENV_INVALID",
            details={"path": path, "missing": missing, "empty": empty},
        )
        self.missing = missing
        self.empty = empty
