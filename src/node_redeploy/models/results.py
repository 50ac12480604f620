"""Result models for commands, steps, probes and whole redeploys."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, computed_field

from node_redeploy.models.requests import ProbeSpec


class CommandResult(BaseModel):
    """Outcome of one external command.

    Attributes:
        argv: Command and arguments as executed.
        returncode: Process exit status (127 if not found, 124 on timeout).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration_ms: Wall-clock run time in milliseconds.
    """

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)


class StepStatus(StrEnum):
    """Outcome of a pipeline step."""

    OK = "ok"
    WARNING = "warning"
    FAILED = "failed"
    SKIPPED = "skipped"


class LaunchMode(StrEnum):
    """How the backend process was started."""

    PM2 = "pm2"
    NOHUP = "nohup"


class StepResult(BaseModel):
    """Outcome of one pipeline step."""

    name: str
    status: StepStatus
    message: str = ""
    details: dict[str, Any] = Field(default_factory=dict)


class ProbeResult(BaseModel):
    """Outcome of a single HTTP probe.

    Attributes:
        spec: The probe that was issued.
        status_code: HTTP status, or None if no response was received.
        body: Response body truncated for display.
        error: Transport error message, if any.
        elapsed_ms: Time to response in milliseconds.
    """

    spec: ProbeSpec
    status_code: int | None = None
    body: str = ""
    error: str | None = None
    elapsed_ms: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> bool:
        return self.status_code is not None and self.status_code in self.spec.accepted_statuses


class EnvCheckResult(BaseModel):
    """Outcome of checking the backend env file against required keys.

    Values are never stored, only key names.
    """

    path: str
    exists: bool
    readable: bool = True
    present: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    empty: list[str] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def ok(self) -> bool:
        return self.exists and self.readable and not self.missing and not self.empty


class DeployReport(BaseModel):
    """Full record of a redeploy or probe run."""

    workdir: str | None = None
    steps: list[StepResult] = Field(default_factory=list)
    probes: list[ProbeResult] = Field(default_factory=list)
    launch_mode: LaunchMode | None = None
    exit_code: int = 0
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return all(step.status != StepStatus.FAILED for step in self.steps)

    def add_step(
        self,
        name: str,
        status: StepStatus,
        message: str = "",
        **details: Any,
    ) -> StepResult:
        step = StepResult(name=name, status=status, message=message, details=details)
        self.steps.append(step)
        return step

    def step(self, name: str) -> StepResult | None:
        """Return the recorded step with this name, if any."""
        for step in self.steps:
            if step.name == name:
                return step
        return None


class StatusReport(BaseModel):
    """Snapshot of the deployed checkout and its process."""

    workdir: str
    pm2_available: bool
    registered: bool
    uncommitted: list[str] = Field(default_factory=list)
    behind_remote: bool | None = None
    recent_commits: list[str] = Field(default_factory=list)
