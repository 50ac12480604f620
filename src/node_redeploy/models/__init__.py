"""Pydantic models for probes, command results and redeploy reports."""

from node_redeploy.models.requests import EntityType, LandTitleCountsRequest, ProbeSpec
from node_redeploy.models.results import (
    CommandResult,
    DeployReport,
    EnvCheckResult,
    LaunchMode,
    ProbeResult,
    StatusReport,
    StepResult,
    StepStatus,
)

__all__ = [
    # Requests
    "EntityType",
    "LandTitleCountsRequest",
    "ProbeSpec",
    # Results
    "CommandResult",
    "StepStatus",
    "StepResult",
    "LaunchMode",
    "ProbeResult",
    "EnvCheckResult",
    "DeployReport",
    "StatusReport",
]
