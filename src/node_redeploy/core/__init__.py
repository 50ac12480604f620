"""Core utilities: configuration, logging, exceptions."""

from node_redeploy.core.config import Settings, get_settings
from node_redeploy.core.exceptions import (
    CommandError,
    ConfigurationError,
    EnvCheckError,
    HealthCheckError,
    RedeployError,
    RouteCheckError,
    StartError,
    SyncError,
    WorkdirNotFoundError,
)

__all__ = [
    "Settings",
    "get_settings",
    "RedeployError",
    "ConfigurationError",
    "WorkdirNotFoundError",
    "CommandError",
    "SyncError",
    "RouteCheckError",
    "StartError",
    "HealthCheckError",
    "EnvCheckError",
]
