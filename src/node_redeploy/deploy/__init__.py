"""Redeploy stages for a pm2-managed Node.js backend.

This package provides:
- Backend checkout discovery and git synchronisation
- Route declaration checks against the router source
- pm2 stop/start with an unmanaged background fallback
- HTTP health and feature probes
- Env file checklist
"""

from node_redeploy.deploy.envcheck import REQUIRED_ENV_KEYS, check_env_file
from node_redeploy.deploy.pipeline import Redeployer
from node_redeploy.deploy.probes import check_health, default_probes, run_probe
from node_redeploy.deploy.process import ProcessSupervisor
from node_redeploy.deploy.routes import ROUTE_DECLARATIONS, find_routes, verify_routes
from node_redeploy.deploy.sync import GitSync
from node_redeploy.deploy.workdir import locate_workdir

__all__ = [
    # Pipeline
    "Redeployer",
    # Stages
    "locate_workdir",
    "GitSync",
    "ROUTE_DECLARATIONS",
    "find_routes",
    "verify_routes",
    "ProcessSupervisor",
    "check_health",
    "default_probes",
    "run_probe",
    # Env checklist
    "REQUIRED_ENV_KEYS",
    "check_env_file",
]
