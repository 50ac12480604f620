"""Checklist for the backend's deployment-time env file.

Only key names are ever reported; values stay in the file.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import dotenv_values

from node_redeploy.core.logging import get_logger
from node_redeploy.models.results import EnvCheckResult

logger = get_logger(__name__)

REQUIRED_ENV_KEYS: dict[str, tuple[str, ...]] = {
    "database": ("DB_HOST", "DB_PORT", "DB_USER", "DB_PASS", "DB_NAME"),
    "server": ("PORT", "NODE_ENV"),
    "cors": ("CORS_ORIGINS",),
    "auth": ("JWT_SECRET", "SESSION_SECRET"),
    "payments": ("STRIPE_SECRET_KEY", "STRIPE_PUBLISHABLE_KEY"),
}


def required_keys() -> list[str]:
    return [key for group in REQUIRED_ENV_KEYS.values() for key in group]


def check_env_file(path: Path, required: list[str] | None = None) -> EnvCheckResult:
    """Compare an env file's keys against the required list.

    Args:
        path: Env file to read.
        required: Keys that must be present and non-empty.

    Returns:
        EnvCheckResult listing present, missing and empty keys.
    """
    keys = required if required is not None else required_keys()
    if not path.is_file():
        logger.warning("env_file_missing", path=str(path))
        return EnvCheckResult(path=str(path), exists=False, missing=list(keys))

    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("env_file_unreadable", path=str(path), error=type(e).__name__)
        return EnvCheckResult(path=str(path), exists=True, readable=False, missing=list(keys))

    present, missing, empty = [], [], []
    for key in keys:
        if key not in values:
            missing.append(key)
        elif not (values[key] or "").strip():
            empty.append(key)
        else:
            present.append(key)

    result = EnvCheckResult(
        path=str(path), exists=True, present=present, missing=missing, empty=empty
    )
    logger.info("env_checked", path=str(path), missing=missing, empty=empty)
    return result
