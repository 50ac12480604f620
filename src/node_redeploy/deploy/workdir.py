"""Backend checkout discovery."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from node_redeploy.core.exceptions import ConfigurationError, WorkdirNotFoundError
from node_redeploy.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)


def locate_workdir(candidates: Iterable[str | Path]) -> Path:
    """Return the first candidate directory that exists.

    Args:
        candidates: Paths tried in order; ``~`` is expanded.

    Returns:
        Resolved path of the first existing directory.

    Raises:
        WorkdirNotFoundError: If no candidate is a directory.
    """
    tried: list[str] = []
    for candidate in candidates:
        path = Path(candidate).expanduser()
        tried.append(str(path))
        if path.is_dir():
            logger.info("workdir_found", path=str(path))
            return path.resolve()
        logger.debug("workdir_candidate_missing", path=str(path))
    raise WorkdirNotFoundError(tried)


def ensure_entrypoint(workdir: Path, entrypoint: str) -> Path:
    """Check that the server entry file exists inside the checkout."""
    entry = workdir / entrypoint
    if not entry.is_file():
        raise ConfigurationError(
            f"{entrypoint} not found in {workdir}. Point --workdir at the backend directory.",
            config_key="ENTRYPOINT",
        )
    return entry
