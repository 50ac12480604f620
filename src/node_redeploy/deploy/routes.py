"""Source-level check that the probed routes are declared.

A redeploy that pulled stale code would restart a server without the
feature routes; checking the route file first catches that before the
running process is stopped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from node_redeploy.core.exceptions import RouteCheckError
from node_redeploy.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RouteDeclaration:
    """An Express route expected in the router source.

    Attributes:
        method: Lowercase router method (get, post, ...).
        path: Path as declared on the router, without the /api mount prefix.
    """

    method: str
    path: str

    @property
    def label(self) -> str:
        return f"{self.method.upper()} /api{self.path}"

    @property
    def pattern(self) -> re.Pattern[str]:
        return re.compile(
            rf"router\.{re.escape(self.method)}\(\s*([\"'`]){re.escape(self.path)}\1"
        )


ROUTE_DECLARATIONS: tuple[RouteDeclaration, ...] = (
    RouteDeclaration("get", "/bankruptcy/matches"),
    RouteDeclaration("get", "/director-related/matches"),
    RouteDeclaration("post", "/land-title/counts"),
)


def find_routes(
    source: str,
    declarations: tuple[RouteDeclaration, ...] = ROUTE_DECLARATIONS,
) -> dict[str, bool]:
    """Map each route label to whether it is declared in the source text."""
    return {decl.label: bool(decl.pattern.search(source)) for decl in declarations}


def verify_routes(
    routes_file: Path,
    declarations: tuple[RouteDeclaration, ...] = ROUTE_DECLARATIONS,
) -> list[str]:
    """Check the router source for every expected route.

    Args:
        routes_file: Router source file.
        declarations: Routes that must be present.

    Returns:
        Labels of the routes found.

    Raises:
        RouteCheckError: If the file is missing or any route is absent.
    """
    if not routes_file.is_file():
        raise RouteCheckError([d.label for d in declarations], str(routes_file))

    found = find_routes(routes_file.read_text(encoding="utf-8", errors="replace"), declarations)
    missing = [label for label, present in found.items() if not present]
    if missing:
        raise RouteCheckError(missing, str(routes_file))

    logger.info("routes_verified", source=str(routes_file), routes=list(found))
    return list(found)
