"""Integration test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from node_redeploy.deploy.pipeline import Redeployer


@pytest.fixture
def http_handler() -> dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Mutable routing table for the mocked backend.

    Keys are request paths; unknown paths answer 404 like Express does.
    """
    return {
        "/health": lambda r: httpx.Response(200, json={"status": "OK"}),
        "/api/bankruptcy/matches": lambda r: httpx.Response(200, json={"success": True, "matches": []}),
        "/api/director-related/matches": lambda r: httpx.Response(
            200, json={"success": True, "matches": []}
        ),
        "/api/land-title/counts": lambda r: httpx.Response(
            400, json={"success": False, "error": "INVALID_TYPE"}
        ),
    }


@pytest.fixture
def client_factory(settings, http_handler) -> Callable[[], httpx.Client]:
    def handler(request: httpx.Request) -> httpx.Response:
        route = http_handler.get(request.url.path)
        if route is None:
            return httpx.Response(404, text=f"Cannot {request.method} {request.url.path}")
        return route(request)

    return lambda: httpx.Client(base_url=settings.base_url, transport=httpx.MockTransport(handler))


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_redeployer(settings, fake_runner, client_factory, sleeps):
    def factory(**overrides) -> Redeployer:
        return Redeployer(
            settings=settings.model_copy(update=overrides),
            runner=fake_runner,
            client_factory=client_factory,
            sleep=sleeps.append,
        )

    return factory
