"""HTTP smoke probes against the restarted backend."""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx

from node_redeploy.core.logging import get_logger
from node_redeploy.models.requests import LandTitleCountsRequest, ProbeSpec
from node_redeploy.models.results import ProbeResult

logger = get_logger(__name__)

HEALTH_STATUSES = frozenset(range(200, 300))
DEFAULT_BODY_LIMIT = 300


def default_probes(last_name: str = "test") -> list[ProbeSpec]:
    """Feature probes run after every restart.

    A 400 counts as working: the route is mounted and rejected the
    probe input, which is all a smoke check can establish.
    """
    land_title = LandTitleCountsRequest(type="organization", abn="", states=["NSW"])
    return [
        ProbeSpec(
            name="bankruptcy_matches",
            path="/api/bankruptcy/matches",
            params={"lastName": last_name},
        ),
        ProbeSpec(
            name="director_related_matches",
            path="/api/director-related/matches",
            params={"lastName": last_name},
        ),
        ProbeSpec(
            name="land_title_counts",
            method="POST",
            path="/api/land-title/counts",
            json_body=land_title.model_dump(mode="json"),
        ),
    ]


def create_client(base_url: str, timeout: float = 10.0) -> httpx.Client:
    return httpx.Client(base_url=base_url, timeout=timeout)


def run_probe(
    client: httpx.Client,
    spec: ProbeSpec,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> ProbeResult:
    """Issue one probe. Transport errors are reported, never raised."""
    try:
        response = client.request(
            spec.method,
            spec.path,
            params=spec.params or None,
            json=spec.json_body,
        )
    except httpx.TimeoutException:
        result = ProbeResult(spec=spec, error="Request timed out")
    except httpx.HTTPError as e:
        result = ProbeResult(spec=spec, error=f"{type(e).__name__}: {e}")
    else:
        result = ProbeResult(
            spec=spec,
            status_code=response.status_code,
            body=response.text[:body_limit],
            elapsed_ms=response.elapsed.total_seconds() * 1000,
        )

    logger.info(
        "probe_finished",
        probe=spec.name,
        status_code=result.status_code,
        passed=result.passed,
        error=result.error,
    )
    return result


def check_health(
    client: httpx.Client,
    path: str = "/health",
    attempts: int = 1,
    interval: float = 2.0,
    sleep: Callable[[float], None] = time.sleep,
    body_limit: int = DEFAULT_BODY_LIMIT,
) -> ProbeResult:
    """Poll the health endpoint until it answers 2xx or attempts run out.

    Args:
        client: HTTP client bound to the server base URL.
        path: Health endpoint path.
        attempts: Maximum number of requests.
        interval: Seconds between attempts.
        sleep: Sleep function, injectable for tests.
        body_limit: Maximum characters of body kept.

    Returns:
        Result of the last attempt.
    """
    spec = ProbeSpec(name="health", path=path, accepted_statuses=HEALTH_STATUSES)
    result = ProbeResult(spec=spec, error="not attempted")
    for attempt in range(1, max(attempts, 1) + 1):
        result = run_probe(client, spec, body_limit)
        if result.passed:
            return result
        if attempt < attempts:
            logger.debug("health_retry", attempt=attempt, interval=interval)
            sleep(interval)
    return result
