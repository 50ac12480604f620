"""Pytest fixtures for the test suite."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

import pytest
import structlog

from node_redeploy.core.config import Settings, get_settings
from node_redeploy.core.exceptions import CommandError
from node_redeploy.models.results import CommandResult
from node_redeploy.runner.commands import CommandRunner

ROUTES_SOURCE = """
const router = express.Router();

router.get('/bankruptcy/matches', async (req, res) => {
  res.json({ success: true });
});

router.get("/director-related/matches", async (req, res) => {
  res.json({ success: true });
});

router.post('/land-title/counts', async (req, res) => {
  res.json({ success: true });
});
"""

ENV_CONTENT = """
DB_HOST=localhost
DB_PORT=5432
DB_USER=credion
DB_PASS=secret
DB_NAME=credion
PORT=3001
NODE_ENV=production
CORS_ORIGINS=https://example.com
JWT_SECRET=jwt-secret
SESSION_SECRET=session-secret
STRIPE_SECRET_KEY=sk_test_123
STRIPE_PUBLISHABLE_KEY=pk_test_123
"""


class FakeRunner(CommandRunner):
    """CommandRunner that records calls and returns scripted results.

    Commands succeed with empty output unless a rule registered with ``on``
    matches their argv prefix. Later rules take precedence.
    """

    def __init__(self, tools: Sequence[str] = ("git", "pm2", "npm", "pkill", "node")) -> None:
        super().__init__(timeout=5)
        self.tools = set(tools)
        self.calls: list[list[str]] = []
        self.spawned: list[dict] = []
        self.spawn_error: OSError | None = None
        self._rules: list[tuple[tuple[str, ...], CommandResult]] = []

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        result = CommandResult(argv=list(prefix), returncode=returncode, stdout=stdout, stderr=stderr)
        self._rules.insert(0, (prefix, result))

    def available(self, tool: str) -> bool:
        return tool in self.tools

    def run(self, argv, *, cwd=None, check=False, timeout=None, env=None) -> CommandResult:
        args = [str(a) for a in argv]
        self.calls.append(args)
        result = CommandResult(argv=args, returncode=0)
        for prefix, scripted in self._rules:
            if tuple(args[: len(prefix)]) == prefix:
                result = scripted.model_copy(update={"argv": args})
                break
        if check and not result.ok:
            raise CommandError(f"Command failed: {result.command_line}", result)
        return result

    def spawn_background(self, argv, *, cwd, log_path) -> int:
        if self.spawn_error is not None:
            raise self.spawn_error
        self.spawned.append({"argv": list(argv), "cwd": cwd, "log_path": log_path})
        return 4242

    def called(self, *prefix: str) -> bool:
        return any(tuple(call[: len(prefix)]) == prefix for call in self.calls)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_log_handlers():
    """Drop root handlers and log context left over from a test."""
    yield
    logging.getLogger().handlers.clear()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def backend_dir(tmp_path: Path) -> Path:
    """A backend checkout with entrypoint, routes and a complete env file."""
    backend = tmp_path / "backend"
    (backend / "routes").mkdir(parents=True)
    (backend / "app.js").write_text("require('./routes/payment.routes');\n")
    (backend / "routes" / "payment.routes.js").write_text(ROUTES_SOURCE)
    (backend / ".env").write_text(ENV_CONTENT)
    return backend


@pytest.fixture
def settings(backend_dir: Path) -> Settings:
    """Settings pointing at the temporary backend with no delays."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        CANDIDATE_DIRS=[str(backend_dir)],
        STOP_SETTLE_SECONDS=0,
        STARTUP_WAIT_SECONDS=0,
        HEALTH_INTERVAL_SECONDS=0,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
    )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def runner_factory() -> type[FakeRunner]:
    """FakeRunner class, for tests that need a custom tool set."""
    return FakeRunner
