"""Tests for the backend process supervisor."""

from __future__ import annotations

import json

import pytest

from node_redeploy.core.exceptions import StartError
from node_redeploy.deploy.process import ProcessSupervisor, tail_file
from node_redeploy.models.results import LaunchMode


@pytest.fixture
def supervisor(fake_runner, backend_dir) -> ProcessSupervisor:
    return ProcessSupervisor(fake_runner, backend_dir, app_name="credion-backend")


class TestStop:
    def test_stops_deletes_and_kills(self, supervisor, fake_runner) -> None:
        actions = supervisor.stop()

        assert fake_runner.calls == [
            ["pm2", "stop", "credion-backend"],
            ["pm2", "delete", "credion-backend"],
            ["pkill", "-f", "node app.js"],
        ]
        assert len(actions) == 3

    def test_failures_are_not_fatal(self, supervisor, fake_runner) -> None:
        fake_runner.on("pm2", returncode=1, stderr="[PM2][ERROR] Process not found")
        fake_runner.on("pkill", returncode=1)

        assert supervisor.stop() == []

    def test_without_pm2_only_kills(self, runner_factory, backend_dir) -> None:
        runner = runner_factory(tools=("pkill",))
        supervisor = ProcessSupervisor(runner, backend_dir, app_name="credion-backend")

        supervisor.stop()

        assert runner.calls == [["pkill", "-f", "node app.js"]]


class TestStart:
    def test_pm2_start_and_save(self, supervisor, fake_runner) -> None:
        assert supervisor.start() == LaunchMode.PM2
        assert fake_runner.calls == [
            ["pm2", "start", "app.js", "--name", "credion-backend"],
            ["pm2", "save"],
        ]
        assert fake_runner.spawned == []

    def test_pm2_save_failure_still_pm2(self, supervisor, fake_runner) -> None:
        fake_runner.on("pm2", "save", returncode=1)
        assert supervisor.start() == LaunchMode.PM2

    def test_falls_back_to_background_launch(self, supervisor, fake_runner, backend_dir) -> None:
        fake_runner.on("pm2", "start", returncode=1, stderr="spawn error")

        assert supervisor.start() == LaunchMode.NOHUP
        assert fake_runner.spawned == [
            {"argv": ["node", "app.js"], "cwd": backend_dir, "log_path": backend_dir / "app.log"}
        ]

    def test_without_pm2(self, runner_factory, backend_dir) -> None:
        runner = runner_factory(tools=("node",))
        supervisor = ProcessSupervisor(runner, backend_dir, app_name="api", log_file="server.log")

        assert supervisor.start() == LaunchMode.NOHUP
        assert runner.calls == []
        assert runner.spawned[0]["log_path"] == backend_dir / "server.log"

    def test_spawn_error_raises_start_error(self, runner_factory, backend_dir) -> None:
        runner = runner_factory(tools=())
        runner.spawn_error = FileNotFoundError("node")
        supervisor = ProcessSupervisor(runner, backend_dir, app_name="api")

        with pytest.raises(StartError):
            supervisor.start()


class TestRegistration:
    def test_registered(self, supervisor, fake_runner) -> None:
        fake_runner.on(
            "pm2",
            "jlist",
            stdout=json.dumps([{"name": "other"}, {"name": "credion-backend", "pid": 1}]),
        )
        assert supervisor.is_registered() is True

    def test_not_registered(self, supervisor, fake_runner) -> None:
        fake_runner.on("pm2", "jlist", stdout="[]")
        assert supervisor.is_registered() is False

    def test_unparseable_output(self, supervisor, fake_runner) -> None:
        fake_runner.on("pm2", "jlist", stdout="not json")
        assert supervisor.is_registered() is False

    def test_pm2_missing(self, runner_factory, backend_dir) -> None:
        supervisor = ProcessSupervisor(runner_factory(tools=()), backend_dir, app_name="api")
        assert supervisor.is_registered() is False


class TestRecentLogs:
    def test_pm2_logs(self, supervisor, fake_runner) -> None:
        fake_runner.on("pm2", "logs", stdout="Error: listen EADDRINUSE :::3001\n")

        logs = supervisor.recent_logs(LaunchMode.PM2, lines=20)

        assert "EADDRINUSE" in logs
        assert fake_runner.called("pm2", "logs", "credion-backend", "--lines", "20", "--nostream")

    def test_log_file_tail(self, supervisor, backend_dir) -> None:
        (backend_dir / "app.log").write_text("".join(f"line {i}\n" for i in range(50)))

        logs = supervisor.recent_logs(LaunchMode.NOHUP, lines=3)

        assert logs == "line 47\nline 48\nline 49\n"


class TestTailFile:
    def test_missing_file(self, tmp_path) -> None:
        assert tail_file(tmp_path / "absent.log", 10) == ""

    def test_short_file(self, tmp_path) -> None:
        log = tmp_path / "a.log"
        log.write_text("only\n")
        assert tail_file(log, 10) == "only\n"
