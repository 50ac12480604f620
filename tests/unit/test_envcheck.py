"""Tests for the env file checklist."""

from __future__ import annotations

from node_redeploy.deploy.envcheck import REQUIRED_ENV_KEYS, check_env_file, required_keys


class TestRequiredKeys:
    def test_groups_cover_runbook_checklist(self) -> None:
        assert set(REQUIRED_ENV_KEYS) == {"database", "server", "cors", "auth", "payments"}
        keys = required_keys()
        assert "DB_PASS" in keys
        assert "JWT_SECRET" in keys
        assert "STRIPE_SECRET_KEY" in keys
        assert len(keys) == len(set(keys))


class TestCheckEnvFile:
    def test_complete_file(self, backend_dir) -> None:
        result = check_env_file(backend_dir / ".env")
        assert result.ok
        assert result.exists
        assert result.missing == []
        assert set(result.present) == set(required_keys())

    def test_missing_file(self, tmp_path) -> None:
        result = check_env_file(tmp_path / ".env")
        assert not result.exists
        assert not result.ok
        assert result.missing == required_keys()

    def test_missing_and_empty_keys(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_text('DB_HOST=localhost\nDB_PASS=\nJWT_SECRET="  "\n')

        result = check_env_file(env, ["DB_HOST", "DB_PASS", "JWT_SECRET", "STRIPE_SECRET_KEY"])

        assert result.present == ["DB_HOST"]
        assert result.empty == ["DB_PASS", "JWT_SECRET"]
        assert result.missing == ["STRIPE_SECRET_KEY"]
        assert not result.ok

    def test_values_never_reported(self, backend_dir) -> None:
        result = check_env_file(backend_dir / ".env")
        dumped = result.model_dump_json()
        assert "sk_test_123" not in dumped
        assert "jwt-secret" not in dumped

    def test_undecodable_file_is_reported_not_raised(self, tmp_path) -> None:
        env = tmp_path / ".env"
        env.write_bytes(b"DB_HOST=\xff\xfe\xfa\n")

        result = check_env_file(env, ["DB_HOST"])

        assert result.exists
        assert not result.readable
        assert not result.ok
        assert result.missing == ["DB_HOST"]
