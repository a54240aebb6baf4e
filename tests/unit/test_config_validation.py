"""Unit tests for settings validation and env prefixes."""

from __future__ import annotations

from unittest.mock import patch

from src.config import (
    AdminSettings,
    LoggingSettings,
    Settings,
    WorkforceSettings,
)


def _make_settings(**overrides: object) -> Settings:
    """Valid settings, with selected groups replaced."""
    defaults = {
        "admin": AdminSettings(jwt_secret="test-secret-not-default"),
        "logging": LoggingSettings(level="INFO", format="json"),
        "workforce": WorkforceSettings(),
    }
    defaults.update(overrides)
    return Settings(**defaults)  # type: ignore[arg-type]


def _fields(settings: Settings) -> set[str]:
    return {e.field for e in settings.validate_required().errors}


class TestValidateRequired:
    """Semantic checks beyond pydantic type validation."""

    def test_all_valid_passes(self) -> None:
        result = _make_settings().validate_required()
        assert result.ok
        assert len(result.errors) == 0

    def test_default_jwt_secret(self) -> None:
        settings = _make_settings(admin=AdminSettings(jwt_secret="change-me-in-production"))
        assert "ADMIN_JWT_SECRET" in _fields(settings)

    def test_non_positive_ttl(self) -> None:
        settings = _make_settings(admin=AdminSettings(jwt_secret="x", jwt_ttl_hours=0))
        assert "ADMIN_JWT_TTL_HOURS" in _fields(settings)

    def test_bcrypt_rounds_range(self) -> None:
        settings = _make_settings(admin=AdminSettings(jwt_secret="x", bcrypt_rounds=3))
        assert "ADMIN_BCRYPT_ROUNDS" in _fields(settings)

    def test_unknown_log_format(self) -> None:
        settings = _make_settings(logging=LoggingSettings(format="xml"))
        assert "LOG_FORMAT" in _fields(settings)

    def test_unknown_propagation_policy(self) -> None:
        settings = _make_settings(workforce=WorkforceSettings(propagation_policy="nearest"))
        errors = settings.validate_required().errors
        assert [e.field for e in errors] == ["WORKFORCE_PROPAGATION_POLICY"]
        assert "position_at_asset" in errors[0].hint

    def test_negative_expiry_window(self) -> None:
        settings = _make_settings(workforce=WorkforceSettings(cert_expiry_window_days=-1))
        assert "WORKFORCE_CERT_EXPIRY_WINDOW_DAYS" in _fields(settings)

    def test_multiple_errors_collected(self) -> None:
        settings = _make_settings(
            admin=AdminSettings(jwt_secret="change-me-in-production", bcrypt_rounds=40),
            logging=LoggingSettings(format="xml"),
        )
        assert len(settings.validate_required().errors) == 3


class TestEnvironment:
    def test_env_prefixes(self) -> None:
        env = {
            "WORKFORCE_PROPAGATION_POLICY": "position_at_asset",
            "WORKFORCE_SEED_DEMO_DATA": "false",
            "ADMIN_JWT_TTL_HOURS": "2",
        }
        with patch.dict("os.environ", env):
            workforce = WorkforceSettings()
            admin = AdminSettings()
        assert workforce.propagation_policy == "position_at_asset"
        assert workforce.seed_demo_data is False
        assert admin.jwt_ttl_seconds == 7200
