"""Console settings, one nested group per environment prefix."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic_settings import BaseSettings

APP_VERSION = "0.1.0"

PROPAGATION_POLICIES = ("position", "position_at_asset")


class LoggingSettings(BaseSettings):
    level: str = "INFO"
    format: str = "json"

    model_config = {"env_prefix": "LOG_"}


class AdminSettings(BaseSettings):
    jwt_secret: str = "change-me-in-production"
    jwt_ttl_hours: int = 12
    bcrypt_rounds: int = 12

    model_config = {"env_prefix": "ADMIN_"}

    @property
    def jwt_ttl_seconds(self) -> int:
        return self.jwt_ttl_hours * 3600


class APISettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    cors_allowed_origins: str = ""

    model_config = {"env_prefix": "API_"}

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]


class WorkforceSettings(BaseSettings):
    seed_demo_data: bool = True
    propagation_policy: str = "position"  # "position" or "position_at_asset"
    cert_expiry_window_days: int = 30

    model_config = {"env_prefix": "WORKFORCE_"}


@dataclass
class ValidationError:
    """One failed setting, with the env var to fix and a hint."""

    field: str
    message: str
    hint: str


@dataclass
class ValidationResult:
    """Result of config validation."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return len(self.errors) == 0

    def add(self, field_name: str, message: str, hint: str = "") -> None:
        self.errors.append(ValidationError(field=field_name, message=message, hint=hint))


class Settings(BaseSettings):
    """Root settings: aggregates all sub-settings."""

    logging: LoggingSettings = LoggingSettings()
    admin: AdminSettings = AdminSettings()
    api: APISettings = APISettings()
    workforce: WorkforceSettings = WorkforceSettings()

    model_config = {"env_prefix": ""}

    def validate_required(self) -> ValidationResult:
        """Validate semantic correctness of configuration.

        Pydantic already validates types; this checks that values
        are meaningful (known enum values, sane ranges, non-default secrets).
        """
        result = ValidationResult()

        if self.admin.jwt_secret == "change-me-in-production":
            result.add(
                "ADMIN_JWT_SECRET",
                "default value in use",
                "Set: export ADMIN_JWT_SECRET=<random-secret>",
            )

        if self.admin.jwt_ttl_hours <= 0:
            result.add(
                "ADMIN_JWT_TTL_HOURS",
                f"must be positive, got {self.admin.jwt_ttl_hours}",
            )

        # bcrypt accepts cost factors 4..31
        if not (4 <= self.admin.bcrypt_rounds <= 31):
            result.add(
                "ADMIN_BCRYPT_ROUNDS",
                f"out of range: {self.admin.bcrypt_rounds}",
                "Expected a value between 4 and 31",
            )

        if self.logging.format not in ("json", "text"):
            result.add(
                "LOG_FORMAT",
                f"unknown format: {self.logging.format!r}",
                "Expected 'json' or 'text'",
            )

        if self.workforce.propagation_policy not in PROPAGATION_POLICIES:
            result.add(
                "WORKFORCE_PROPAGATION_POLICY",
                f"unknown policy: {self.workforce.propagation_policy!r}",
                f"Expected one of: {', '.join(PROPAGATION_POLICIES)}",
            )

        if self.workforce.cert_expiry_window_days < 0:
            result.add(
                "WORKFORCE_CERT_EXPIRY_WINDOW_DAYS",
                f"must not be negative, got {self.workforce.cert_expiry_window_days}",
            )

        return result


def get_settings() -> Settings:
    """Settings read fresh from the environment."""
    return Settings()
