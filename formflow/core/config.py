"""FormFlow settings, read from the environment or a local .env file."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings. Field names match the environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Reported by /health
    VERSION: str = "0.1.0"

    # Database
    DATABASE_URL: str = "sqlite:///./formflow.db"

    # Session cookie JWT; the previous secret keeps old cookies valid during rotation
    JWT_SECRET: str = "change-this-in-production"
    JWT_SECRET_PREVIOUS: str = ""
    JWT_EXPIRES_HOURS: int = 24 * 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (survey links in emails)
    FRONTEND_URL: str = "http://localhost:3000"

    # Email delivery: "console" logs only, "resend" posts to the Resend API
    EMAIL_BACKEND: str = "console"
    RESEND_API_KEY: str = ""
    EMAIL_FROM: str = "FormFlow <no-reply@formflow.local>"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 5  # Login attempts
    RATE_LIMIT_SUBMIT: int = 30  # Public response submissions
    RATE_LIMIT_API: int = 120  # General API

    @property
    def cors_origins_list(self) -> list[str]:
        """CORS_ORIGINS is comma separated."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def jwt_secrets(self) -> list[str]:
        """Secrets accepted when verifying a session, newest first."""
        secrets = [self.JWT_SECRET]
        if self.JWT_SECRET_PREVIOUS:
            secrets.append(self.JWT_SECRET_PREVIOUS)
        return secrets

    @property
    def cookie_secure(self) -> bool:
        """Plain-HTTP cookies are allowed in dev and test only."""
        return self.ENV not in ("dev", "test")


settings = Settings()
