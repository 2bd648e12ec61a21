import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings


def _get_version() -> str:
    """Read version from pyproject.toml or environment variable."""
    if env_version := os.getenv("AUTHGUARD_VERSION"):
        return env_version

    try:
        pyproject_path = Path(__file__).parent.parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            content = pyproject_path.read_text()
            for line in content.split("\n"):
                if line.startswith("version"):
                    # Parse: version = "0.1.0"
                    return line.split("=")[1].strip().strip('"').strip("'")
    except OSError:
        pass

    return "0.0.0-dev"


APP_VERSION = _get_version()


class EndpointLimit(BaseModel):
    """Fixed-window limit for one protected endpoint."""

    limit: int
    window_seconds: int

    @field_validator("limit", "window_seconds")
    @classmethod
    def must_be_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return v


# Endpoint names used by the auth policy
ENDPOINT_LOGIN = "login"
ENDPOINT_REGISTER = "register"
ENDPOINT_CHALLENGE_VERIFY = "challenge_verify"


def _default_endpoint_limits() -> dict[str, EndpointLimit]:
    return {
        ENDPOINT_LOGIN: EndpointLimit(limit=10, window_seconds=900),
        ENDPOINT_REGISTER: EndpointLimit(limit=5, window_seconds=3600),
        ENDPOINT_CHALLENGE_VERIFY: EndpointLimit(limit=30, window_seconds=60),
    }


class Settings(BaseSettings):
    # Database
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "authguard"
    POSTGRES_PASSWORD: str = "devpassword"
    POSTGRES_DB: str = "authguard"

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def DATABASE_URL_SYNC(self) -> str:
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    # Redis
    REDIS_URL: str = "redis://localhost:6379"

    # Counter storage
    # "postgres" for multi-instance deployments sharing the database,
    # "redis" for a shared Redis, "memory" for a single process only.
    COUNTER_STORE_BACKEND: Literal["postgres", "redis", "memory"] = "postgres"
    STORE_TIMEOUT_SECONDS: float = 2.0

    # Rate limiting
    ENDPOINT_LIMITS: dict[str, EndpointLimit] = _default_endpoint_limits()

    # Challenge gate
    CHALLENGE_THRESHOLD: int = 3
    RECAPTCHA_SECRET_KEY: str = ""
    RECAPTCHA_VERIFY_URL: str = "https://www.google.com/recaptcha/api/siteverify"
    RECAPTCHA_TIMEOUT_SECONDS: float = 5.0

    # Registration
    REGISTER_REQUIRES_CHALLENGE: bool = True
    REGISTER_MIN_RESPONSE_SECONDS: float = 0.4

    # App
    APP_NAME: str = "authguard"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("CHALLENGE_THRESHOLD")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v < 1:
            raise ValueError("CHALLENGE_THRESHOLD must be at least 1")
        return v

    @field_validator("STORE_TIMEOUT_SECONDS", "RECAPTCHA_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeouts(cls, v: float, info) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be greater than zero")
        return v

    @field_validator("REGISTER_MIN_RESPONSE_SECONDS")
    @classmethod
    def validate_min_response(cls, v: float) -> float:
        if v < 0:
            raise ValueError("REGISTER_MIN_RESPONSE_SECONDS cannot be negative")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
