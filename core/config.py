"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for accountgate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_secret -> JWT_SECRET).

  @model_validator(mode="after"): Cross-field validation of the three signing
      secrets once all fields are resolved.

Security notes:
  [S1] Every signing secret must be at least 32 characters.

  [S2] The session, activation and reset secrets must all differ. A pending
       signup token signed with the session secret would otherwise be accepted
       as a bearer credential on protected routes.

  [S3] In production mode (DEBUG not set or false), a missing secret is a hard
       startup failure.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or mail/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("accountgate.config")

_SECRET_FIELDS = ("jwt_secret", "jwt_account_activation", "jwt_reset_password")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = "sqlite:///accountgate.db"

    # ------------------------------------------------------------------
    # Signing secrets -- empty string means "not configured"
    # ------------------------------------------------------------------

    jwt_secret: str = ""
    jwt_account_activation: str = ""
    jwt_reset_password: str = ""

    session_expire_seconds: int = 7 * 24 * 3600
    activation_expire_seconds: int = 10 * 60
    reset_expire_seconds: int = 10 * 60

    # ------------------------------------------------------------------
    # Email
    # ------------------------------------------------------------------

    sendgrid_api_key: str = ""
    email_from: str = "noreply@localhost"
    # Base URL of the client app; activation and reset links point here.
    client_url: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["http://localhost:3000"]

    rate_limit_enabled: bool = True
    signin_rate_limit: str = "10/minute"
    signup_rate_limit: str = "5/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secrets(self) -> "Settings":
        """Enforce the signing-secret policy [S1] [S2] [S3].

        Dev mode (DEBUG=true): each missing secret is replaced by its own
            random value. Outstanding tokens do not survive a restart.

        Production mode: refuse to start if any secret is missing.
        """
        for name in _SECRET_FIELDS:
            value = getattr(self, name)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{name.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                value = secrets.token_hex(32)
                setattr(self, name, value)
                logger.warning("Using auto-generated %s. Tokens will not survive a restart.", name.upper())
            if len(value) < 32:
                raise ValueError(f"{name.upper()} must be at least 32 characters.")
        if len({getattr(self, name) for name in _SECRET_FIELDS}) != len(_SECRET_FIELDS):
            raise ValueError("JWT_SECRET, JWT_ACCOUNT_ACTIVATION and JWT_RESET_PASSWORD must all differ.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
