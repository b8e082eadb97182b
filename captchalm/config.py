import secrets

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

from captchalm.schemas.challenge import CHALLENGE_ID_HEADER, SOLUTION_HEADER
from captchalm.schemas.config import (
    DEFAULT_CHALLENGE_TYPES,
    CaptchaConfig,
    RateLimitConfig,
)


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CAPTCHALM_",
    )

    # Signing
    # Replicas verifying statelessly must share this value.
    secret: str = Field(default_factory=lambda: secrets.token_hex(32))

    # Challenges
    difficulty: str = "medium"
    challenge_types: list[str] | str = [t.value for t in DEFAULT_CHALLENGE_TYPES]
    expiration_ms: int = 30_000  # 30 seconds

    # Verification rate limiting
    rate_limit_max_attempts: int = 10
    rate_limit_window_ms: int = 60_000  # 1 minute

    # Cleanup
    cleanup_interval_seconds: int = 60

    # HTTP rate limiting
    rate_limit_challenges: str = "30/minute"

    # Transport
    challenge_endpoint: str = "/_captchalm/challenge"
    challenge_id_header: str = CHALLENGE_ID_HEADER
    solution_header: str = SOLUTION_HEADER

    # Logging
    log_level: str = "info"
    log_format: str = "console"  # "console" | "json"

    # CORS
    cors_origins: list[str] | str = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @field_validator("challenge_types", "cors_origins", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Parse comma-separated string or list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def secret_is_ephemeral(self) -> bool:
        """True when no secret was configured and a per-process one was generated."""
        return "secret" not in self.model_fields_set

    def to_captcha_config(self) -> CaptchaConfig:
        return CaptchaConfig(
            secret=self.secret,
            difficulty=self.difficulty,
            challenge_types=self.challenge_types,
            expiration_ms=self.expiration_ms,
            rate_limit=RateLimitConfig(
                max_attempts=self.rate_limit_max_attempts,
                window_ms=self.rate_limit_window_ms,
            ),
        )


settings = Settings()
