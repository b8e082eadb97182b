from pydantic import Field, field_validator

from captchalm.schemas.challenge import CamelModel, ChallengeType, Difficulty

DEFAULT_CHALLENGE_TYPES = [
    ChallengeType.FUNCTION_EXECUTION,
    ChallengeType.CHAINED_OPERATIONS,
    ChallengeType.ENCODED_INSTRUCTION,
]


class RateLimitConfig(CamelModel):
    max_attempts: int = Field(10, gt=0)
    window_ms: int = Field(60_000, gt=0)


class CaptchaConfig(CamelModel):
    """Core configuration shared by the generator and verifier."""

    secret: str = Field(..., min_length=1, description="HMAC signing key")
    difficulty: Difficulty = Difficulty.MEDIUM
    challenge_types: list[ChallengeType] = Field(
        default_factory=lambda: list(DEFAULT_CHALLENGE_TYPES)
    )
    expiration_ms: int = Field(30_000, gt=0)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    @field_validator("challenge_types")
    @classmethod
    def validate_challenge_types(cls, v: list[ChallengeType]) -> list[ChallengeType]:
        if not v:
            raise ValueError("At least one challenge type must be enabled")
        return v
