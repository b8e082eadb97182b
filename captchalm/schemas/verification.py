from enum import Enum

from pydantic import BaseModel

from captchalm.schemas.challenge import CamelModel, Challenge


class VerificationErrorCode(str, Enum):
    EXPIRED = "EXPIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_SOLUTION = "INVALID_SOLUTION"
    RATE_LIMITED = "RATE_LIMITED"
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"


class VerificationResult(CamelModel):
    valid: bool
    error: str | None = None
    error_code: VerificationErrorCode | None = None

    @classmethod
    def failure(cls, error_code: VerificationErrorCode, error: str) -> "VerificationResult":
        return cls(valid=False, error=error, error_code=error_code)

    @property
    def status_code(self) -> int:
        """HTTP status hint for the transport layer."""
        if self.valid:
            return 200
        if self.error_code is VerificationErrorCode.RATE_LIMITED:
            return 429
        return 401


class RateLimitResult(CamelModel):
    allowed: bool
    remaining: int
    reset_at: int


class RateLimitStatus(CamelModel):
    remaining: int
    is_limited: bool


class RateLimitStats(CamelModel):
    active_keys: int
    total_attempts: int


class VerifierStats(CamelModel):
    pending_challenges: int
    rate_limit_stats: RateLimitStats


class StatelessVerifyRequest(BaseModel):
    challenge: Challenge | None = None
    solution: str | None = None


class VerifyResponse(CamelModel):
    success: bool
    error: str | None = None
    error_code: VerificationErrorCode | None = None
