"""CaptchaLM: challenges that software agents solve and humans cannot."""

from captchalm.client.solver import ChallengeSolver
from captchalm.errors import CaptchaError, ConfigurationError, DecodeError, SolveError
from captchalm.schemas import (
    CaptchaConfig,
    Challenge,
    ChallengeType,
    Difficulty,
    EncodingType,
    RateLimitConfig,
    VerificationErrorCode,
    VerificationResult,
)
from captchalm.services.generator import ChallengeGenerator
from captchalm.services.rate_limiter import RateLimiter
from captchalm.services.standalone import CaptchaLM
from captchalm.services.verifier import ChallengeVerifier

__all__ = [
    "CaptchaConfig",
    "CaptchaError",
    "CaptchaLM",
    "Challenge",
    "ChallengeGenerator",
    "ChallengeSolver",
    "ChallengeType",
    "ChallengeVerifier",
    "ConfigurationError",
    "DecodeError",
    "Difficulty",
    "EncodingType",
    "RateLimitConfig",
    "RateLimiter",
    "SolveError",
    "VerificationErrorCode",
    "VerificationResult",
]
