from captchalm.schemas.challenge import (
    ChainedOperation,
    ChainedOperationsPayload,
    Challenge,
    ChallengePayload,
    ChallengeResponse,
    ChallengeSolution,
    ChallengeType,
    CodeTransform,
    CodeTransformPayload,
    Difficulty,
    EncodedInstructionPayload,
    EncodingType,
    FunctionExecutionPayload,
    Operation,
    PatternExtractionPayload,
)
from captchalm.schemas.config import CaptchaConfig, RateLimitConfig
from captchalm.schemas.verification import (
    RateLimitResult,
    RateLimitStats,
    RateLimitStatus,
    StatelessVerifyRequest,
    VerificationErrorCode,
    VerificationResult,
    VerifierStats,
    VerifyResponse,
)

__all__ = [
    "CaptchaConfig",
    "ChainedOperation",
    "ChainedOperationsPayload",
    "Challenge",
    "ChallengePayload",
    "ChallengeResponse",
    "ChallengeSolution",
    "ChallengeType",
    "CodeTransform",
    "CodeTransformPayload",
    "Difficulty",
    "EncodedInstructionPayload",
    "EncodingType",
    "FunctionExecutionPayload",
    "Operation",
    "PatternExtractionPayload",
    "RateLimitConfig",
    "RateLimitResult",
    "RateLimitStats",
    "RateLimitStatus",
    "StatelessVerifyRequest",
    "VerificationErrorCode",
    "VerificationResult",
    "VerifierStats",
    "VerifyResponse",
]
