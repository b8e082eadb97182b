import math
import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from captchalm.scheduler import PeriodicSweep
from captchalm.schemas.challenge import Challenge, ChallengeSolution
from captchalm.schemas.config import CaptchaConfig
from captchalm.schemas.verification import (
    RateLimitStatus,
    VerificationErrorCode,
    VerificationResult,
    VerifierStats,
)
from captchalm.services.crypto_utils import now_ms, safe_compare
from captchalm.services.generator import compute_signature
from captchalm.services.rate_limiter import RateLimiter

logger = structlog.get_logger()

ANONYMOUS_CLIENT = "anonymous"


@dataclass
class ChallengeStoreEntry:
    expected_answer: str
    expires_at: int


class ChallengeVerifier:
    """
    Checks submitted solutions against issued challenges.

    Stateful verification looks the expected answer up in an in-memory store
    and consumes it on success. Stateless verification only recomputes the
    signature with the submitted answer, so it works across replicas that
    share the secret but cannot stop a correct answer from being replayed
    until the challenge expires.
    """

    def __init__(
        self,
        config: CaptchaConfig,
        clock: Callable[[], int] = now_ms,
        sweep_interval_seconds: float = 60,
    ):
        self.config = config
        self._clock = clock
        self.rate_limiter = RateLimiter(config.rate_limit, clock, sweep_interval_seconds)
        self._store: dict[str, ChallengeStoreEntry] = {}
        self._lock = threading.Lock()
        self._sweep = PeriodicSweep("challenge_store_sweep", self.sweep, sweep_interval_seconds)

    def store_challenge(self, challenge_id: str, expected_answer: str, expires_at: int) -> None:
        """Remember the expected answer for a challenge, replacing any previous entry."""
        with self._lock:
            self._store[challenge_id] = ChallengeStoreEntry(expected_answer, expires_at)

    def verify(
        self,
        challenge: Challenge,
        solution: ChallengeSolution,
        client_identifier: str | None = None,
    ) -> VerificationResult:
        """Verify a solution against the stored answer. A challenge can be solved once."""
        client_key = client_identifier or ANONYMOUS_CLIENT

        result = self._precheck(challenge, solution, client_key)
        if result is not None:
            return self._log(result, challenge, stateless=False)

        with self._lock:
            result = self._check_stored(challenge, solution)

        if result.valid:
            self.rate_limiter.reset(client_key)
        return self._log(result, challenge, stateless=False)

    def verify_stateless(
        self,
        challenge: Challenge,
        solution: ChallengeSolution,
        client_identifier: str | None = None,
    ) -> VerificationResult:
        """
        Verify a solution using only the signature.

        The submitted answer stands in for the expected answer when the
        signature is recomputed, so only the answer that was signed at
        generation time produces a match.
        """
        client_key = client_identifier or ANONYMOUS_CLIENT

        result = self._precheck(challenge, solution, client_key)
        if result is not None:
            return self._log(result, challenge, stateless=True)

        computed = compute_signature(
            self.config.secret,
            challenge.id,
            challenge.type,
            challenge.payload,
            challenge.expires_at,
            solution.solution,
        )
        if not safe_compare(challenge.signature, computed):
            result = VerificationResult.failure(
                VerificationErrorCode.INVALID_SOLUTION, "Incorrect solution"
            )
        else:
            result = VerificationResult(valid=True)
        return self._log(result, challenge, stateless=True)

    def _precheck(
        self, challenge: Challenge, solution: ChallengeSolution, client_key: str
    ) -> VerificationResult | None:
        """Rate limit, id match and expiry checks shared by both modes."""
        attempt = self.rate_limiter.record_attempt(client_key)
        if not attempt.allowed:
            wait_seconds = max(0, math.ceil((attempt.reset_at - self._clock()) / 1000))
            return VerificationResult.failure(
                VerificationErrorCode.RATE_LIMITED,
                f"Rate limited. Try again in {wait_seconds} seconds.",
            )

        if challenge.id != solution.challenge_id:
            return VerificationResult.failure(
                VerificationErrorCode.CHALLENGE_NOT_FOUND, "Challenge ID mismatch"
            )

        if self._clock() > challenge.expires_at:
            return VerificationResult.failure(
                VerificationErrorCode.EXPIRED, "Challenge has expired"
            )
        return None

    def _check_stored(self, challenge: Challenge, solution: ChallengeSolution) -> VerificationResult:
        # Caller holds self._lock.
        stored = self._store.get(challenge.id)
        if stored is None:
            return VerificationResult.failure(
                VerificationErrorCode.CHALLENGE_NOT_FOUND, "Challenge not found or already used"
            )

        if self._clock() > stored.expires_at:
            del self._store[challenge.id]
            return VerificationResult.failure(
                VerificationErrorCode.EXPIRED, "Challenge has expired"
            )

        expected_signature = compute_signature(
            self.config.secret,
            challenge.id,
            challenge.type,
            challenge.payload,
            challenge.expires_at,
            stored.expected_answer,
        )
        if not safe_compare(challenge.signature, expected_signature):
            return VerificationResult.failure(
                VerificationErrorCode.INVALID_SIGNATURE, "Invalid challenge signature"
            )

        if not safe_compare(solution.solution, stored.expected_answer):
            return VerificationResult.failure(
                VerificationErrorCode.INVALID_SOLUTION, "Incorrect solution"
            )

        del self._store[challenge.id]
        return VerificationResult(valid=True)

    def _log(self, result: VerificationResult, challenge: Challenge, stateless: bool):
        if result.valid:
            logger.info(
                "challenge_verified",
                challenge_id=challenge.id[:8],
                challenge_type=challenge.type.value,
                stateless=stateless,
            )
        else:
            logger.info(
                "challenge_verification_failed",
                challenge_id=challenge.id[:8],
                error_code=result.error_code.value,
                stateless=stateless,
            )
        return result

    def get_rate_limit_status(self, client_identifier: str) -> RateLimitStatus:
        return RateLimitStatus(
            remaining=self.rate_limiter.get_remaining_attempts(client_identifier),
            is_limited=self.rate_limiter.is_rate_limited(client_identifier),
        )

    def get_stats(self) -> VerifierStats:
        with self._lock:
            pending = len(self._store)
        return VerifierStats(
            pending_challenges=pending,
            rate_limit_stats=self.rate_limiter.get_stats(),
        )

    def sweep(self) -> int:
        """Evict store entries past their expiry. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [cid for cid, entry in self._store.items() if now > entry.expires_at]
            for cid in expired:
                del self._store[cid]
        return len(expired)

    @property
    def running(self) -> bool:
        return self._sweep.running

    def start(self) -> None:
        """Start the periodic eviction of expired challenges and stale rate-limit windows."""
        self._sweep.start()
        self.rate_limiter.start()

    def destroy(self) -> None:
        """Stop background sweeps and drop all state."""
        self._sweep.stop()
        self.rate_limiter.destroy()
        with self._lock:
            self._store.clear()
