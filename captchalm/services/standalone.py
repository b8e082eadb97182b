"""Framework-agnostic API pairing a generator with a verifier."""

from collections.abc import Callable

from captchalm.functions import PuzzleFunction
from captchalm.schemas.challenge import Challenge, ChallengeSolution, ChallengeType, Difficulty
from captchalm.schemas.config import CaptchaConfig
from captchalm.schemas.verification import RateLimitStatus, VerificationResult, VerifierStats
from captchalm.services.crypto_utils import now_ms
from captchalm.services.generator import ChallengeGenerator
from captchalm.services.verifier import ChallengeVerifier


class CaptchaLM:
    """
    Issues challenges and verifies solutions.

    Every generated challenge is stored for stateful verification. Use as a
    context manager, or call start() and destroy() explicitly, to run the
    background eviction sweeps.
    """

    def __init__(
        self,
        config: CaptchaConfig,
        functions: list[PuzzleFunction] | None = None,
        clock: Callable[[], int] = now_ms,
        sweep_interval_seconds: float = 60,
    ):
        self.config = config
        self.generator = ChallengeGenerator(config, functions=functions, clock=clock)
        self.verifier = ChallengeVerifier(
            config, clock=clock, sweep_interval_seconds=sweep_interval_seconds
        )

    def generate(
        self,
        challenge_type: ChallengeType | str | None = None,
        difficulty: Difficulty | str | None = None,
    ) -> tuple[Challenge, str]:
        challenge, expected_answer = self.generator.generate(challenge_type, difficulty)
        self.verifier.store_challenge(challenge.id, expected_answer, challenge.expires_at)
        return challenge, expected_answer

    def verify(
        self, challenge: Challenge, solution: str, client_identifier: str | None = None
    ) -> VerificationResult:
        return self.verifier.verify(
            challenge,
            ChallengeSolution(challenge_id=challenge.id, solution=solution),
            client_identifier,
        )

    def verify_stateless(
        self, challenge: Challenge, solution: str, client_identifier: str | None = None
    ) -> VerificationResult:
        return self.verifier.verify_stateless(
            challenge,
            ChallengeSolution(challenge_id=challenge.id, solution=solution),
            client_identifier,
        )

    def get_rate_limit_status(self, client_identifier: str) -> RateLimitStatus:
        return self.verifier.get_rate_limit_status(client_identifier)

    def get_stats(self) -> VerifierStats:
        return self.verifier.get_stats()

    def get_config(self) -> CaptchaConfig:
        return self.config.model_copy(deep=True)

    def start(self) -> None:
        self.verifier.start()

    def destroy(self) -> None:
        self.verifier.destroy()

    def __enter__(self) -> "CaptchaLM":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()
