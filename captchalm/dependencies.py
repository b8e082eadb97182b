from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from pydantic import ValidationError

from captchalm.config import settings
from captchalm.middleware.rate_limit import get_client_identifier
from captchalm.schemas.challenge import CHALLENGE_BODY_FIELD, Challenge, ChallengeSolution
from captchalm.services.standalone import CaptchaLM


captcha = CaptchaLM(
    settings.to_captcha_config(),
    sweep_interval_seconds=settings.cleanup_interval_seconds,
)


def get_captcha() -> CaptchaLM:
    """Dependency for FastAPI endpoints to get the process-wide CaptchaLM."""
    return captcha


@dataclass
class CaptchaContext:
    verified: bool
    challenge: Challenge
    client_identifier: str


def _reject(status_code: int, error: str, **extra) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"success": False, "error": error, **extra})


async def require_captcha(
    request: Request,
    captcha: CaptchaLM = Depends(get_captcha),
) -> CaptchaContext:
    """
    Protect an endpoint with a solved challenge.

    The solver sends the challenge id and encoded answer as headers and
    round-trips the challenge object in the JSON body, since the server needs
    its payload and expiry to recompute the signature.
    """
    client_identifier = get_client_identifier(request)
    challenge_id = request.headers.get(settings.challenge_id_header)
    solution = request.headers.get(settings.solution_header)

    if not challenge_id or not solution:
        raise _reject(
            401,
            "Missing challenge credentials",
            challengeEndpoint=settings.challenge_endpoint,
            headers={
                "challengeId": settings.challenge_id_header,
                "solution": settings.solution_header,
            },
        )

    try:
        body = await request.json()
        challenge = Challenge.model_validate(body[CHALLENGE_BODY_FIELD])
    except (ValueError, KeyError, TypeError, ValidationError):
        raise _reject(
            401, f"Challenge data required. Include {CHALLENGE_BODY_FIELD} in body."
        ) from None

    result = captcha.verifier.verify(
        challenge,
        ChallengeSolution(challenge_id=challenge_id, solution=solution),
        client_identifier,
    )
    if not result.valid:
        raise _reject(result.status_code, result.error, errorCode=result.error_code.value)

    return CaptchaContext(verified=True, challenge=challenge, client_identifier=client_identifier)
