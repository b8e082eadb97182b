import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from captchalm.config import settings
from captchalm.dependencies import get_captcha
from captchalm.errors import CaptchaError
from captchalm.middleware.rate_limit import limiter
from captchalm.schemas.challenge import ChallengeResponse
from captchalm.services.standalone import CaptchaLM

router = APIRouter()
logger = structlog.get_logger()


@router.get(settings.challenge_endpoint, response_model=ChallengeResponse)
@limiter.limit(settings.rate_limit_challenges)
async def get_challenge(
    request: Request,
    captcha: CaptchaLM = Depends(get_captcha),
):
    """
    Issue a signed challenge.

    The expected answer stays in the server-side store; the client must
    echo the challenge back alongside its solution.
    """
    try:
        challenge, _ = captcha.generate()
    except CaptchaError as e:
        logger.error("challenge_generation_failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to generate challenge"},
        )

    logger.info(
        "challenge_created",
        challenge_id=challenge.id[:8],
        challenge_type=challenge.type.value,
        difficulty=challenge.difficulty.value,
    )

    return ChallengeResponse(challenge=challenge)
