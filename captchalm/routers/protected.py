import structlog
from fastapi import APIRouter, Depends, Request

from captchalm.dependencies import CaptchaContext, require_captcha
from captchalm.schemas.challenge import CHALLENGE_BODY_FIELD

router = APIRouter()
logger = structlog.get_logger()


@router.post("/data")
async def protected_data(
    request: Request,
    context: CaptchaContext = Depends(require_captcha),
):
    """Echo the request body back to a client that solved a challenge."""
    body = await request.json()
    body.pop(CHALLENGE_BODY_FIELD, None)

    logger.info("protected_request_accepted", challenge_id=context.challenge.id[:8])

    return {
        "success": True,
        "message": "Access granted. Challenge solved.",
        "yourData": body,
    }
