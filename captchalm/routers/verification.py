from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from captchalm.dependencies import get_captcha
from captchalm.middleware.rate_limit import get_client_identifier
from captchalm.schemas.verification import StatelessVerifyRequest, VerifierStats, VerifyResponse
from captchalm.services.standalone import CaptchaLM

router = APIRouter()


@router.post("/verify", response_model=VerifyResponse)
async def verify_stateless(
    request: Request,
    body: StatelessVerifyRequest,
    captcha: CaptchaLM = Depends(get_captcha),
):
    """
    Check a solution against the challenge signature alone.

    Nothing is consumed from the challenge store, so a valid pair can be
    replayed until the challenge expires.
    """
    if body.challenge is None or not body.solution:
        raise HTTPException(status_code=400, detail="Missing challenge or solution")

    result = captcha.verify_stateless(
        body.challenge, body.solution, get_client_identifier(request)
    )
    response = VerifyResponse(
        success=result.valid, error=result.error, error_code=result.error_code
    )
    return JSONResponse(
        status_code=result.status_code,
        content=response.model_dump(mode="json", by_alias=True),
    )


@router.get("/stats", response_model=VerifierStats)
async def get_stats(captcha: CaptchaLM = Depends(get_captcha)):
    """Pending challenge count and verification rate-limit usage."""
    return captcha.get_stats()
