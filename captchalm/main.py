from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from captchalm.config import settings
from captchalm.dependencies import captcha
from captchalm.logging_config import setup_logging
from captchalm.middleware.logging import LoggingMiddleware
from captchalm.middleware.rate_limit import limiter
from captchalm.routers import challenges, protected, verification

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle - start/stop the cleanup sweeps."""
    setup_logging()
    if settings.secret_is_ephemeral:
        logger.warning(
            "ephemeral_secret",
            detail="CAPTCHALM_SECRET is not set; challenges will not survive a restart",
        )
    captcha.start()
    yield
    captcha.destroy()


app = FastAPI(
    title="CaptchaLM",
    description="Challenges that software agents solve and humans cannot",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)

app.add_middleware(LoggingMiddleware)

# Routers
app.include_router(challenges.router, tags=["challenges"])
app.include_router(verification.router, prefix="/api/v1", tags=["verification"])
app.include_router(protected.router, prefix="/api/v1", tags=["protected"])


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
