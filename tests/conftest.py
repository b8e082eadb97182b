import pytest
from fastapi.testclient import TestClient

from captchalm.dependencies import get_captcha
from captchalm.main import app
from captchalm.middleware.rate_limit import limiter
from captchalm.schemas.config import CaptchaConfig, RateLimitConfig
from captchalm.services.standalone import CaptchaLM
from captchalm.services.verifier import ChallengeVerifier
from tests.test_utils import FakeClock


@pytest.fixture
def clock():
    """A clock that only moves when a test advances it."""
    return FakeClock()


@pytest.fixture
def config():
    return CaptchaConfig(
        secret="test-secret-key",
        expiration_ms=30_000,
        rate_limit=RateLimitConfig(max_attempts=10, window_ms=60_000),
    )


@pytest.fixture
def verifier(config, clock):
    """A verifier with no background sweeps running."""
    verifier = ChallengeVerifier(config, clock=clock)
    try:
        yield verifier
    finally:
        verifier.destroy()


@pytest.fixture
def captcha(config, clock):
    captcha = CaptchaLM(config, clock=clock)
    try:
        yield captcha
    finally:
        captcha.destroy()


@pytest.fixture
def client(captcha):
    """Create a test client bound to the test CaptchaLM and disabled HTTP rate limiting."""
    app.dependency_overrides[get_captcha] = lambda: captcha

    # Disable rate limiting for tests
    limiter.enabled = False

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.enabled = True
