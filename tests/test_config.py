"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from captchalm.config import Settings
from captchalm.schemas.challenge import ChallengeType, Difficulty
from captchalm.schemas.config import CaptchaConfig


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("CAPTCHALM_SECRET", raising=False)
        settings = Settings(_env_file=None)
        assert settings.secret_is_ephemeral is True
        assert len(settings.secret) == 64

        config = settings.to_captcha_config()
        assert config.difficulty is Difficulty.MEDIUM
        assert config.challenge_types == [
            ChallengeType.FUNCTION_EXECUTION,
            ChallengeType.CHAINED_OPERATIONS,
            ChallengeType.ENCODED_INSTRUCTION,
        ]
        assert config.expiration_ms == 30_000
        assert config.rate_limit.max_attempts == 10
        assert config.rate_limit.window_ms == 60_000

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CAPTCHALM_SECRET", "from-env")
        monkeypatch.setenv("CAPTCHALM_DIFFICULTY", "hard")
        monkeypatch.setenv("CAPTCHALM_CHALLENGE_TYPES", "code_transform, pattern_extraction")
        monkeypatch.setenv("CAPTCHALM_RATE_LIMIT_MAX_ATTEMPTS", "3")

        settings = Settings(_env_file=None)
        assert settings.secret_is_ephemeral is False

        config = settings.to_captcha_config()
        assert config.secret == "from-env"
        assert config.difficulty is Difficulty.HARD
        assert config.challenge_types == [
            ChallengeType.CODE_TRANSFORM,
            ChallengeType.PATTERN_EXTRACTION,
        ]
        assert config.rate_limit.max_attempts == 3

    def test_invalid_challenge_type(self, monkeypatch):
        monkeypatch.setenv("CAPTCHALM_CHALLENGE_TYPES", "riddle")
        with pytest.raises(ValidationError):
            Settings(_env_file=None).to_captcha_config()


class TestCaptchaConfig:
    def test_secret_required(self):
        with pytest.raises(ValidationError):
            CaptchaConfig(secret="")

    def test_challenge_types_not_empty(self):
        with pytest.raises(ValidationError):
            CaptchaConfig(secret="s", challenge_types=[])

    def test_positive_limits(self):
        with pytest.raises(ValidationError):
            CaptchaConfig(secret="s", expiration_ms=0)
        with pytest.raises(ValidationError):
            CaptchaConfig(secret="s", rate_limit={"max_attempts": 0})

    def test_camel_case_input(self):
        config = CaptchaConfig.model_validate(
            {"secret": "s", "expirationMs": 5_000, "rateLimit": {"windowMs": 1_000}}
        )
        assert config.expiration_ms == 5_000
        assert config.rate_limit.window_ms == 1_000
