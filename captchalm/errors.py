class CaptchaError(Exception):
    """Base class for CaptchaLM errors."""


class DecodeError(CaptchaError, ValueError):
    """Raised when a value cannot be decoded with the requested encoding."""


class UnknownEncodingError(CaptchaError, ValueError):
    """Raised for an encoding kind outside plain/base64/hex/rot13."""


class EmptyInputError(CaptchaError, ValueError):
    """Raised when selecting a random element from an empty sequence."""


class ConfigurationError(CaptchaError, RuntimeError):
    """
    Raised for programmer or deployment mistakes.

    Unknown challenge types and empty function pools land here. These are
    never the result of client input and should fail loudly.
    """


class SolveError(CaptchaError, ValueError):
    """Raised by the client solver when a payload cannot be interpreted."""
