from slowapi import Limiter
from starlette.requests import Request


def get_client_identifier(request: Request) -> str:
    """Identify the client for rate limiting and verification attempts.

    Behind a reverse proxy the original client is the first address in
    X-Forwarded-For. Direct connections fall back to the socket peer.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Caps challenge issuance per client; verification attempts are counted by
# the verifier's own fixed-window limiter.
limiter = Limiter(key_func=get_client_identifier)
