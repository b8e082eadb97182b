import hashlib
import hmac
import json
import secrets
import time
from collections.abc import Sequence
from typing import TypeVar

from captchalm.errors import EmptyInputError

T = TypeVar("T")


def now_ms() -> int:
    """Current wall-clock time as Unix milliseconds."""
    return int(time.time() * 1000)


def generate_id(length: int = 32) -> str:
    """Generate a random hex identifier from `length` CSPRNG bytes."""
    return secrets.token_hex(length)


def sign(data: str, secret: str) -> str:
    """HMAC-SHA256 of `data` keyed by `secret`, as lowercase hex."""
    return hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_signature(data: str, signature: str, secret: str) -> bool:
    """Recompute the HMAC for `data` and compare it to `signature` in constant time."""
    return safe_compare(signature, sign(data, secret))


def safe_compare(a: str, b: str) -> bool:
    """
    Constant-time string comparison.

    Length is not secret, so a length mismatch returns early.
    """
    left = a.encode("utf-8")
    right = b.encode("utf-8")
    if len(left) != len(right):
        return False
    return hmac.compare_digest(left, right)


def canonical_json(data: dict) -> str:
    """Serialize with sorted keys and compact separators so signatures are stable."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sha256(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def short_hash(data: str, length: int = 8) -> str:
    return sha256(data)[:length]


def random_int(min_value: int, max_value: int) -> int:
    """
    Uniform random integer in [min_value, max_value], inclusive.

    Candidates are drawn from the smallest whole number of bytes covering the
    range; anything at or above the largest multiple of the range that fits in
    that width is rejected and redrawn, so no residue is favoured.
    """
    if min_value > max_value:
        raise ValueError(f"Invalid range: {min_value} > {max_value}")

    span = max_value - min_value + 1
    if span == 1:
        return min_value

    byte_count = max(1, ((span - 1).bit_length() + 7) // 8)
    limit = (256**byte_count // span) * span

    while True:
        candidate = int.from_bytes(secrets.token_bytes(byte_count), "little")
        if candidate < limit:
            return min_value + candidate % span


def random_element(items: Sequence[T]) -> T:
    """Pick a uniformly random element. Raises EmptyInputError on an empty sequence."""
    if len(items) == 0:
        raise EmptyInputError("Cannot select from an empty sequence")
    return items[random_int(0, len(items) - 1)]
