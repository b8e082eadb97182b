"""
Reversible string encodings used for challenge instructions and answers.

base64 and hex operate on the UTF-8 bytes of the value. rot13 only rotates
ASCII letters and is its own inverse.
"""

import base64
import binascii
import codecs
import re
from collections.abc import Iterable

from captchalm.errors import DecodeError, UnknownEncodingError
from captchalm.schemas.challenge import EncodingType

_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]*={0,2}")
_HEX_PATTERN = re.compile(r"[0-9a-fA-F]*")


def encode(value: str, encoding: EncodingType | str) -> str:
    """Encode a value using the specified encoding."""
    kind = _resolve(encoding)
    if kind is EncodingType.PLAIN:
        return value
    if kind is EncodingType.BASE64:
        return encode_base64(value)
    if kind is EncodingType.HEX:
        return encode_hex(value)
    return rot13(value)


def decode(value: str, encoding: EncodingType | str) -> str:
    """Decode a value using the specified encoding. Raises DecodeError on malformed input."""
    kind = _resolve(encoding)
    if kind is EncodingType.PLAIN:
        return value
    if kind is EncodingType.BASE64:
        return decode_base64(value)
    if kind is EncodingType.HEX:
        return decode_hex(value)
    return rot13(value)


def encode_base64(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def decode_base64(value: str) -> str:
    """
    Strictly decode a base64 string.

    Rejects invalid characters, incorrect padding and whitespace.
    """
    if not _BASE64_PATTERN.fullmatch(value) or len(value) % 4 != 0:
        raise DecodeError("Invalid base64 encoding")
    try:
        raw = base64.b64decode(value, validate=True)
    except binascii.Error as e:
        raise DecodeError("Invalid base64 encoding") from e
    return _utf8(raw)


def encode_hex(value: str) -> str:
    return value.encode("utf-8").hex()


def decode_hex(value: str) -> str:
    """Strictly decode a hex string. Whitespace and non-hex characters are rejected."""
    if not _HEX_PATTERN.fullmatch(value):
        raise DecodeError("Invalid hex encoding")
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        raise DecodeError("Invalid hex encoding") from e
    return _utf8(raw)


def rot13(value: str) -> str:
    return codecs.encode(value, "rot_13")


def encode_chain(value: str, encodings: Iterable[EncodingType | str]) -> str:
    """Apply multiple encoding layers, first to last."""
    for encoding in encodings:
        value = encode(value, encoding)
    return value


def decode_chain(value: str, encodings: Iterable[EncodingType | str]) -> str:
    """Peel multiple encoding layers, last to first."""
    for encoding in reversed(list(encodings)):
        value = decode(value, encoding)
    return value


def canonical_string(value) -> str:
    """
    Render a puzzle result to the string form that gets encoded as the answer.

    Booleans become true/false, integral floats drop their fractional part,
    and lists are rendered element-wise and joined with commas.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(canonical_string(item) for item in value)
    if value is None:
        return ""
    return str(value)


def _resolve(encoding: EncodingType | str) -> EncodingType:
    try:
        return EncodingType(encoding)
    except ValueError:
        raise UnknownEncodingError(f"Unknown encoding type: {encoding}") from None


def _utf8(raw: bytes) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError("Decoded bytes are not valid UTF-8") from e
