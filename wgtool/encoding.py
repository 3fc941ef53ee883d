"""Base64 and hex encoding of 32-byte keys."""

from __future__ import annotations

import base64
import binascii
import string

KEY_LEN = 32
KEY_LEN_BASE64 = ((KEY_LEN + 2) // 3) * 4
KEY_LEN_HEX = KEY_LEN * 2

_HEX_DIGITS = frozenset(string.hexdigits)


class KeyFormatError(ValueError):
    """A key is not the correct length or format."""


def _check_key(key: bytes) -> bytes:
    key = bytes(key)
    if len(key) != KEY_LEN:
        raise KeyFormatError(f"key must be {KEY_LEN} bytes, got {len(key)}")
    return key


def key_to_base64(key: bytes) -> str:
    """Encode a 32-byte key as 44 characters of base64."""
    return base64.b64encode(_check_key(key)).decode("ascii")


def key_from_base64(text: str) -> bytes:
    """Decode a base64 key, rejecting anything but the canonical 44-character form."""
    if len(text) != KEY_LEN_BASE64 or text[-1] != "=" or text[-2] == "=":
        raise KeyFormatError(f"key is not the correct length or format: {text!r}")
    try:
        key = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise KeyFormatError(f"key is not the correct length or format: {text!r}") from exc
    # Reject unused trailing bits, which would make the encoding non-canonical.
    if len(key) != KEY_LEN or base64.b64encode(key).decode("ascii") != text:
        raise KeyFormatError(f"key is not the correct length or format: {text!r}")
    return key


def key_to_hex(key: bytes) -> str:
    """Encode a 32-byte key as 64 lowercase hex digits."""
    return _check_key(key).hex()


def key_from_hex(text: str) -> bytes:
    """Decode a key from 64 hex digits of either case."""
    if len(text) != KEY_LEN_HEX or not all(c in _HEX_DIGITS for c in text):
        raise KeyFormatError(f"key is not the correct length or format: {text!r}")
    return bytes.fromhex(text)


def key_is_zero(key: bytes) -> bool:
    """Return True if every byte of the key is zero."""
    return not any(_check_key(key))