"""X25519 Diffie-Hellman over Curve25519."""

from __future__ import annotations

KEY_SIZE = 32

_P = 2**255 - 19
_A24 = 121665
_BASEPOINT = bytes([9]) + bytes(KEY_SIZE - 1)


def _check(value: bytes, what: str) -> bytes:
    data = bytes(value)
    if len(data) != KEY_SIZE:
        raise ValueError(f"{what} must be {KEY_SIZE} bytes, got {len(data)}")
    return data


def clamp_secret(secret: bytes) -> bytes:
    """Return the secret with the low three bits cleared, bit 255 cleared and bit 254 set."""
    data = bytearray(_check(secret, "secret"))
    data[0] &= 248
    data[31] = (data[31] & 127) | 64
    return bytes(data)


def _decode_u(basepoint: bytes) -> int:
    # The top bit of the u-coordinate is ignored.
    return int.from_bytes(basepoint, "little") & ((1 << 255) - 1)


def _ladder(scalar: int, u: int) -> int:
    x1 = u % _P
    x2, z2 = 1, 0
    x3, z3 = x1, 1
    swap = 0
    for t in reversed(range(255)):
        bit = (scalar >> t) & 1
        swap ^= bit
        if swap:
            x2, x3 = x3, x2
            z2, z3 = z3, z2
        swap = bit

        a = (x2 + z2) % _P
        aa = a * a % _P
        b = (x2 - z2) % _P
        bb = b * b % _P
        e = (aa - bb) % _P
        c = (x3 + z3) % _P
        d = (x3 - z3) % _P
        da = d * a % _P
        cb = c * b % _P
        x3 = (da + cb) ** 2 % _P
        z3 = x1 * ((da - cb) ** 2) % _P
        x2 = aa * bb % _P
        z2 = e * (aa + _A24 * e) % _P

    if swap:
        x2, z2 = x3, z3
    return x2 * pow(z2, _P - 2, _P) % _P


def curve25519(secret: bytes, basepoint: bytes) -> bytes:
    """Multiply the point with u-coordinate basepoint by the clamped secret."""
    scalar = int.from_bytes(clamp_secret(secret), "little")
    u = _decode_u(_check(basepoint, "basepoint"))
    return _ladder(scalar, u).to_bytes(KEY_SIZE, "little")


def generate_public(secret: bytes) -> bytes:
    """Return the public key that belongs to a private key."""
    return curve25519(secret, _BASEPOINT)