import pytest

from wgtool.curve25519 import clamp_secret, curve25519, generate_public

ALICE_PRIVATE = bytes.fromhex("77076d0a7318a57d3c16c17251b26645df4c2f87ebc0992ab177fba51db92c2a")
BOB_PRIVATE = bytes.fromhex("5dab087e624a8a4b79e17f8b83800ee66f3bb1292618b6fd1c2f8b27ff88e0eb")
BASEPOINT = bytes([9]) + bytes(31)


def test_alice_public_key():
    expected = bytes.fromhex("8520f0098930a754748b7ddcb43ef75a0dbf3a0d26381af4eba4a98eaa9b4e6a")
    assert generate_public(ALICE_PRIVATE) == expected


def test_bob_public_key():
    expected = bytes.fromhex("de9edb7d7b7dc1b4d35b61c2ece435373f8343c85b78674dadfc7e146f882b4f")
    assert generate_public(BOB_PRIVATE) == expected


def test_shared_secret_is_symmetric():
    alice_pub = generate_public(ALICE_PRIVATE)
    bob_pub = generate_public(BOB_PRIVATE)
    assert curve25519(ALICE_PRIVATE, bob_pub) == curve25519(BOB_PRIVATE, alice_pub)


@pytest.mark.parametrize("seed", [0, 1, 7, 100, 200])
def test_shared_secret_symmetric_various(seed):
    a = bytes((seed + i) % 256 for i in range(32))
    b = bytes((seed * 3 + i * 5) % 256 for i in range(32))
    shared_ab = curve25519(a, generate_public(b))
    shared_ba = curve25519(b, generate_public(a))
    assert shared_ab == shared_ba
    assert len(shared_ab) == 32


def test_generate_public_uses_basepoint_nine():
    assert generate_public(ALICE_PRIVATE) == curve25519(ALICE_PRIVATE, BASEPOINT)


def test_clamp_secret_bits():
    clamped = clamp_secret(bytes([0xFF]) * 32)
    assert clamped[0] & 7 == 0
    assert clamped[31] & 0x80 == 0
    assert clamped[31] & 0x40 == 0x40
    assert clamped[1:31] == bytes([0xFF]) * 30


def test_clamp_secret_zero():
    clamped = clamp_secret(bytes(32))
    assert clamped[31] == 64
    assert clamped[:31] == bytes(31)


def test_clamp_secret_idempotent():
    once = clamp_secret(ALICE_PRIVATE)
    assert clamp_secret(once) == once


def test_clamp_does_not_mutate_input():
    secret = bytearray([0xFF]) * 32
    clamp_secret(secret)
    assert secret == bytearray([0xFF]) * 32


def test_result_ignores_clamped_bits():
    modified = bytearray(ALICE_PRIVATE)
    modified[0] ^= 0x07
    modified[31] ^= 0xC0
    assert generate_public(bytes(modified)) == generate_public(ALICE_PRIVATE)


def test_top_bit_of_basepoint_ignored():
    peer = bytearray(generate_public(BOB_PRIVATE))
    plain = curve25519(ALICE_PRIVATE, bytes(peer))
    peer[31] |= 0x80
    assert curve25519(ALICE_PRIVATE, bytes(peer)) == plain


def test_zero_basepoint_gives_zero():
    assert curve25519(ALICE_PRIVATE, bytes(32)) == bytes(32)


def test_accepts_bytearray():
    assert generate_public(bytearray(ALICE_PRIVATE)) == generate_public(ALICE_PRIVATE)


@pytest.mark.parametrize("length", [0, 31, 33])
def test_wrong_secret_length(length):
    with pytest.raises(ValueError):
        generate_public(bytes(length))


@pytest.mark.parametrize("length", [0, 16, 64])
def test_wrong_basepoint_length(length):
    with pytest.raises(ValueError):
        curve25519(ALICE_PRIVATE, bytes(length))


def test_clamp_wrong_length():
    with pytest.raises(ValueError):
        clamp_secret(bytes(10))