"""Command-line entry points for key generation and derivation."""

from __future__ import annotations

import os
import secrets
import stat
import sys
from typing import Callable, Optional, Sequence

from .curve25519 import clamp_secret, generate_public
from .encoding import KEY_LEN, KEY_LEN_BASE64, KeyFormatError, key_from_base64, key_to_base64

PROG_NAME = "wg"
VERSION = "1.0.20210914"

_SPACE = " \t\n\v\f\r"


def _warn_if_world_accessible() -> None:
    try:
        info = os.fstat(sys.stdout.fileno())
    except (OSError, AttributeError, ValueError):
        return
    if stat.S_ISREG(info.st_mode) and info.st_mode & stat.S_IRWXO:
        sys.stderr.write(
            "Warning: writing to world accessible file.\n"
            "Consider setting the umask to 077 and trying again.\n"
        )


def genkey_main(argv: Sequence[str]) -> int:
    """Print a new random key; under the name "genkey" it is clamped as a private key."""
    if len(argv) != 1:
        print(f"Usage: {PROG_NAME} {argv[0] if argv else 'genkey'}", file=sys.stderr)
        return 1
    _warn_if_world_accessible()
    try:
        key = secrets.token_bytes(KEY_LEN)
    except OSError as exc:
        print(f"getrandom: {exc}", file=sys.stderr)
        return 1
    if argv[0] == "genkey":
        key = clamp_secret(key)
    print(key_to_base64(key))
    return 0


def pubkey_main(argv: Sequence[str]) -> int:
    """Read a private key from standard input and print its public key."""
    if len(argv) != 1:
        print(f"Usage: {PROG_NAME} {argv[0] if argv else 'pubkey'}", file=sys.stderr)
        return 1
    data = sys.stdin.read()
    text, trailing = data[:KEY_LEN_BASE64], data[KEY_LEN_BASE64:]
    if len(text) != KEY_LEN_BASE64:
        print(f"{PROG_NAME}: Key is not the correct length or format", file=sys.stderr)
        return 1
    if any(c != "\0" and c not in _SPACE for c in trailing):
        print(f"{PROG_NAME}: Trailing characters found after key", file=sys.stderr)
        return 1
    try:
        private_key = key_from_base64(text)
    except KeyFormatError:
        print(f"{PROG_NAME}: Key is not the correct length or format", file=sys.stderr)
        return 1
    print(key_to_base64(generate_public(private_key)))
    return 0


_SUBCOMMANDS: dict[str, tuple[Callable[[Sequence[str]], int], str]] = {
    "genkey": (genkey_main, "Generates a new private key and writes it to stdout"),
    "genpsk": (genkey_main, "Generates a new preshared key and writes it to stdout"),
    "pubkey": (pubkey_main, "Reads a private key from stdin and writes a public key to stdout"),
}


def _usage(stream) -> None:
    stream.write(f"Usage: {PROG_NAME} <cmd> [<args>]\n\nAvailable subcommands:\n")
    for name, (_func, description) in _SUBCOMMANDS.items():
        stream.write(f"  {name}: {description}\n")
    stream.write(
        "You may pass `--help' to any of these subcommands to view usage.\n"
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Dispatch to a subcommand."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _usage(sys.stderr)
        return 1
    command = args[0]
    if command in ("-v", "--version", "version"):
        print(f"{PROG_NAME} v{VERSION}")
        return 0
    if command in ("-h", "--help", "help"):
        _usage(sys.stdout)
        return 0
    entry = _SUBCOMMANDS.get(command)
    if entry is None:
        print(f"Invalid subcommand: `{command}'", file=sys.stderr)
        _usage(sys.stderr)
        return 1
    return entry[0](args)


if __name__ == "__main__":
    sys.exit(main())