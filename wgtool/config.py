"""Parsing of configuration files and command-line settings into a Device."""

from __future__ import annotations

import ipaddress
import os
import re
import socket
import sys
import time
from collections import deque
from typing import Iterable, Mapping, Optional

from .encoding import KeyFormatError, key_from_base64
from .model import KEY_LEN, AllowedIP, Device, DeviceFlag, Endpoint, IPAddress, Peer, PeerFlag

COMMENT_CHAR = "#"
DEFAULT_RESOLUTION_RETRIES = 15
KEY_FILE_CHARS = 44

_SPACE = " \t\n\v\f\r"
_SPACE_BYTES = frozenset(_SPACE.encode("ascii"))
_HEX = frozenset("0123456789abcdefABCDEF")
_RETRIES_RE = re.compile(r"[ \t\n\v\f\r]*\+?[0-9]+")
_INT_MAX = 2**31 - 1
_UINT32_MAX = 2**32 - 1

_PERMANENT_GAI_ERRORS = frozenset(
    code
    for code in (
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_FAIL", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
)


class ConfigError(ValueError):
    """A configuration line or argument could not be parsed."""


def _strip_spaces(text: str) -> str:
    return "".join(c for c in text if c not in _SPACE)


def _is_digit(text: str) -> bool:
    return bool(text) and text[0] in "0123456789"


def _is_decimal(text: str) -> bool:
    return bool(text) and all(c in "0123456789" for c in text)


def _gai_message(exc: socket.gaierror) -> str:
    return exc.strerror or str(exc)


def parse_port(value: str) -> int:
    """Parse a UDP port number or service name."""
    if not value:
        raise ConfigError("Unable to parse empty port")
    if _is_decimal(value):
        port = int(value)
        if port > 0xFFFF:
            raise ConfigError(f"Port out of range: `{value}'")
        return port
    try:
        resolved = socket.getaddrinfo(
            None, value, socket.AF_UNSPEC, socket.SOCK_DGRAM, socket.IPPROTO_UDP, socket.AI_PASSIVE
        )
    except socket.gaierror as exc:
        raise ConfigError(f"{_gai_message(exc)}: `{value}'") from exc
    except (UnicodeError, OSError) as exc:
        raise ConfigError(f"{exc}: `{value}'") from exc
    for family, _type, _proto, _canon, sockaddr in resolved[:1]:
        if family in (socket.AF_INET, socket.AF_INET6):
            return sockaddr[1]
    raise ConfigError(f"Neither IPv4 nor IPv6 address found: `{value}'")


def parse_fwmark(value: str) -> int:
    """Parse a firewall mark: "off", a decimal number or a 0x-prefixed hex number."""
    if value.lower() == "off":
        return 0
    error = ConfigError(f"Fwmark is neither 0/off nor 0-0xffffffff: `{value}'")
    if not _is_digit(value):
        raise error
    if len(value) > 2 and value.startswith("0x"):
        digits = value[2:]
        if not all(c in _HEX for c in digits):
            raise error
        mark = int(digits, 16)
    else:
        if not _is_decimal(value):
            raise error
        mark = int(value)
    if mark > _UINT32_MAX:
        raise error
    return mark


def parse_key(value: str) -> bytes:
    """Decode a base64 key."""
    try:
        return key_from_base64(value)
    except KeyFormatError as exc:
        raise ConfigError(f"Key is not the correct length or format: `{value}'") from exc


def parse_keyfile(path: str | os.PathLike[str]) -> bytes:
    """Read a base64 key from a file; an empty file gives the all-zero key."""
    try:
        with open(path, "rb") as handle:
            data = handle.read()
    except OSError as exc:
        raise ConfigError(f"{path}: {exc.strerror or exc}") from exc
    if not data:
        return bytes(KEY_LEN)
    if len(data) < KEY_FILE_CHARS:
        raise ConfigError("Invalid length key in key file")
    head, tail = data[:KEY_FILE_CHARS], data[KEY_FILE_CHARS:]
    for byte in tail:
        if byte not in _SPACE_BYTES:
            raise ConfigError(f"Found trailing character in key file: `{chr(byte)}'")
    return parse_key(head.decode("latin-1"))


def parse_ip(value: str) -> IPAddress:
    """Parse a bare IPv4 or IPv6 address."""
    try:
        if ":" in value:
            if "%" in value:
                raise ValueError(value)
            return ipaddress.IPv6Address(value)
        return ipaddress.IPv4Address(value)
    except ValueError as exc:
        raise ConfigError(f"Unable to parse IP address: `{value}'") from exc


def resolution_retries(environ: Optional[Mapping[str, str]] = None) -> int:
    """Return how many times endpoint resolution is retried; -1 means forever."""
    env = os.environ if environ is None else environ
    retries = env.get("WG_ENDPOINT_RESOLUTION_RETRIES")
    if retries is None:
        return DEFAULT_RESOLUTION_RETRIES
    if retries == "infinity":
        return -1
    if retries == "":
        return 0
    if not _RETRIES_RE.fullmatch(retries) or int(retries.lstrip(_SPACE)) > _INT_MAX:
        raise ConfigError(f"Unable to parse WG_ENDPOINT_RESOLUTION_RETRIES: `{retries}'")
    return int(retries.lstrip(_SPACE))


def _split_endpoint(value: str) -> tuple[str, str]:
    if value.startswith("["):
        close = value.find("]")
        if close < 0:
            raise ConfigError(f"Unable to find matching brace of endpoint: `{value}'")
        rest = value[close + 1:]
        if not rest.startswith(":") or len(rest) < 2:
            raise ConfigError(f"Unable to find port of endpoint: `{value}'")
        return value[1:close], rest[1:]
    host, sep, port = value.rpartition(":")
    if not sep or not port:
        raise ConfigError(f"Unable to find port of endpoint: `{value}'")
    return host, port


def parse_endpoint(value: str, retries: Optional[int] = None) -> Endpoint:
    """Resolve host:port or [host]:port, retrying transient failures."""
    if retries is None:
        retries = resolution_retries()
    if not value:
        raise ConfigError("Unable to parse empty endpoint")
    host, port = _split_endpoint(value)

    timeout_us = 1_000_000
    while True:
        try:
            resolved = socket.getaddrinfo(
                host, port, socket.AF_UNSPEC, socket.SOCK_DGRAM, socket.IPPROTO_UDP
            )
            break
        except socket.gaierror as exc:
            message = _gai_message(exc)
            if exc.errno in _PERMANENT_GAI_ERRORS or retries == 0:
                raise ConfigError(f"{message}: `{value}'") from exc
            if retries > 0:
                retries -= 1
            print(
                f"{message}: `{value}'. Trying again in {timeout_us / 1_000_000:.2f} seconds...",
                file=sys.stderr,
            )
            time.sleep(timeout_us / 1_000_000)
            timeout_us = min(20_000_000, timeout_us * 6 // 5)
        except (UnicodeError, OSError) as exc:
            raise ConfigError(f"{exc}: `{value}'") from exc

    for family, _type, _proto, _canon, sockaddr in resolved[:1]:
        if family in (socket.AF_INET, socket.AF_INET6):
            return Endpoint(ipaddress.ip_address(sockaddr[0]), sockaddr[1])
    raise ConfigError(f"Neither IPv4 nor IPv6 address found: `{value}'")


def parse_persistent_keepalive(value: str) -> int:
    """Parse a keepalive interval in seconds: "off" or 0-65535."""
    if value.lower() == "off":
        return 0
    if not _is_decimal(value) or int(value) > 65535:
        raise ConfigError(
            f"Persistent keepalive interval is neither 0/off nor 1-65535: `{value}'"
        )
    return int(value)


def _has_nonzero_host_part(address: IPAddress, cidr: int) -> bool:
    host_bits = address.max_prefixlen - cidr
    return bool(int(address) & ((1 << host_bits) - 1))


def parse_allowed_ips(value: str) -> list[AllowedIP]:
    """Parse a comma-separated list of address[/cidr] entries."""
    if not value:
        return []
    result = []
    for entry in value.split(","):
        ip_text, sep, mask = entry.partition("/")
        address = parse_ip(ip_text)
        if sep:
            if not _is_decimal(mask) or int(mask) > address.max_prefixlen:
                raise ConfigError(f"AllowedIP is not in the correct format: `{entry}'")
            cidr = int(mask)
        else:
            cidr = address.max_prefixlen
        if _has_nonzero_host_part(address, cidr):
            print(f"Warning: AllowedIP has nonzero host part: {ip_text}/{mask}", file=sys.stderr)
        result.append(AllowedIP(address, cidr))
    return result


def _value_for(line: str, key: str) -> Optional[str]:
    prefix = key + "="
    if len(prefix) >= len(line) or line[: len(prefix)].lower() != prefix.lower():
        return None
    return line[len(prefix):]


class ConfigReader:
    """Builds a Device from the lines of a configuration file."""

    def __init__(self, append: bool = False) -> None:
        self.device = Device()
        if not append:
            self.device.flags |= (
                DeviceFlag.REPLACE_PEERS
                | DeviceFlag.HAS_PRIVATE_KEY
                | DeviceFlag.HAS_FWMARK
                | DeviceFlag.HAS_LISTEN_PORT
            )
        self._section: Optional[str] = None

    def read_line(self, line: str) -> None:
        """Process one line; comments and whitespace are ignored."""
        cleaned = _strip_spaces(line.split(COMMENT_CHAR, 1)[0])
        if cleaned:
            self._process(cleaned)

    def read_lines(self, lines: Iterable[str]) -> None:
        """Process every line in turn."""
        for line in lines:
            self.read_line(line)

    def finish(self) -> Device:
        """Return the device, checking that every peer has a public key."""
        if any(PeerFlag.HAS_PUBLIC_KEY not in peer.flags for peer in self.device.peers):
            raise ConfigError("A peer is missing a public key")
        return self.device

    def _process(self, line: str) -> None:
        lowered = line.lower()
        if lowered == "[interface]":
            self._section = "interface"
            return
        if lowered == "[peer]":
            self.device.peers.append(Peer(flags=PeerFlag.REPLACE_ALLOWEDIPS))
            self._section = "peer"
            return
        if self._section == "interface" and self._process_interface(line):
            return
        if self._section == "peer" and self._process_peer(line):
            return
        raise ConfigError(f"Line unrecognized: `{line}'")

    def _process_interface(self, line: str) -> bool:
        device = self.device
        if (value := _value_for(line, "ListenPort")) is not None:
            device.listen_port = parse_port(value)
            device.flags |= DeviceFlag.HAS_LISTEN_PORT
        elif (value := _value_for(line, "FwMark")) is not None:
            device.fwmark = parse_fwmark(value)
            device.flags |= DeviceFlag.HAS_FWMARK
        elif (value := _value_for(line, "PrivateKey")) is not None:
            device.private_key = parse_key(value)
            device.flags |= DeviceFlag.HAS_PRIVATE_KEY
        else:
            return False
        return True

    def _process_peer(self, line: str) -> bool:
        peer = self.device.peers[-1]
        if (value := _value_for(line, "Endpoint")) is not None:
            peer.endpoint = parse_endpoint(value)
        elif (value := _value_for(line, "PublicKey")) is not None:
            peer.public_key = parse_key(value)
            peer.flags |= PeerFlag.HAS_PUBLIC_KEY
        elif (value := _value_for(line, "AllowedIPs")) is not None:
            peer.flags |= PeerFlag.REPLACE_ALLOWEDIPS
            peer.allowed_ips.extend(parse_allowed_ips(value))
        elif (value := _value_for(line, "PersistentKeepalive")) is not None:
            peer.persistent_keepalive_interval = parse_persistent_keepalive(value)
            peer.flags |= PeerFlag.HAS_PERSISTENT_KEEPALIVE_INTERVAL
        elif (value := _value_for(line, "PresharedKey")) is not None:
            peer.preshared_key = parse_key(value)
            peer.flags |= PeerFlag.HAS_PRESHARED_KEY
        else:
            return False
        return True


def read_command(args: Iterable[str]) -> Device:
    """Build a Device from settings given as command-line words."""
    device = Device()
    peer: Optional[Peer] = None
    queue = deque(args)
    while queue:
        word = queue.popleft()
        has_value = bool(queue)
        if word == "listen-port" and has_value and peer is None:
            device.listen_port = parse_port(queue.popleft())
            device.flags |= DeviceFlag.HAS_LISTEN_PORT
        elif word == "fwmark" and has_value and peer is None:
            device.fwmark = parse_fwmark(queue.popleft())
            device.flags |= DeviceFlag.HAS_FWMARK
        elif word == "private-key" and has_value and peer is None:
            device.private_key = parse_keyfile(queue.popleft())
            device.flags |= DeviceFlag.HAS_PRIVATE_KEY
        elif word == "peer" and has_value:
            peer = Peer(public_key=parse_key(queue.popleft()), flags=PeerFlag.HAS_PUBLIC_KEY)
            device.peers.append(peer)
        elif word == "remove" and peer is not None:
            peer.flags |= PeerFlag.REMOVE_ME
        elif word == "endpoint" and has_value and peer is not None:
            peer.endpoint = parse_endpoint(queue.popleft())
        elif word == "allowed-ips" and has_value and peer is not None:
            peer.flags |= PeerFlag.REPLACE_ALLOWEDIPS
            peer.allowed_ips.extend(parse_allowed_ips(_strip_spaces(queue.popleft())))
        elif word == "persistent-keepalive" and has_value and peer is not None:
            peer.persistent_keepalive_interval = parse_persistent_keepalive(queue.popleft())
            peer.flags |= PeerFlag.HAS_PERSISTENT_KEEPALIVE_INTERVAL
        elif word == "preshared-key" and has_value and peer is not None:
            peer.preshared_key = parse_keyfile(queue.popleft())
            peer.flags |= PeerFlag.HAS_PRESHARED_KEY
        else:
            raise ConfigError(f"Invalid argument: {word}")
    return device