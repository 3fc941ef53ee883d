"""Data model for interface configuration: devices, peers and allowed IPs."""

from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass, field
from typing import Optional, Union

KEY_LEN = 32

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class DeviceFlag(enum.Flag):
    """Which device fields are set, and whether existing peers are replaced."""

    NONE = 0
    REPLACE_PEERS = enum.auto()
    HAS_PRIVATE_KEY = enum.auto()
    HAS_PUBLIC_KEY = enum.auto()
    HAS_LISTEN_PORT = enum.auto()
    HAS_FWMARK = enum.auto()


class PeerFlag(enum.Flag):
    """Which peer fields are set, and what to do with the peer."""

    NONE = 0
    REMOVE_ME = enum.auto()
    REPLACE_ALLOWEDIPS = enum.auto()
    HAS_PUBLIC_KEY = enum.auto()
    HAS_PRESHARED_KEY = enum.auto()
    HAS_PERSISTENT_KEEPALIVE_INTERVAL = enum.auto()


def _zero_key() -> bytes:
    return bytes(KEY_LEN)


@dataclass(frozen=True)
class Endpoint:
    """A UDP endpoint: an IPv4 or IPv6 address and a port."""

    address: IPAddress
    port: int

    def __post_init__(self) -> None:
        if not isinstance(self.address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "address", ipaddress.ip_address(self.address))
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port out of range: {self.port}")

    def format(self) -> str:
        """Return the endpoint as host:port, bracketing IPv6 hosts."""
        if self.address.version == 6:
            return f"[{self.address}]:{self.port}"
        return f"{self.address}:{self.port}"


@dataclass(frozen=True)
class AllowedIP:
    """An address with a prefix length."""

    address: IPAddress
    cidr: int

    def __post_init__(self) -> None:
        if not isinstance(self.address, (ipaddress.IPv4Address, ipaddress.IPv6Address)):
            object.__setattr__(self, "address", ipaddress.ip_address(self.address))
        if not 0 <= self.cidr <= self.address.max_prefixlen:
            raise ValueError(f"prefix length out of range: {self.cidr}")

    def format(self) -> str:
        """Return the address as address/cidr."""
        return f"{self.address}/{self.cidr}"


@dataclass
class Peer:
    """A peer of a device."""

    public_key: bytes = field(default_factory=_zero_key)
    preshared_key: bytes = field(default_factory=_zero_key)
    endpoint: Optional[Endpoint] = None
    persistent_keepalive_interval: int = 0
    last_handshake_sec: int = 0
    last_handshake_nsec: int = 0
    rx_bytes: int = 0
    tx_bytes: int = 0
    allowed_ips: list[AllowedIP] = field(default_factory=list)
    flags: PeerFlag = PeerFlag.NONE


@dataclass
class Device:
    """An interface and its peers."""

    name: str = ""
    flags: DeviceFlag = DeviceFlag.NONE
    public_key: bytes = field(default_factory=_zero_key)
    private_key: bytes = field(default_factory=_zero_key)
    fwmark: int = 0
    listen_port: int = 0
    peers: list[Peer] = field(default_factory=list)

    def find_peer(self, public_key: bytes) -> Optional[Peer]:
        """Return the first peer with the given public key, or None."""
        key = bytes(public_key)
        return next((peer for peer in self.peers if peer.public_key == key), None)