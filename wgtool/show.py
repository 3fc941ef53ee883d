"""Human-readable and machine-readable views of a device's state."""

from __future__ import annotations

import os
import time
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .encoding import key_to_base64
from .model import Device, DeviceFlag, Peer, PeerFlag

USAGE_PARAMS = (
    "public-key | private-key | listen-port | fwmark | peers | preshared-keys | "
    "endpoints | allowed-ips | latest-handshakes | transfer | persistent-keepalive | dump"
)

_MINUTE = 60
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_YEAR = 365 * _DAY


class ShowError(ValueError):
    """A requested view does not exist."""


@dataclass(frozen=True)
class _Palette:
    reset: str = ""
    bold: str = ""
    red: str = ""
    green: str = ""
    yellow: str = ""
    cyan: str = ""


_PLAIN = _Palette()
_ANSI = _Palette(
    reset="\x1b[0m",
    bold="\x1b[1m",
    red="\x1b[31m",
    green="\x1b[32m",
    yellow="\x1b[33m",
    cyan="\x1b[36m",
)


def _palette(color: bool) -> _Palette:
    return _ANSI if color else _PLAIN


def sort_peers(peers: Iterable[Peer]) -> list[Peer]:
    """Order peers by most recent handshake first; peers never seen go last."""

    def sort_key(peer: Peer) -> tuple[bool, int, int]:
        never = not peer.last_handshake_sec and not peer.last_handshake_nsec
        return (never, -peer.last_handshake_sec, -peer.last_handshake_nsec)

    return sorted(peers, key=sort_key)


def pretty_time(seconds: int, color: bool = False) -> str:
    """Spell out a duration as years, days, hours, minutes and seconds."""
    pal = _palette(color)
    years, left = divmod(seconds, _YEAR)
    days, left = divmod(left, _DAY)
    hours, left = divmod(left, _HOUR)
    minutes, secs = divmod(left, _MINUTE)
    parts = [
        f"{amount} {pal.cyan}{unit}{'' if amount == 1 else 's'}{pal.reset}"
        for amount, unit in (
            (years, "year"),
            (days, "day"),
            (hours, "hour"),
            (minutes, "minute"),
            (secs, "second"),
        )
        if amount
    ]
    return ", ".join(parts)


def ago(timestamp: int, now: Optional[int] = None, color: bool = False) -> str:
    """Describe how long ago a time in seconds since the epoch was."""
    if now is None:
        now = int(time.time())
    if now == timestamp:
        return "Now"
    if now < timestamp:
        pal = _palette(color)
        return (
            f"({pal.red}System clock wound backward; connection problems may ensue.{pal.reset})"
        )
    return pretty_time(now - timestamp, color) + " ago"


def every(seconds: int, color: bool = False) -> str:
    """Describe a repeating interval."""
    return "every " + pretty_time(seconds, color)


def format_bytes(count: int, color: bool = False) -> str:
    """Format a byte count with a binary unit."""
    pal = _palette(color)
    kib = 1024
    if count < kib:
        return f"{count} {pal.cyan}B{pal.reset}"
    for unit, scale in (("KiB", kib), ("MiB", kib**2), ("GiB", kib**3)):
        if count < scale * kib:
            return f"{count / scale:.2f} {pal.cyan}{unit}{pal.reset}"
    return f"{count / kib**4:.2f} {pal.cyan}TiB{pal.reset}"


def masked_key(key: bytes, environ: Optional[Mapping[str, str]] = None) -> str:
    """Show a secret key only when WG_HIDE_KEYS is set to "never"."""
    env = os.environ if environ is None else environ
    if env.get("WG_HIDE_KEYS") == "never":
        return key_to_base64(key)
    return "(hidden)"


def _maybe_key(key: bytes, have_it: bool) -> str:
    return key_to_base64(key) if have_it else "(none)"


def _fwmark(device: Device) -> str:
    return f"0x{device.fwmark:x}" if device.fwmark else "off"


def pretty_print(
    device: Device,
    color: bool = False,
    environ: Optional[Mapping[str, str]] = None,
    now: Optional[int] = None,
) -> str:
    """Render a device the way an interactive listing shows it."""
    pal = _palette(color)
    out = [pal.reset]
    out.append(
        f"{pal.green}{pal.bold}interface{pal.reset}: {pal.green}{device.name}{pal.reset}\n"
    )
    if DeviceFlag.HAS_PUBLIC_KEY in device.flags:
        out.append(f"  {pal.bold}public key{pal.reset}: {key_to_base64(device.public_key)}\n")
    if DeviceFlag.HAS_PRIVATE_KEY in device.flags:
        out.append(
            f"  {pal.bold}private key{pal.reset}: {masked_key(device.private_key, environ)}\n"
        )
    if device.listen_port:
        out.append(f"  {pal.bold}listening port{pal.reset}: {device.listen_port}\n")
    if device.fwmark:
        out.append(f"  {pal.bold}fwmark{pal.reset}: 0x{device.fwmark:x}\n")

    peers = sort_peers(device.peers)
    if peers:
        out.append("\n")
    for index, peer in enumerate(peers):
        out.append(
            f"{pal.yellow}{pal.bold}peer{pal.reset}: "
            f"{pal.yellow}{key_to_base64(peer.public_key)}{pal.reset}\n"
        )
        if PeerFlag.HAS_PRESHARED_KEY in peer.flags:
            out.append(
                f"  {pal.bold}preshared key{pal.reset}: "
                f"{masked_key(peer.preshared_key, environ)}\n"
            )
        if peer.endpoint is not None:
            out.append(f"  {pal.bold}endpoint{pal.reset}: {peer.endpoint.format()}\n")
        out.append(f"  {pal.bold}allowed ips{pal.reset}: ")
        if peer.allowed_ips:
            out.append(
                ", ".join(
                    f"{aip.address}{pal.cyan}/{pal.reset}{aip.cidr}" for aip in peer.allowed_ips
                )
                + "\n"
            )
        else:
            out.append("(none)\n")
        if peer.last_handshake_sec:
            out.append(
                f"  {pal.bold}latest handshake{pal.reset}: "
                f"{ago(peer.last_handshake_sec, now, color)}\n"
            )
        if peer.rx_bytes or peer.tx_bytes:
            out.append(
                f"  {pal.bold}transfer{pal.reset}: "
                f"{format_bytes(peer.rx_bytes, color)} received, "
                f"{format_bytes(peer.tx_bytes, color)} sent\n"
            )
        if peer.persistent_keepalive_interval:
            out.append(
                f"  {pal.bold}persistent keepalive{pal.reset}: "
                f"{every(peer.persistent_keepalive_interval, color)}\n"
            )
        if index + 1 < len(peers):
            out.append("\n")
    return "".join(out)


def _prefix(device: Device, with_interface: bool) -> str:
    return f"{device.name}\t" if with_interface else ""


def _endpoint_text(peer: Peer) -> str:
    return peer.endpoint.format() if peer.endpoint is not None else "(none)"


def dump_print(device: Device, with_interface: bool = False) -> str:
    """Render a device as tab-separated lines, one for the interface and one per peer."""
    prefix = _prefix(device, with_interface)
    lines = [
        prefix
        + "\t".join(
            (
                _maybe_key(device.private_key, DeviceFlag.HAS_PRIVATE_KEY in device.flags),
                _maybe_key(device.public_key, DeviceFlag.HAS_PUBLIC_KEY in device.flags),
                str(device.listen_port),
                _fwmark(device),
            )
        )
    ]
    for peer in device.peers:
        allowed = ",".join(aip.format() for aip in peer.allowed_ips) or "(none)"
        keepalive = (
            str(peer.persistent_keepalive_interval) if peer.persistent_keepalive_interval else "off"
        )
        lines.append(
            prefix
            + "\t".join(
                (
                    key_to_base64(peer.public_key),
                    _maybe_key(peer.preshared_key, PeerFlag.HAS_PRESHARED_KEY in peer.flags),
                    _endpoint_text(peer),
                    allowed,
                    str(peer.last_handshake_sec),
                    str(peer.rx_bytes),
                    str(peer.tx_bytes),
                    keepalive,
                )
            )
        )
    return "".join(line + "\n" for line in lines)


def ugly_print(device: Device, param: str, with_interface: bool = False) -> str:
    """Render one field of a device in a form meant for scripts."""
    prefix = _prefix(device, with_interface)
    if param == "public-key":
        return f"{prefix}{_maybe_key(device.public_key, DeviceFlag.HAS_PUBLIC_KEY in device.flags)}\n"
    if param == "private-key":
        return (
            f"{prefix}{_maybe_key(device.private_key, DeviceFlag.HAS_PRIVATE_KEY in device.flags)}\n"
        )
    if param == "listen-port":
        return f"{prefix}{device.listen_port}\n"
    if param == "fwmark":
        return f"{prefix}{_fwmark(device)}\n"
    if param == "dump":
        return dump_print(device, with_interface)

    def row(peer: Peer) -> str:
        key = key_to_base64(peer.public_key)
        if param == "endpoints":
            return f"{key}\t{_endpoint_text(peer)}"
        if param == "allowed-ips":
            return f"{key}\t" + (" ".join(a.format() for a in peer.allowed_ips) or "(none)")
        if param == "latest-handshakes":
            return f"{key}\t{peer.last_handshake_sec}"
        if param == "transfer":
            return f"{key}\t{peer.rx_bytes}\t{peer.tx_bytes}"
        if param == "persistent-keepalive":
            interval = peer.persistent_keepalive_interval
            return f"{key}\t{interval if interval else 'off'}"
        if param == "preshared-keys":
            return f"{key}\t" + _maybe_key(
                peer.preshared_key, PeerFlag.HAS_PRESHARED_KEY in peer.flags
            )
        return key

    if param not in {
        "endpoints",
        "allowed-ips",
        "latest-handshakes",
        "transfer",
        "persistent-keepalive",
        "preshared-keys",
        "peers",
    }:
        raise ShowError(f"Invalid parameter: `{param}'")
    return "".join(f"{prefix}{row(peer)}\n" for peer in device.peers)


def format_showconf(device: Device) -> str:
    """Render a device as a configuration file."""
    out = ["[Interface]\n"]
    if device.listen_port:
        out.append(f"ListenPort = {device.listen_port}\n")
    if device.fwmark:
        out.append(f"FwMark = 0x{device.fwmark:x}\n")
    if DeviceFlag.HAS_PRIVATE_KEY in device.flags:
        out.append(f"PrivateKey = {key_to_base64(device.private_key)}\n")
    out.append("\n")
    for index, peer in enumerate(device.peers):
        out.append(f"[Peer]\nPublicKey = {key_to_base64(peer.public_key)}\n")
        if PeerFlag.HAS_PRESHARED_KEY in peer.flags:
            out.append(f"PresharedKey = {key_to_base64(peer.preshared_key)}\n")
        if peer.allowed_ips:
            out.append("AllowedIPs = " + ", ".join(a.format() for a in peer.allowed_ips) + "\n")
        if peer.endpoint is not None:
            out.append(f"Endpoint = {peer.endpoint.format()}\n")
        if peer.persistent_keepalive_interval:
            out.append(f"PersistentKeepalive = {peer.persistent_keepalive_interval}\n")
        if index + 1 < len(device.peers):
            out.append("\n")
    return "".join(out)