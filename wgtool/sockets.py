"""Discovery of userspace interfaces through their control sockets."""

from __future__ import annotations

import os
import socket
import stat

DEFAULT_SOCK_DIR = "/var/run/wireguard/"
SOCK_SUFFIX = ".sock"


def socket_path(iface: str, sock_dir: str = DEFAULT_SOCK_DIR) -> str:
    """Return the control socket path of an interface."""
    if "/" in iface:
        raise ValueError(f"interface name may not contain '/': {iface!r}")
    return os.path.join(sock_dir, iface + SOCK_SUFFIX)


def has_interface(iface: str, sock_dir: str = DEFAULT_SOCK_DIR) -> bool:
    """Return True if a live control socket exists for the interface.

    A socket whose owner has gone away is removed.
    """
    try:
        path = socket_path(iface, sock_dir)
        info = os.stat(path)
    except (ValueError, OSError):
        return False
    if not stat.S_ISSOCK(info.st_mode):
        return False
    try:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    except OSError:
        return False
    with sock:
        try:
            sock.connect(path)
        except ConnectionRefusedError:
            try:
                os.unlink(path)
            except OSError:
                pass
            return False
        except OSError:
            pass
    return True


def list_interfaces(sock_dir: str = DEFAULT_SOCK_DIR) -> list[str]:
    """Return the names of the interfaces with live control sockets in a directory."""
    try:
        entries = os.listdir(sock_dir)
    except FileNotFoundError:
        return []
    names = []
    for entry in entries:
        if len(entry) <= len(SOCK_SUFFIX) or not entry.endswith(SOCK_SUFFIX):
            continue
        name = entry[: -len(SOCK_SUFFIX)]
        if has_interface(name, sock_dir):
            names.append(name)
    return names