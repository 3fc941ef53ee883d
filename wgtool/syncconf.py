"""Reconciling a configuration file's peers with the peers already running."""

from __future__ import annotations

from typing import Optional

from .model import Device, DeviceFlag, Peer, PeerFlag


def sync_peers(file_device: Device, runtime_device: Device) -> Device:
    """Add a removal for each running peer that the file does not mention.

    When both devices have peers, the file device stops replacing all peers.
    The running peers missing from the file are then placed at its front, each
    marked for removal. The file device is changed in place and returned.
    """
    if not file_device.peers or not runtime_device.peers:
        return file_device

    file_device.flags &= ~DeviceFlag.REPLACE_PEERS

    entries = sorted(
        [(bytes(peer.public_key), True) for peer in file_device.peers]
        + [(bytes(peer.public_key), False) for peer in runtime_device.peers]
    )
    following: list[Optional[tuple[bytes, bool]]] = [*entries[1:], None]

    removals = []
    for (key, from_file), nxt in zip(entries, following):
        if from_file:
            continue
        if nxt is None or not nxt[1] or nxt[0] != key:
            removals.append(Peer(public_key=key, flags=PeerFlag.REMOVE_ME))

    file_device.peers[:0] = reversed(removals)
    return file_device