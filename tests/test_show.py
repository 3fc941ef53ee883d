import ipaddress
import re

import pytest

from wgtool.config import ConfigReader
from wgtool.encoding import key_to_base64
from wgtool.model import AllowedIP, Device, DeviceFlag, Endpoint, Peer, PeerFlag
from wgtool.show import (
    ShowError,
    ago,
    dump_print,
    every,
    format_bytes,
    format_showconf,
    masked_key,
    pretty_print,
    pretty_time,
    sort_peers,
    ugly_print,
)

PRIV = bytes(range(32))
PUB_A = bytes(range(1, 33))
PUB_B = bytes(range(2, 34))
PSK = bytes(range(3, 35))

_ESC = re.compile(r"\x1b\[[0-9;]*m")


def _peer(key, sec=0, nsec=0, **kwargs):
    return Peer(
        public_key=key,
        last_handshake_sec=sec,
        last_handshake_nsec=nsec,
        flags=PeerFlag.HAS_PUBLIC_KEY,
        **kwargs,
    )


def _device():
    a = _peer(
        PUB_A,
        endpoint=Endpoint(ipaddress.ip_address("127.0.0.1"), 51820),
        allowed_ips=[AllowedIP(ipaddress.ip_address("10.0.0.0"), 8)],
        persistent_keepalive_interval=25,
        preshared_key=PSK,
    )
    a.flags |= PeerFlag.HAS_PRESHARED_KEY
    b = _peer(PUB_B)
    return Device(
        name="wg0",
        flags=DeviceFlag.HAS_PRIVATE_KEY,
        private_key=PRIV,
        listen_port=51820,
        fwmark=0x1234,
        peers=[a, b],
    )


def test_sort_peers_recent_first_and_never_last():
    p1 = _peer(PUB_A, 10)
    p2 = _peer(PUB_B, 20)
    p3 = _peer(PSK)
    p4 = _peer(PRIV, 20, 5)
    assert sort_peers([p1, p2, p3, p4]) == [p4, p2, p1, p3]


def test_pretty_time_composite():
    assert pretty_time(3661) == "1 hour, 1 minute, 1 second"


def test_pretty_time_zero_and_plural():
    assert pretty_time(0) == ""
    assert "seconds" in pretty_time(2)
    assert "seconds" not in pretty_time(1)


def test_pretty_time_color_strips_to_plain():
    colored = pretty_time(100000, color=True)
    assert "\x1b[" in colored
    assert _ESC.sub("", colored) == pretty_time(100000)


def test_ago_cases():
    assert ago(1000, now=1000) == "Now"
    assert "System clock wound backward" in ago(1005, now=1000)
    assert ago(999, now=1000) == pretty_time(1) + " ago"


def test_every():
    assert every(25) == "every " + pretty_time(25)


def test_format_bytes():
    assert format_bytes(1536) == "1.50 KiB"
    assert format_bytes(100) == f"{100} B"
    assert format_bytes(3 * 1024**4).endswith("TiB")
    assert format_bytes(5 * 1024**2).endswith("MiB")


def test_masked_key():
    assert masked_key(PRIV, environ={}) == "(hidden)"
    assert masked_key(PRIV, environ={"WG_HIDE_KEYS": "never"}) == key_to_base64(PRIV)


def test_dump_print_fields():
    lines = dump_print(_device()).splitlines()
    assert len(lines) == 3
    iface = lines[0].split("\t")
    assert iface == [key_to_base64(PRIV), "(none)", "51820", "0x1234"]
    peer_a = lines[1].split("\t")
    assert peer_a[0] == key_to_base64(PUB_A)
    assert peer_a[1] == key_to_base64(PSK)
    assert peer_a[2] == "127.0.0.1:51820"
    assert peer_a[3] == "10.0.0.0/8"
    assert peer_a[-1] == "25"
    peer_b = lines[2].split("\t")
    assert peer_b[1:4] == ["(none)", "(none)", "(none)"]
    assert peer_b[-1] == "off"


def test_dump_print_with_interface():
    for line in dump_print(_device(), with_interface=True).splitlines():
        assert line.startswith("wg0\t")


def test_ugly_print_invalid_param():
    with pytest.raises(ShowError):
        ugly_print(_device(), "bogus")


def test_ugly_print_fields():
    device = _device()
    assert ugly_print(device, "fwmark") == "0x1234\n"
    assert ugly_print(Device(), "fwmark") == "off\n"
    assert ugly_print(device, "listen-port", with_interface=True) == "wg0\t51820\n"
    assert ugly_print(device, "peers") == f"{key_to_base64(PUB_A)}\n{key_to_base64(PUB_B)}\n"
    assert ugly_print(device, "public-key") == "(none)\n"
    assert ugly_print(device, "dump") == dump_print(device)


def test_ugly_print_allowed_ips_and_keepalive():
    device = _device()
    lines = ugly_print(device, "allowed-ips").splitlines()
    assert lines[0] == f"{key_to_base64(PUB_A)}\t10.0.0.0/8"
    assert lines[1] == f"{key_to_base64(PUB_B)}\t(none)"
    keepalive = ugly_print(device, "persistent-keepalive").splitlines()
    assert keepalive[1].endswith("\toff")


def test_pretty_print_plain():
    text = pretty_print(_device(), environ={}, now=0)
    assert text.startswith("interface: wg0\n")
    assert "  private key: (hidden)\n" in text
    assert "  allowed ips: (none)\n" in text
    assert "  persistent keepalive: " + every(25) + "\n" in text


def test_pretty_print_orders_by_handshake():
    device = Device(name="wg0", peers=[_peer(PUB_A, 10), _peer(PUB_B, 50)])
    text = pretty_print(device, environ={}, now=100)
    assert text.index(key_to_base64(PUB_B)) < text.index(key_to_base64(PUB_A))
    assert ago(50, now=100) in text


def test_pretty_print_color_strips_to_plain():
    device = _device()
    colored = pretty_print(device, color=True, environ={}, now=0)
    assert _ESC.sub("", colored) == pretty_print(device, environ={}, now=0)


def test_showconf_round_trip():
    device = _device()
    text = format_showconf(device)
    assert text.startswith("[Interface]\n")
    reader = ConfigReader(append=False)
    reader.read_lines(text.splitlines())
    parsed = reader.finish()
    assert parsed.private_key == PRIV
    assert parsed.listen_port == 51820
    assert parsed.fwmark == 0x1234
    assert [p.public_key for p in parsed.peers] == [PUB_A, PUB_B]
    assert parsed.peers[0].preshared_key == PSK
    assert parsed.peers[0].allowed_ips == device.peers[0].allowed_ips
    assert parsed.peers[0].endpoint == device.peers[0].endpoint
    assert parsed.peers[0].persistent_keepalive_interval == 25
    assert parsed.peers[1].allowed_ips == []


def test_showconf_ipv6_endpoint_bracketed():
    peer = _peer(PUB_A, endpoint=Endpoint(ipaddress.ip_address("::1"), 51820))
    text = format_showconf(Device(peers=[peer]))
    assert "Endpoint = [::1]:51820\n" in text