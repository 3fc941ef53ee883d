# wgtool

A pure-Python library and small command for working with WireGuard-style
tunnel configuration. It has no dependencies outside the standard library.

It provides:

- Curve25519 (X25519) key agreement and public-key derivation
  (`wgtool.curve25519`),
- base64 and hex encoding of 32-byte keys (`wgtool.encoding`),
- a data model of devices, peers, endpoints and allowed IPs (`wgtool.model`),
- parsing of `[Interface]` / `[Peer]` configuration files and `set`-style
  argument lists (`wgtool.config`),
- rendering of device state as a human-readable listing, tab-separated dumps,
  single-field views and configuration text (`wgtool.show`),
- working out which running peers a configuration file drops
  (`wgtool.syncconf`),
- finding userspace interfaces by their control sockets (`wgtool.sockets`).

## Installation

```
pip install .
```

## Command line

```
wgtool genkey > private.key
wgtool pubkey < private.key > public.key
wgtool genpsk > preshared.key
wgtool version
wgtool help
```

- `genkey` prints a new random key in base64, clamped for use as a Curve25519
  private key. If standard output is a regular file that others can access, a
  warning is printed to standard error.
- `genpsk` prints a new random, unclamped key, for use as a preshared key.
- `pubkey` reads one base64 private key from standard input and prints the
  matching public key. Whitespace after the key is allowed; any other trailing
  character is an error.
- `version` (also `-v`, `--version`) prints the version; `help` (also `-h`,
  `--help`) lists the subcommands.

The command exits with status 0 on success and 1 on error. Its messages and
usage lines name the program as `wg`.

## Library use

### Keys

```python
from wgtool.curve25519 import generate_public, curve25519, clamp_secret
from wgtool.encoding import key_from_base64, key_to_base64, key_to_hex, key_from_hex, key_is_zero

with open("private.key") as handle:
    private = key_from_base64(handle.read().strip())
print(key_to_base64(generate_public(private)))
```

`key_from_base64` accepts only the canonical 44-character form and
`key_from_hex` only 64 hex digits; anything else raises `KeyFormatError`
(a `ValueError`). `curve25519(secret, basepoint)` clamps the secret before use.

### Configuration

```python
from wgtool.config import ConfigReader, read_command
from wgtool.show import format_showconf

reader = ConfigReader(append=False)
with open("wg0.conf") as handle:
    reader.read_lines(handle)
device = reader.finish()
print(format_showconf(device))
```

`ConfigReader` ignores comments (`#`) and all whitespace, matches keys without
regard to case, and understands `ListenPort`, `FwMark` and `PrivateKey` under
`[Interface]`, and `PublicKey`, `PresharedKey`, `Endpoint`, `AllowedIPs` and
`PersistentKeepalive` under `[Peer]`. With `append=False` the device is flagged
to replace existing peers and to set its private key, listen port and fwmark.
`finish()` fails if a peer has no public key.

`read_command` takes words such as
`["listen-port", "51820", "peer", <key>, "allowed-ips", "10.0.0.0/24"]`;
`private-key` and `preshared-key` take a path to a key file, and an empty key
file yields the all-zero key.

Errors raise `ConfigError` (a `ValueError`). An allowed IP with bits set below
its prefix length is accepted with a warning on standard error.

Endpoint host names are resolved with `socket.getaddrinfo`. Transient failures
are retried with a growing delay (from 1 second up to 20); the number of
retries comes from `WG_ENDPOINT_RESOLUTION_RETRIES` (default 15, `infinity`
for no limit), or from the `retries` argument of `parse_endpoint`.

### Display

`wgtool.show` returns strings and does not print them:

- `pretty_print(device, color=False, environ=None, now=None)` gives the
  interactive listing, peers ordered by most recent handshake; with
  `color=True` it adds ANSI colours.
- `dump_print(device, with_interface=False)` gives one tab-separated line for
  the interface and one per peer.
- `ugly_print(device, param, with_interface=False)` gives one field:
  `public-key`, `private-key`, `listen-port`, `fwmark`, `peers`,
  `preshared-keys`, `endpoints`, `allowed-ips`, `latest-handshakes`,
  `transfer`, `persistent-keepalive` or `dump`. Any other name raises
  `ShowError`.
- `format_showconf(device)` gives configuration-file text.

Private and preshared keys appear as `(hidden)` in `pretty_print` unless
`WG_HIDE_KEYS` is `never`.

### Synchronising peers and finding interfaces

`wgtool.syncconf.sync_peers(file_device, runtime_device)` adds, to the front
of the file device, a removal for every running peer the file does not list,
and clears its replace-peers flag, when both devices have peers.

`wgtool.sockets.list_interfaces(sock_dir)` returns the interfaces that have a
live `<name>.sock` control socket in the directory (default
`/var/run/wireguard/`); `has_interface` checks one and deletes a socket whose
owner no longer answers.

## What it does not do

The package does not read from or apply settings to a running interface. It
has no `show`, `showconf`, `set`, `setconf`, `addconf` or `syncconf` commands,
does not speak the control-socket protocol or any kernel interface, and does
not create or bring up interfaces. Its parsing and rendering functions work on
`Device` objects that you build or parse yourself.

## Development

```
pip install -e ".[test]"
pytest
```