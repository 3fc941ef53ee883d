"""Keys, configuration parsing and status rendering for WireGuard-style tunnel interfaces."""

__version__ = "1.0.20210914"