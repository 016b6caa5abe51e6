"""bsdadm - small OpenBSD administration utilities."""

__version__ = "0.3.0"
