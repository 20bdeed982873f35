"""Fetch, normalize and republish remotely hosted images."""

__version__ = "0.1.0"
