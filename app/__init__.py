"""Uptime checks records API.

Users, session tokens and per-user uptime check definitions, each stored as a
JSON document on disk.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("uptime-checks-api")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
