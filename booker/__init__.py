"""Booker: session-authenticated favorite books backed by a catalog search."""

__version__ = "0.1.0"
