"""Pytest configuration for the Booker test suite.

Environment defaults are applied before any ``booker`` module is imported so
the cached settings singleton points at SQLite and signs cookies with a test
key. Individual tests still override variables through ``monkeypatch``.
"""

from __future__ import annotations

import os

from tests import _ensure_repo_on_path

_ensure_repo_on_path()

os.environ.setdefault("USE_SQLITE", "true")
os.environ.setdefault("SESSION_SECRET", "booker-test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
