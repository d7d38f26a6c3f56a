"""Concrete adapters wiring application ports to built-in implementations."""

from __future__ import annotations

from .gpg import GPGEngineAdapter

__all__ = [
    "GPGEngineAdapter",
]
