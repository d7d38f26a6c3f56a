"""Utility modules for common operations."""

from pgpgate.utils.sanitization import sanitize_argv, sanitize_identity, sanitize_text

__all__ = [
    "sanitize_argv",
    "sanitize_identity",
    "sanitize_text",
]
