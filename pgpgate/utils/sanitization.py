"""Utilities for sanitizing engine output and command lines before display.

Anything captured from the engine's diagnostic stream is attacker-influenced:
signer user IDs and claimed names come straight from the message or key being
checked. These helpers strip everything that can drive a terminal (escape
sequences, carriage-return overwrites, bidi overrides) so the text is safe to
render or log.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

# Unicode bidirectional marks, embeddings, overrides and isolates.
_BIDI_CHARS = "\u200e\u200f\u202a-\u202e\u2066-\u2069"

# C0 controls except TAB/LF, DEL, and C1 controls (includes 8-bit CSI 0x9b).
_UNSAFE_MULTILINE_RE = re.compile(f"[\x00-\x08\x0b-\x1f\x7f-\x9f{_BIDI_CHARS}]")
_UNSAFE_SINGLE_LINE_RE = re.compile(f"[\x00-\x1f\x7f-\x9f{_BIDI_CHARS}]")

SENSITIVE_FLAG_KEYS = {
    "--passphrase",
    "--passphrase-file",
}


def sanitize_text(text: str, *, keep_newlines: bool = False) -> str:
    """Remove control and escape characters from ``text``.

    Args:
        text: Untrusted text, typically captured from the engine's stderr
        keep_newlines: Preserve ``\\n`` and ``\\t`` for multi-line excerpts

    Returns:
        Text containing no ESC, CR, other C0/C1 controls, DEL, or bidi
        formatting characters.
    """
    pattern = _UNSAFE_MULTILINE_RE if keep_newlines else _UNSAFE_SINGLE_LINE_RE
    return pattern.sub("", text)


def sanitize_identity(identity: str) -> str:
    """Sanitize a signer or recipient identity for single-line display."""
    return sanitize_text(identity)


def sanitize_argv(argv: Iterable[str]) -> str:
    """Return a printable command string with passphrase values masked.

    Rules:
    - Mask the value following any flag in SENSITIVE_FLAG_KEYS.
    - Generic handling for ``--*passphrase*`` flags, inline (``--flag=value``)
      or as a separate token.
    - Preserve original ordering so the command stays recognisable.
    """
    items = [str(part) for part in argv]
    sanitized: list[str] = []
    i = 0
    while i < len(items):
        token = items[i]
        sanitized.append(sanitize_identity(token))
        flag_lower = token.lower().split("=", 1)[0]
        if flag_lower.startswith("--") and (
            flag_lower in SENSITIVE_FLAG_KEYS or "passphrase" in flag_lower
        ):
            if "=" in token:
                flag, _sep, _value = token.partition("=")
                sanitized[-1] = f"{flag}=***"
            elif i + 1 < len(items):
                sanitized.append("***")
                i += 1
        i += 1
    return " ".join(sanitized)
