"""Message-level service choosing the right engine operation for a payload.

The service never looks inside the cryptography: it only decides, from the
OpenPGP armor header or the presence of a detached signature, which of the
port's three operations applies, and renders the resulting Status.
"""

from __future__ import annotations

import logging
import re
import threading
from typing import Literal

from pydantic import BaseModel

from pgpgate.app.ports.engine import CryptoEnginePort, Status
from pgpgate.utils.sanitization import sanitize_identity

logger = logging.getLogger(__name__)

MessageKind = Literal["encrypted", "signed-inline", "signed-detached", "plain"]

_SIGNED_ARMOR_RE = re.compile(rb"^-----BEGIN PGP SIGNED MESSAGE-----\r?$", re.MULTILINE)
_ENCRYPTED_ARMOR_RE = re.compile(rb"^-----BEGIN PGP MESSAGE-----\r?$", re.MULTILINE)


class MessageReport(BaseModel):
    """Result of opening one message."""

    kind: MessageKind
    plaintext: bytes | None = None
    status: Status | None = None


def detect_kind(content: bytes, *, has_signature: bool = False) -> MessageKind:
    """Classify ``content`` by its armor header.

    A detached signature always wins; otherwise a cleartext-signed header is
    checked before an encrypted one.
    """
    if has_signature:
        return "signed-detached"
    if _SIGNED_ARMOR_RE.search(content):
        return "signed-inline"
    if _ENCRYPTED_ARMOR_RE.search(content):
        return "encrypted"
    return "plain"


def describe_status(status: Status | None) -> str:
    """Render a one-line, terminal-safe summary of ``status``."""
    if status is None:
        return "No OpenPGP content"

    parts: list[str] = []
    if status.signer is None:
        parts.append("Not signed")
    elif status.signature_valid:
        parts.append(f"Good signature from {sanitize_identity(status.signer)}")
    else:
        parts.append(f"BAD signature from {sanitize_identity(status.signer)}")

    if status.encrypted_for:
        recipients = ", ".join(sanitize_identity(r) for r in status.encrypted_for)
        parts.append(f"encrypted for {recipients}")
    return "; ".join(parts)


class MessageService:
    """Open messages through a :class:`CryptoEnginePort`."""

    def __init__(self, engine: CryptoEnginePort) -> None:
        """Initialize message service.

        Args:
            engine: Decrypt/verify port
        """
        self.engine = engine

    def open_message(
        self,
        content: str | bytes,
        *,
        signature: str | bytes | None = None,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> MessageReport:
        """Decrypt or verify ``content`` as its kind requires.

        Args:
            content: Message body
            signature: Detached signature over ``content``, if any
            cancel: Event that aborts the engine call when set
            timeout: Deadline in seconds for the engine call

        Returns:
            MessageReport; ``plaintext`` is set only for encrypted messages
            and ``status`` is unset for plain messages

        Raises:
            EngineError: Any failure from the engine boundary, unchanged
        """
        raw = content.encode("utf-8") if isinstance(content, str) else content
        kind = detect_kind(raw, has_signature=signature is not None)
        logger.debug("Opening %s message (%d bytes)", kind, len(raw))

        if signature is not None:
            status = self.engine.verify(raw, signature, cancel=cancel, timeout=timeout)
            return MessageReport(kind=kind, status=status)
        if kind == "signed-inline":
            status = self.engine.verify_inline(raw, cancel=cancel, timeout=timeout)
            return MessageReport(kind=kind, status=status)
        if kind == "encrypted":
            plaintext, status = self.engine.decrypt(raw, cancel=cancel, timeout=timeout)
            return MessageReport(kind=kind, plaintext=plaintext, status=status)
        return MessageReport(kind=kind)
