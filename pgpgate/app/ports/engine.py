"""Crypto engine port interface for decryption and signature verification."""

from __future__ import annotations

import threading
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Status(BaseModel):
    """Outcome of a decrypt or verify operation.

    All strings have been sanitized before the model is built.
    """

    model_config = ConfigDict(frozen=True)

    signer: str | None = None
    """Identity the diagnostics attribute the signature to (good or bad)."""

    signature_valid: bool = False
    """True only when the engine reported a good signature."""

    encrypted_for: list[str] = Field(default_factory=list)
    """Recipient identities, in the order the engine announced them."""

    warnings: list[str] = Field(default_factory=list)
    """Reserved for non-fatal advisories; currently always empty."""

    @model_validator(mode="after")
    def _valid_signature_needs_signer(self) -> "Status":
        if self.signature_valid and not self.signer:
            raise ValueError("signature_valid requires a non-empty signer")
        return self


class CryptoEnginePort(Protocol):
    """Port interface for an external decrypt/verify engine.

    Adapters: GnuPG subprocess.

    Side effects:
    - Spawns one engine process per call
    - ``verify`` writes two private temporary files for the call's duration
    """

    def decrypt(
        self,
        content: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> tuple[bytes, Status]:
        """Decrypt ``content``.

        Args:
            content: Encrypted message (armored or binary)
            cancel: Event that aborts the call when set
            timeout: Deadline in seconds, overriding the adapter default

        Returns:
            Plaintext bytes and the Status parsed from diagnostics
        """
        ...

    def verify(
        self,
        content: str | bytes,
        signature: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        keep_tempfiles: bool | None = None,
    ) -> Status:
        """Verify a detached ``signature`` over ``content``.

        Returns:
            Status with a good or bad verdict
        """
        ...

    def verify_inline(
        self,
        content: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> Status:
        """Verify self-contained signed ``content``.

        Returns:
            Status with a good or bad verdict
        """
        ...
