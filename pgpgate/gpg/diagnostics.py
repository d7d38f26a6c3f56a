"""Parse GnuPG's human-readable diagnostic stream into structured claims.

Recognised line formats (after ``LC_ALL=C``)::

    gpg: Good signature from "Alice <alice@example.com>" [ultimate]
    gpg: BAD signature from "Eve <eve@example.com>" [unknown]
    gpg: encrypted with rsa3072 key, ID 0123456789ABCDEF, created 2020-01-01
          "Bob <bob@example.com>"

Nothing else in the stream is interpreted. Parsing is a pure function so it
can be exercised against captured fixtures without spawning a process.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from pgpgate.app.ports.engine import Status
from pgpgate.gpg.errors import IndeterminateResultError
from pgpgate.utils.sanitization import sanitize_identity

SIGNATURE_RE = re.compile(r'^gpg: (Good|BAD) signature from "(.*)"', re.MULTILINE)
ENCRYPTED_RE = re.compile(
    r'^gpg: encrypted with[^\n]+\n[ \t]*"([^\n]+)"[ \t\r]*(?:\n|$)',
    re.MULTILINE,
)


@dataclass(frozen=True, slots=True)
class SignatureClaim:
    """One good/bad signature announcement."""

    identity: str
    good: bool


@dataclass(frozen=True, slots=True)
class DiagnosticClaims:
    """Everything the parser extracted from one invocation's diagnostics."""

    signatures: tuple[SignatureClaim, ...] = ()
    recipients: tuple[str, ...] = ()

    @property
    def has_verdict(self) -> bool:
        return bool(self.signatures)


def parse_diagnostics(text: str) -> DiagnosticClaims:
    """Extract signature and recipient claims from ``text``.

    Claims are returned in the order the engine emitted them and every
    identity has already been sanitized.
    """
    signatures = tuple(
        SignatureClaim(identity=sanitize_identity(match.group(2)), good=match.group(1) == "Good")
        for match in SIGNATURE_RE.finditer(text)
    )
    recipients = tuple(
        sanitize_identity(match.group(1)).strip("\t ")
        for match in ENCRYPTED_RE.finditer(text)
    )
    return DiagnosticClaims(signatures=signatures, recipients=recipients)


def build_status(
    claims: DiagnosticClaims,
    *,
    diagnostics: str = "",
    require_verdict: bool = False,
) -> Status:
    """Turn parsed claims into a :class:`Status`.

    The first signature claim names the signer. The signature only counts as
    valid when that claim is good, its identity is non-empty, and no BAD
    claim appears anywhere in the stream.

    Args:
        claims: Output of :func:`parse_diagnostics`
        diagnostics: Raw stream, used for the error message only
        require_verdict: Raise when no signature claim was found

    Raises:
        IndeterminateResultError: ``require_verdict`` and no claim found
    """
    if not claims.has_verdict:
        if require_verdict:
            raise IndeterminateResultError(
                "Engine reported neither a good nor a bad signature",
                diagnostics=diagnostics,
            )
        return Status(encrypted_for=list(claims.recipients))

    first = claims.signatures[0]
    any_bad = any(not claim.good for claim in claims.signatures)
    return Status(
        signer=first.identity,
        signature_valid=first.good and not any_bad and bool(first.identity),
        encrypted_for=list(claims.recipients),
    )


def status_from_diagnostics(text: str, *, require_verdict: bool = False) -> Status:
    """Parse ``text`` and build the resulting :class:`Status` in one step."""
    return build_status(
        parse_diagnostics(text),
        diagnostics=text,
        require_verdict=require_verdict,
    )
