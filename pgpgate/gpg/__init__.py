"""GnuPG diagnostics parsing and boundary errors."""

from pgpgate.gpg.diagnostics import (
    DiagnosticClaims,
    SignatureClaim,
    build_status,
    parse_diagnostics,
    status_from_diagnostics,
)
from pgpgate.gpg.errors import (
    CancellationError,
    EngineError,
    ExecutionError,
    IndeterminateResultError,
    LaunchError,
    ResourceError,
)

__all__ = [
    "CancellationError",
    "DiagnosticClaims",
    "EngineError",
    "ExecutionError",
    "IndeterminateResultError",
    "LaunchError",
    "ResourceError",
    "SignatureClaim",
    "build_status",
    "parse_diagnostics",
    "status_from_diagnostics",
]
