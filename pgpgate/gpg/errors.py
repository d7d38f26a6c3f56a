"""Errors raised at the engine boundary.

Every error carries ``diagnostics``: the engine's stderr excerpt, already
passed through :func:`pgpgate.utils.sanitization.sanitize_text`, so callers can
show it to an operator without further cleaning.
"""

from __future__ import annotations

from pathlib import Path

from pgpgate.utils.sanitization import sanitize_text

_MAX_DIAGNOSTIC_CHARS = 4000


def diagnostic_excerpt(text: str) -> str:
    """Sanitize and bound a diagnostic excerpt for inclusion in an error."""
    cleaned = sanitize_text(text, keep_newlines=True).strip()
    if len(cleaned) > _MAX_DIAGNOSTIC_CHARS:
        cleaned = cleaned[:_MAX_DIAGNOSTIC_CHARS] + "\n[... truncated]"
    return cleaned


class EngineError(RuntimeError):
    """Base class for failures talking to the external engine."""

    def __init__(self, message: str, *, diagnostics: str = "") -> None:
        self.diagnostics = diagnostic_excerpt(diagnostics)
        self.message = sanitize_text(message)
        if self.diagnostics:
            super().__init__(f"{self.message}\n{self.diagnostics}")
        else:
            super().__init__(self.message)


class LaunchError(EngineError):
    """Raised when the engine binary cannot be started."""

    def __init__(self, message: str, *, binary: str, diagnostics: str = "") -> None:
        super().__init__(message, diagnostics=diagnostics)
        self.binary = binary


class ExecutionError(EngineError):
    """Raised when the engine exits outside the expected status set."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None,
        diagnostics: str = "",
    ) -> None:
        super().__init__(message, diagnostics=diagnostics)
        self.returncode = returncode


class CancellationError(EngineError):
    """Raised when the caller cancelled the call or its deadline expired.

    The engine process has been killed and reaped by the time this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        deadline_expired: bool = False,
        diagnostics: str = "",
    ) -> None:
        super().__init__(message, diagnostics=diagnostics)
        self.deadline_expired = deadline_expired


class IndeterminateResultError(EngineError):
    """Raised when a verification finished but reported no verdict."""


class ResourceError(EngineError):
    """Raised when temporary files cannot be created, written, or removed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
