"""GnuPG subprocess adapter: decrypt, detached verify, and inline verify."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import SecretStr

from pgpgate.app.ports.engine import CryptoEnginePort, Status
from pgpgate.gpg.diagnostics import status_from_diagnostics
from pgpgate.utils.process import ProcessResult, run_process
from pgpgate.utils.sanitization import sanitize_text
from pgpgate.utils.tempfiles import private_workdir, write_private_file

if TYPE_CHECKING:
    from pgpgate.config import Settings

logger = logging.getLogger(__name__)

BASE_ARGS = ("--batch", "--no-tty")

# Verification has finished and the verdict is in the diagnostics: 0 for a
# good signature, 1 for a bad one.
VERIFY_RETURNCODES = frozenset({0, 1})
DECRYPT_RETURNCODES = frozenset({0})

SIGNATURE_TEMPDIR_PREFIX = "gpg-signature"


@dataclass(frozen=True)
class GPGEngineAdapter(CryptoEnginePort):
    """Engine handle around a GnuPG binary.

    Immutable after construction. Each call owns its own process, buffers,
    and temporary directory, so one adapter may be shared across threads.
    """

    binary: str = "gpg"
    passphrase: SecretStr | None = field(default=None, repr=False)
    """Loopback passphrase for automated/test use only. Never logged."""

    keep_sig_tempfiles: bool = False
    """Leave detached-verify temp files on disk for debugging."""

    timeout_seconds: float | None = None
    force_c_locale: bool = True
    temp_dir: Path | None = None

    def __post_init__(self) -> None:
        if isinstance(self.passphrase, str):
            object.__setattr__(self, "passphrase", SecretStr(self.passphrase))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "GPGEngineAdapter":
        """Construct the adapter from application settings."""
        return cls(
            binary=settings.gpg_binary,
            passphrase=settings.gpg_passphrase,
            keep_sig_tempfiles=settings.keep_sig_tempfiles,
            timeout_seconds=settings.gpg_timeout_seconds,
            force_c_locale=settings.force_c_locale,
            temp_dir=settings.temp_dir,
        )

    def decrypt(
        self,
        content: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> tuple[bytes, Status]:
        args = [self.binary, *BASE_ARGS]
        if self.passphrase is not None and self.passphrase.get_secret_value():
            args.extend(
                [
                    "--passphrase",
                    self.passphrase.get_secret_value(),
                    "--pinentry-mode",
                    "loopback",
                ]
            )
        payload = _to_bytes(content)
        logger.debug("Decrypting %d bytes", len(payload))

        result = self._run(
            args,
            input=payload,
            expected=DECRYPT_RETURNCODES,
            cancel=cancel,
            timeout=timeout,
        )
        status = status_from_diagnostics(result.diagnostics, require_verdict=False)
        return result.stdout, status

    def verify(
        self,
        content: str | bytes,
        signature: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
        keep_tempfiles: bool | None = None,
    ) -> Status:
        keep = self.keep_sig_tempfiles if keep_tempfiles is None else keep_tempfiles
        with private_workdir(
            prefix=SIGNATURE_TEMPDIR_PREFIX,
            keep=keep,
            base_dir=self.temp_dir,
        ) as workdir:
            logger.info("Checking signature with %s", workdir)
            data_path = workdir / "data"
            sig_path = workdir / "data.gpg"
            payload = _to_bytes(content)
            logger.debug("Signed content is %d bytes", len(payload))
            write_private_file(data_path, payload)
            write_private_file(sig_path, _to_bytes(signature))

            return self._check_signature(
                ["--verify", str(sig_path), str(data_path)],
                input=None,
                cancel=cancel,
                timeout=timeout,
            )

    def verify_inline(
        self,
        content: str | bytes,
        *,
        cancel: threading.Event | None = None,
        timeout: float | None = None,
    ) -> Status:
        return self._check_signature(
            ["--verify", "-"],
            input=_to_bytes(content),
            cancel=cancel,
            timeout=timeout,
        )

    def version(self, *, timeout: float | None = 10.0) -> str:
        """Return the first line of ``gpg --version``, sanitized."""
        result = self._run(
            [self.binary, "--version"],
            input=None,
            expected=frozenset({0}),
            cancel=None,
            timeout=timeout,
        )
        lines = result.stdout.decode("utf-8", errors="replace").splitlines()
        return sanitize_text(lines[0]) if lines else "unknown"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _check_signature(
        self,
        verify_args: list[str],
        *,
        input: bytes | None,
        cancel: threading.Event | None,
        timeout: float | None,
    ) -> Status:
        """Shared path for detached and inline verification."""
        result = self._run(
            [self.binary, *BASE_ARGS, *verify_args],
            input=input,
            expected=VERIFY_RETURNCODES,
            cancel=cancel,
            timeout=timeout,
        )
        return status_from_diagnostics(result.diagnostics, require_verdict=True)

    def _run(
        self,
        args: list[str],
        *,
        input: bytes | None,
        expected: frozenset[int],
        cancel: threading.Event | None,
        timeout: float | None,
    ) -> ProcessResult:
        return run_process(
            args,
            input=input,
            expected_returncodes=expected,
            timeout=timeout if timeout is not None else self.timeout_seconds,
            cancel=cancel,
            env=self._child_env(),
        )

    def _child_env(self) -> dict[str, str] | None:
        if not self.force_c_locale:
            return None
        env = dict(os.environ)
        env["LC_ALL"] = "C"
        env["LANGUAGE"] = "C"
        return env


def _to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")
