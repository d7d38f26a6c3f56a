"""Subprocess invocation with exit-status classification and cancellation.

The engine's exit status is only a gate: it tells the caller whether it is
safe to go on and parse diagnostics. This module turns the raw process
outcome into either a :class:`ProcessResult` (status in the expected set) or
one of the typed errors from :mod:`pgpgate.gpg.errors`.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass

from pgpgate.gpg.errors import CancellationError, ExecutionError, LaunchError
from pgpgate.utils.sanitization import sanitize_argv

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.05

# Upper bound on draining pipes after a kill.
KILL_DRAIN_TIMEOUT = 1.0

_PROCESS_GROUPS = os.name == "posix"


@dataclass(frozen=True, slots=True)
class ProcessResult:
    """Captured output of a process that exited with an expected status."""

    command: str
    """Display form of the command line (secrets masked)."""

    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def diagnostics(self) -> str:
        """Decoded diagnostic stream; invalid UTF-8 becomes U+FFFD."""
        return self.stderr.decode("utf-8", errors="replace")


def run_process(
    argv: Sequence[str],
    *,
    input: bytes | None = None,
    expected_returncodes: Collection[int] = (0,),
    timeout: float | None = None,
    cancel: threading.Event | None = None,
    env: Mapping[str, str] | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> ProcessResult:
    """Run ``argv`` to completion and classify how it terminated.

    Args:
        argv: Command line; ``argv[0]`` is the binary
        input: Bytes for stdin. ``None`` connects stdin to ``/dev/null``
        expected_returncodes: Exit statuses that mean "proceed to parsing"
        timeout: Deadline in seconds, ``None`` for no deadline
        cancel: Event that aborts the call when set
        env: Environment for the child, ``None`` to inherit
        poll_interval: Granularity at which ``cancel`` is observed

    Returns:
        ProcessResult with captured stdout and stderr

    Raises:
        LaunchError: The process could not be started
        ExecutionError: Unexpected exit status or death by signal
        CancellationError: ``cancel`` fired or ``timeout`` expired; the
            process and its process group have been killed and reaped
    """
    command = sanitize_argv(argv)
    binary = str(argv[0])

    if cancel is not None and cancel.is_set():
        raise CancellationError(f"Cancelled before starting {command}")

    logger.debug("Running %s", command)
    try:
        proc = subprocess.Popen(
            list(argv),
            stdin=subprocess.PIPE if input is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(env) if env is not None else None,
            shell=False,
            close_fds=True,
            start_new_session=_PROCESS_GROUPS,
        )
    except OSError as exc:
        raise LaunchError(
            f"Failed to start {binary!r}: {exc.strerror or exc}",
            binary=binary,
        ) from exc

    stdout, stderr = _communicate(
        proc,
        command=command,
        input=input,
        timeout=timeout,
        cancel=cancel,
        poll_interval=poll_interval,
    )
    returncode = proc.returncode
    logger.debug("Completed %s (status %s)", command, returncode)

    if returncode in expected_returncodes:
        return ProcessResult(
            command=command,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
        )

    diagnostics = stderr.decode("utf-8", errors="replace")
    if returncode is None or returncode < 0:
        raise ExecutionError(
            f"{binary} terminated abnormally ({_describe_termination(returncode)})",
            returncode=returncode,
            diagnostics=diagnostics,
        )
    raise ExecutionError(
        f"{binary} failed with exit status {returncode} "
        f"(expected {sorted(expected_returncodes)})",
        returncode=returncode,
        diagnostics=diagnostics,
    )


def _communicate(
    proc: subprocess.Popen[bytes],
    *,
    command: str,
    input: bytes | None,
    timeout: float | None,
    cancel: threading.Event | None,
    poll_interval: float,
) -> tuple[bytes, bytes]:
    """Exchange data with ``proc`` in short slices so cancellation is prompt."""
    deadline = time.monotonic() + timeout if timeout is not None else None
    pending_input = input
    while True:
        if cancel is not None and cancel.is_set():
            _kill(proc)
            raise CancellationError(f"Cancelled while running {command}")

        slice_seconds = poll_interval if cancel is not None else None
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                _kill(proc)
                raise CancellationError(
                    f"Deadline of {timeout}s expired while running {command}",
                    deadline_expired=True,
                )
            slice_seconds = remaining if slice_seconds is None else min(slice_seconds, remaining)

        try:
            # Input is only accepted on the first call. Retries resume the
            # pending write and keep output already read.
            stdout, stderr = proc.communicate(input=pending_input, timeout=slice_seconds)
        except subprocess.TimeoutExpired:
            pending_input = None
            continue
        except BaseException:
            _kill(proc)
            raise
        return stdout or b"", stderr or b""


def _kill(proc: subprocess.Popen[bytes]) -> None:
    """Kill ``proc`` with everything it spawned and reap it.

    The child leads its own session, so killing the process group also takes
    down helpers a wrapper script forked instead of exec'ing. Draining the
    pipes is bounded; descendants that escaped the group cannot hold the
    caller past ``KILL_DRAIN_TIMEOUT``.
    """
    try:
        if _PROCESS_GROUPS:
            os.killpg(proc.pid, signal.SIGKILL)
        else:  # pragma: no cover - non-POSIX
            proc.kill()
    except ProcessLookupError:  # pragma: no cover - already gone
        pass
    try:
        proc.communicate(timeout=KILL_DRAIN_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning("Pipes of killed process %s still open; closing them", proc.pid)
        _close_pipes(proc)
        proc.wait()
    except (OSError, ValueError) as exc:  # pragma: no cover - pipes already closed
        logger.warning("Failed to drain killed process %s: %s", proc.pid, exc)
        proc.wait()


def _close_pipes(proc: subprocess.Popen[bytes]) -> None:
    for stream in (proc.stdin, proc.stdout, proc.stderr):
        if stream is None:
            continue
        try:
            stream.close()
        except OSError as exc:  # pragma: no cover - broken pipe on close
            logger.debug("Closing pipe of %s failed: %s", proc.pid, exc)


def _describe_termination(returncode: int | None) -> str:
    if returncode is None:
        return "no exit status"
    return f"killed by signal {-returncode}"
