"""pgpgate CLI application with Typer."""

import logging
import shutil
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer

from pgpgate import __version__
from pgpgate.app.message_service import describe_status
from pgpgate.app.ports import Status
from pgpgate.bootstrap import bootstrap_application
from pgpgate.config import get_settings, set_settings
from pgpgate.gpg.errors import CancellationError, EngineError
from pgpgate.utils.cli_output import json_response

app = typer.Typer(
    name="pgpgate",
    help="Decrypt and verify OpenPGP messages through GnuPG with sanitized results",
    add_completion=False,
    no_args_is_help=True,
)

EXIT_BAD_SIGNATURE = 1
EXIT_ENGINE_ERROR = 2


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"pgpgate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    gpg: Annotated[
        str | None,
        typer.Option("--gpg", help="GnuPG binary to invoke (overrides PGPGATE_GPG_BINARY)"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", min=0.1, help="Deadline per engine call in seconds"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """pgpgate - OpenPGP decrypt/verify boundary."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    overrides: dict[str, Any] = {}
    if gpg is not None:
        overrides["gpg_binary"] = gpg
    if timeout is not None:
        overrides["gpg_timeout_seconds"] = timeout
    if overrides:
        set_settings(get_settings().model_copy(update=overrides))


def _read_input(source: str) -> bytes:
    if source == "-":
        return typer.get_binary_stream("stdin").read()
    path = Path(source)
    if not path.is_file():
        typer.secho(f"Input not found: {path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=EXIT_ENGINE_ERROR)
    return path.read_bytes()


def _single_stdin(*sources: str | None) -> None:
    if sum(1 for source in sources if source == "-") > 1:
        raise typer.BadParameter("Only one input may be read from stdin")


@contextmanager
def _engine_errors() -> Iterator[None]:
    """Translate boundary errors into a sanitized message and exit code."""
    try:
        yield
    except CancellationError as exc:
        typer.secho(f"Cancelled: {exc.message}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=EXIT_ENGINE_ERROR) from exc
    except EngineError as exc:
        typer.secho(f"Error: {exc.message}", fg=typer.colors.RED, err=True)
        if exc.diagnostics:
            typer.echo(exc.diagnostics, err=True)
        raise typer.Exit(code=EXIT_ENGINE_ERROR) from exc


def _status_payload(status: Status | None) -> dict[str, Any]:
    if status is None:
        return {"status": None}
    return {"status": status.model_dump()}


def _echo_status(status: Status | None, *, err: bool = False) -> None:
    if status is not None and status.signature_valid:
        color = typer.colors.GREEN
    elif status is not None and status.signer is not None:
        color = typer.colors.RED
    else:
        color = typer.colors.YELLOW
    typer.secho(describe_status(status), fg=color, err=err)


def _exit_for(status: Status | None) -> None:
    if status is not None and status.signer is not None and not status.signature_valid:
        raise typer.Exit(code=EXIT_BAD_SIGNATURE)


@app.command()
def decrypt(
    source: Annotated[str, typer.Argument(help="Encrypted message file, or '-' for stdin")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write plaintext here instead of stdout"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Decrypt a message and report signer and recipients."""
    content = _read_input(source)
    container = bootstrap_application()

    with _engine_errors():
        plaintext, status = container.engine.decrypt(content)

    if output is not None:
        output.write_bytes(plaintext)

    if json_output:
        payload = _status_payload(status)
        if output is not None:
            payload["output"] = str(output)
        else:
            payload["plaintext"] = plaintext.decode("utf-8", errors="replace")
        typer.echo(json_response("decrypt_result", 1, **payload))
        return

    if output is None:
        stream = typer.get_binary_stream("stdout")
        stream.write(plaintext)
        stream.flush()
    _echo_status(status, err=True)


@app.command()
def verify(
    data: Annotated[str, typer.Argument(help="Signed content, or '-' for stdin")],
    signature: Annotated[str, typer.Argument(help="Detached signature, or '-' for stdin")],
    keep_tempfiles: Annotated[
        bool,
        typer.Option("--keep-tempfiles", help="Keep signature temp files for debugging"),
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Verify a detached signature."""
    _single_stdin(data, signature)
    content = _read_input(data)
    sig = _read_input(signature)
    container = bootstrap_application()

    with _engine_errors():
        status = container.engine.verify(
            content,
            sig,
            keep_tempfiles=True if keep_tempfiles else None,
        )

    if json_output:
        typer.echo(json_response("verify_result", 1, **_status_payload(status)))
    else:
        _echo_status(status)
    _exit_for(status)


@app.command("verify-inline")
def verify_inline(
    source: Annotated[str, typer.Argument(help="Cleartext-signed message, or '-' for stdin")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Verify a self-contained (cleartext or inline) signed message."""
    content = _read_input(source)
    container = bootstrap_application()

    with _engine_errors():
        status = container.engine.verify_inline(content)

    if json_output:
        typer.echo(json_response("verify_result", 1, **_status_payload(status)))
    else:
        _echo_status(status)
    _exit_for(status)


@app.command()
def check(
    source: Annotated[str, typer.Argument(help="Message file, or '-' for stdin")],
    signature: Annotated[
        str | None,
        typer.Option(
            "--signature", "-s", help="Detached signature over the message, or '-' for stdin"
        ),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Detect the message kind and decrypt or verify it accordingly."""
    _single_stdin(source, signature)
    content = _read_input(source)
    sig = _read_input(signature) if signature is not None else None
    container = bootstrap_application()

    with _engine_errors():
        report = container.message_service.open_message(content, signature=sig)

    if json_output:
        typer.echo(
            json_response(
                "message_report",
                1,
                kind=report.kind,
                **_status_payload(report.status),
            )
        )
    else:
        typer.secho(f"Kind: {report.kind}", fg=typer.colors.CYAN)
        _echo_status(report.status)
    _exit_for(report.status)


@app.command()
def doctor(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Check that the configured GnuPG binary can be found and run."""
    checks: list[dict[str, Any]] = []
    all_passed = True

    def add_check(name: str, passed: bool, message: str, suggestion: str = "") -> None:
        nonlocal all_passed
        checks.append(
            {"name": name, "passed": passed, "message": message, "suggestion": suggestion}
        )
        if not passed:
            all_passed = False

    container = bootstrap_application()
    binary = container.settings.gpg_binary
    resolved = shutil.which(binary)
    add_check(
        "gpg_binary",
        resolved is not None,
        f"GnuPG binary: {resolved or binary}",
        "Install GnuPG or point --gpg / PGPGATE_GPG_BINARY at it" if resolved is None else "",
    )

    if resolved is not None:
        try:
            version_line = container.gpg_adapter.version()
            add_check("gpg_version", True, f"GnuPG version: {version_line}")
        except EngineError as exc:
            add_check(
                "gpg_version",
                False,
                f"Failed to run {binary} --version: {exc.message}",
                "Check that the binary is executable",
            )

    if json_output:
        typer.echo(
            json_response(
                "doctor_report",
                1,
                all_passed=all_passed,
                checks=checks,
            )
        )
        if not all_passed:
            raise typer.Exit(code=1)
        return

    typer.echo()
    typer.secho("pgpgate doctor", fg=typer.colors.CYAN, bold=True)
    typer.secho("=" * 40, fg=typer.colors.CYAN)
    for item in checks:
        icon = "✓" if item["passed"] else "✗"
        color = typer.colors.GREEN if item["passed"] else typer.colors.RED
        typer.secho(f"  {icon} {item['message']}", fg=color)
        if item["suggestion"] and not item["passed"]:
            typer.secho(f"    → {item['suggestion']}", fg=typer.colors.YELLOW)
    typer.echo()
    if all_passed:
        typer.secho("All checks passed! ✓", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho("Some checks failed. See suggestions above.", fg=typer.colors.RED)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
