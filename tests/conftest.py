"""Pytest configuration and fixtures."""

from __future__ import annotations

import itertools
import json
import sys
from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from pgpgate.config import Settings

FAKE_GPG_SCRIPT = """#!{python}
import json
import os
import signal
import sys
import time

argv = sys.argv[1:]
record = {{
    "argv": argv,
    "pid": os.getpid(),
    "env": {{key: os.environ.get(key) for key in ("LC_ALL", "LANGUAGE")}},
    "stdin": sys.stdin.buffer.read().decode("utf-8", "replace"),
    "files": {{}},
    "modes": {{}},
}}
for arg in argv:
    if os.path.isfile(arg):
        with open(arg, "rb") as fh:
            record["files"][arg] = fh.read().decode("utf-8", "replace")
        record["modes"][arg] = os.stat(arg).st_mode & 0o777
        record["modes"][os.path.dirname(arg)] = os.stat(os.path.dirname(arg)).st_mode & 0o777
tmp_record = {record_path!r} + ".tmp"
with open(tmp_record, "w") as fh:
    json.dump(record, fh)
os.replace(tmp_record, {record_path!r})

time.sleep({delay!r})
sys.stdout.buffer.write({stdout!r})
sys.stdout.flush()
sys.stderr.buffer.write({stderr!r})
sys.stderr.flush()
if {kill_signal!r} is not None:
    os.kill(os.getpid(), {kill_signal!r})
sys.exit({exit_code!r})
"""


@dataclass
class FakeGPG:
    """Executable stand-in for the gpg binary plus what it observed."""

    path: Path
    record_path: Path

    @property
    def binary(self) -> str:
        return str(self.path)

    @property
    def was_called(self) -> bool:
        return self.record_path.exists()

    def record(self) -> dict[str, Any]:
        return json.loads(self.record_path.read_text(encoding="utf-8"))


def _as_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


@pytest.fixture
def fake_gpg(tmp_path: Path) -> Callable[..., FakeGPG]:
    """Factory writing a fake gpg script with canned output and exit status."""

    if sys.platform == "win32":  # pragma: no cover - POSIX shebang scripts only
        pytest.skip("fake gpg scripts require a POSIX platform")

    counter = itertools.count()
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def factory(
        *,
        stderr: str | bytes = "",
        stdout: str | bytes = b"",
        exit_code: int = 0,
        delay: float = 0.0,
        kill_signal: int | None = None,
    ) -> FakeGPG:
        index = next(counter)
        script = bin_dir / f"gpg-{index}"
        record_path = bin_dir / f"gpg-{index}.json"
        script.write_text(
            FAKE_GPG_SCRIPT.format(
                python=sys.executable,
                record_path=str(record_path),
                delay=delay,
                stdout=_as_bytes(stdout),
                stderr=_as_bytes(stderr),
                kill_signal=int(kill_signal) if kill_signal is not None else None,
                exit_code=exit_code,
            ),
            encoding="utf-8",
        )
        script.chmod(0o755)
        return FakeGPG(path=script, record_path=record_path)

    return factory


@pytest.fixture
def sig_tmp(tmp_path: Path) -> Path:
    """Isolated parent directory for signature workdirs."""
    path = tmp_path / "sigtmp"
    path.mkdir()
    return path


@pytest.fixture
def override_settings(tmp_path: Path) -> Generator[Settings, None, None]:
    """Provide isolated pgpgate settings scoped to tests."""

    import pgpgate.config as config_module

    original_settings = getattr(config_module, "_settings", None)

    temp_dir = tmp_path / "sigtmp-settings"
    temp_dir.mkdir(parents=True, exist_ok=True)

    settings = config_module.Settings(
        gpg_binary="gpg",
        temp_dir=temp_dir,
        gpg_timeout_seconds=30.0,
    )

    config_module._settings = settings

    try:
        yield settings
    finally:
        config_module._settings = original_settings
