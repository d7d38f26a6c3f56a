"""Private temporary workdirs for engine inputs that must live on disk."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from pgpgate.gpg.errors import ResourceError

logger = logging.getLogger(__name__)


def write_private_file(path: Path, data: bytes, *, mode: int = 0o600) -> None:
    """Write ``data`` to ``path`` with owner-only permissions.

    The file must not exist yet; an existing path raises ``ResourceError``
    rather than being followed or truncated.

    Args:
        path: Target file path
        data: Bytes to persist
        mode: File mode to apply (POSIX style)
    """
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, mode)
    except OSError as exc:
        raise ResourceError(f"Failed to create {path}: {exc}", path=path) from exc
    try:
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]
    except OSError as exc:
        raise ResourceError(f"Failed to write {path}: {exc}", path=path) from exc
    finally:
        os.close(fd)


@contextmanager
def private_workdir(
    *,
    prefix: str,
    keep: bool = False,
    base_dir: Path | None = None,
) -> Iterator[Path]:
    """Yield a fresh 0700 directory that is removed on every exit path.

    Args:
        prefix: Directory name prefix
        keep: Leave the directory in place for debugging
        base_dir: Parent directory, defaults to the system temp dir

    Raises:
        ResourceError: Creation failed, or removal failed after the body
            completed normally. Removal failures while another exception is
            propagating are logged and the original exception wins.
    """
    try:
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
    except OSError as exc:
        raise ResourceError(
            f"Failed to create temporary directory: {exc}", path=base_dir
        ) from exc

    try:
        yield path
    except BaseException:
        if keep:
            logger.info("Keeping temporary files in %s", path)
        else:
            _remove_tree(path, strict=False)
        raise

    if keep:
        logger.info("Keeping temporary files in %s", path)
        return
    _remove_tree(path, strict=True)


def _remove_tree(path: Path, *, strict: bool) -> None:
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        if strict:
            raise ResourceError(
                f"Failed to remove temporary directory {path}: {exc}", path=path
            ) from exc
        logger.warning("Failed to remove temporary directory %s: %s", path, exc)
