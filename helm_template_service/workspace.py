"""Per-request scratch directories."""

import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .errors import StorageError
from .utils import log


@contextmanager
def scratch_workspace(prefix: str, verbose: bool = False) -> Iterator[Path]:
    """
    Create a uniquely named temporary directory and remove it on exit.

    The directory is removed on every exit path, including exceptions raised
    inside the with-block.

    Raises:
        StorageError: If the directory cannot be created
    """
    try:
        path = Path(tempfile.mkdtemp(prefix=prefix))
    except OSError as e:
        raise StorageError(f"failed to create temp directory: {e}") from e

    log(f"Created scratch workspace {path}", verbose)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        log(f"Removed scratch workspace {path}", verbose)
