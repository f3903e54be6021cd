"""Safe extraction of gzipped chart tarballs."""

import os
import shutil
import tarfile
import zlib
from pathlib import Path

from .errors import ExtractionFailed
from .settings import Settings
from .utils import log

DIR_MODE = 0o755


def resolve_member_path(root: Path, name: str) -> Path:
    """
    Resolve a tar member name against the extraction root.

    Args:
        root: Resolved extraction root
        name: Member name as declared in the archive

    Returns:
        Absolute target path inside root (root itself for entries like "./")

    Raises:
        ExtractionFailed: If the name is absolute or escapes root
    """
    if not name or os.path.isabs(name) or name.startswith(("/", "\\")):
        raise ExtractionFailed(f"Error extracting chart: illegal path in archive: {name!r}")

    target = (root / name).resolve()
    if target != root and root not in target.parents:
        raise ExtractionFailed(f"Error extracting chart: illegal path in archive: {name!r}")
    return target


def _extract_members(tar: tarfile.TarFile, root: Path, settings: Settings):
    entries = 0
    total_bytes = 0

    for member in tar:
        entries += 1
        if entries > settings.max_archive_entries:
            raise ExtractionFailed(
                f"Error extracting chart: archive has more than {settings.max_archive_entries} entries"
            )

        if not (member.isdir() or member.isreg()):
            log(f"Skipping unsupported entry {member.name}", settings.verbose)
            continue

        target = resolve_member_path(root, member.name)

        if member.isdir():
            target.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            continue

        total_bytes += member.size
        if total_bytes > settings.max_extracted_bytes:
            raise ExtractionFailed(
                f"Error extracting chart: extracted size exceeds {settings.max_extracted_bytes} bytes"
            )

        target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        source = tar.extractfile(member)
        with source, open(target, "wb") as out_file:
            shutil.copyfileobj(source, out_file)


def extract_archive(archive_path: Path, dest_dir: Path, settings: Settings) -> Path:
    """
    Extract a .tgz chart archive into dest_dir.

    Only directories and regular files are written; links, devices and FIFOs are
    skipped. Every member path is checked to stay inside dest_dir before anything
    is written for it.

    Returns:
        The extraction root (dest_dir)

    Raises:
        ExtractionFailed: On corrupt or truncated archives, unsafe paths,
                          exceeded limits or filesystem write failures
    """
    root = dest_dir.resolve()
    log(f"Extracting {archive_path} to {root}", settings.verbose)

    try:
        with tarfile.open(archive_path, mode="r|gz") as tar:
            _extract_members(tar, root, settings)
    except ExtractionFailed:
        raise
    except (tarfile.TarError, zlib.error, EOFError, OSError) as e:
        raise ExtractionFailed(f"Error extracting chart: {e}") from e

    return root
