"""Chart root discovery inside an extracted archive."""

from dataclasses import dataclass
from pathlib import Path

from .errors import ChartNotFound, StorageError
from .utils import log

VALUES_FILE = "values.yaml"


@dataclass(frozen=True)
class ChartTree:
    """Located chart root plus its raw values.yaml content."""
    root: Path
    values: str = ""
    values_exist: bool = False


def find_chart_root(extract_dir: Path) -> Path:
    """
    Find the chart directory among the immediate children of extract_dir.

    A packaged chart contains exactly one top-level directory. Archives with
    several top-level directories are ambiguous and rejected.

    Raises:
        ChartNotFound: If there is no top-level directory, or more than one
        StorageError: If extract_dir cannot be listed
    """
    try:
        directories = sorted(entry for entry in extract_dir.iterdir() if entry.is_dir())
    except OSError as e:
        raise StorageError(f"Error reading extracted directory: {e}") from e

    if not directories:
        raise ChartNotFound("Could not find a valid chart directory in the tarball")
    if len(directories) > 1:
        names = ", ".join(d.name for d in directories)
        raise ChartNotFound(
            f"Could not find a valid chart directory in the tarball: multiple top-level directories ({names})"
        )
    return directories[0]


def read_values(chart_root: Path) -> tuple[str, bool]:
    """
    Read values.yaml from the chart root.

    The document is returned as stored (line endings kept); bytes that are
    not valid UTF-8 are replaced rather than rejected.

    Returns:
        tuple: (content, exists). A missing file gives ("", False).

    Raises:
        StorageError: If the file exists but cannot be read
    """
    try:
        content = (chart_root / VALUES_FILE).read_bytes()
    except FileNotFoundError:
        return "", False
    except OSError as e:
        raise StorageError(f"Error reading values.yaml: {e}") from e
    return content.decode("utf-8", errors="replace"), True


def locate_chart(extract_dir: Path, verbose: bool = False) -> ChartTree:
    """Locate the chart root in extract_dir and read its default values."""
    chart_root = find_chart_root(extract_dir)
    values, values_exist = read_values(chart_root)
    log(f"Chart root: {chart_root} (values.yaml {'found' if values_exist else 'missing'})", verbose)
    return ChartTree(root=chart_root, values=values, values_exist=values_exist)
