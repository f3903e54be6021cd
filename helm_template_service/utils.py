"""Common utility functions for the Helm template service."""

import sys
from pathlib import PurePosixPath
from urllib.parse import urlparse

CHART_ARCHIVE_SUFFIX = ".tgz"


def log(message: str, verbose: bool = False):
    """Print message only if verbose mode is enabled."""
    if verbose:
        print(message, file=sys.stderr)


def is_chart_archive_url(chart_url: str) -> bool:
    """Check if the URL is well formed and points to a packaged chart archive (.tgz)."""
    if not chart_url or not chart_url.endswith(CHART_ARCHIVE_SUFFIX):
        return False
    try:
        urlparse(chart_url)
    except ValueError:
        return False
    return True


def get_archive_name_from_url(chart_url: str) -> str:
    """
    Extract the archive file name from a chart URL.
    For https://example.test/charts/foo-1.0.0.tgz, return 'foo-1.0.0.tgz'
    Falls back to 'chart.tgz' if the URL path has no usable file name.
    """
    name = PurePosixPath(urlparse(chart_url).path).name
    if not name or name in (".", ".."):
        return "chart" + CHART_ARCHIVE_SUFFIX
    return name
