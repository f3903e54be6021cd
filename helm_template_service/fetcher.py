"""Chart archive downloading."""

from __future__ import annotations

import time
from pathlib import Path

import httpx

from .errors import RetrievalFailed, StorageError
from .settings import Settings
from .utils import log, get_archive_name_from_url


def build_client(settings: Settings, transport: httpx.BaseTransport | None = None) -> httpx.Client:
    """Create an httpx client with the download timeout applied."""
    return httpx.Client(
        timeout=httpx.Timeout(settings.download_timeout),
        follow_redirects=True,
        transport=transport,
    )


def _check_declared_size(response: httpx.Response, limit: int):
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise RetrievalFailed(
            f"Error downloading chart: archive is {declared} bytes, limit is {limit} bytes"
        )


def fetch_archive(chart_url: str, dest_dir: Path, settings: Settings, client: httpx.Client | None = None) -> Path:
    """
    Download a chart archive into dest_dir.

    The response body is streamed to disk chunk by chunk; the download is
    aborted as soon as it exceeds settings.max_download_bytes, or once
    settings.download_timeout seconds have passed since the request started.

    Args:
        chart_url: Absolute URL of the .tgz archive
        dest_dir: Existing scratch directory owned by the caller
        settings: Service settings (timeout, size limit, verbosity)
        client: Optional httpx client, a fresh one is created and closed otherwise

    Returns:
        Path to the downloaded archive file

    Raises:
        RetrievalFailed: On malformed URLs, transport errors, non-200 status,
                         oversized body or an overall download timeout
        StorageError: If the local file cannot be created or written
    """
    verbose = settings.verbose
    owns_client = client is None
    if owns_client:
        client = build_client(settings)

    log(f"Downloading chart from {chart_url}", verbose)
    deadline = time.monotonic() + settings.download_timeout
    try:
        archive_path = dest_dir / get_archive_name_from_url(chart_url)
        with client.stream("GET", chart_url) as response:
            if response.status_code != httpx.codes.OK:
                raise RetrievalFailed(
                    f"Error downloading chart: failed to download chart, status code: {response.status_code}"
                )
            _check_declared_size(response, settings.max_download_bytes)

            try:
                out_file = open(archive_path, "wb")
            except OSError as e:
                raise StorageError(f"Error downloading chart: failed to create temp file: {e}") from e

            with out_file:
                received = 0
                for chunk in response.iter_bytes():
                    received += len(chunk)
                    if received > settings.max_download_bytes:
                        raise RetrievalFailed(
                            f"Error downloading chart: archive exceeds limit of {settings.max_download_bytes} bytes"
                        )
                    if time.monotonic() > deadline:
                        raise RetrievalFailed(
                            f"Error downloading chart: download exceeded {settings.download_timeout} s"
                        )
                    try:
                        out_file.write(chunk)
                    except OSError as e:
                        raise StorageError(f"Error downloading chart: failed to copy content to file: {e}") from e
    except (ValueError, httpx.InvalidURL) as e:
        raise RetrievalFailed(f"Error downloading chart: invalid chart URL: {e}") from e
    except httpx.HTTPError as e:
        raise RetrievalFailed(f"Error downloading chart: failed to download chart: {e}") from e
    finally:
        if owns_client:
            client.close()

    log(f"Successfully downloaded chart to {archive_path}", verbose)
    return archive_path
