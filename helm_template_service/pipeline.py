"""
Chart rendering pipeline: download, extract, locate, render.

Each call owns two scratch workspaces, one for the downloaded archive and one
for the extracted tree, and removes both before returning.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .chart_locator import locate_chart
from .extractor import extract_archive
from .fetcher import build_client, fetch_archive
from .helm_executor import HelmEngine, RenderEngine
from .request_parser import TemplateRequest
from .settings import Settings
from .utils import log
from .workspace import scratch_workspace

DOWNLOAD_PREFIX = "helm-template-"
EXTRACT_PREFIX = "helm-extract-"


@dataclass(frozen=True)
class RenderResult:
    """Rendered manifests plus the chart's default values."""
    templates: str
    values: str = ""
    values_exist: bool = False

    def to_payload(self) -> dict:
        """JSON response body. 'values' is omitted when empty."""
        payload = {"templates": self.templates}
        if self.values:
            payload["values"] = self.values
        payload["valuesExist"] = self.values_exist
        return payload


class TemplateService:
    """
    Runs the download, extract, locate and render stages for a request.

    Holds no per-request state, so one instance is shared by all server
    worker threads.
    """

    def __init__(
        self,
        settings: Settings,
        engine: Optional[RenderEngine] = None,
        client_factory: Optional[Callable[[], httpx.Client]] = None,
    ):
        self.settings = settings
        self.engine = engine or HelmEngine(settings.helm_binary, settings.verbose)
        self.client_factory = client_factory or (lambda: build_client(settings))

    def render(self, request: TemplateRequest) -> RenderResult:
        """
        Render the chart referenced by request.chart_url.

        Raises:
            RetrievalFailed, StorageError, ExtractionFailed, ChartNotFound,
            RenderFailed: The first failing stage aborts the pipeline
        """
        settings = self.settings
        verbose = settings.verbose

        with scratch_workspace(DOWNLOAD_PREFIX, verbose) as download_dir:
            with self.client_factory() as client:
                archive_path = fetch_archive(request.chart_url, download_dir, settings, client)

            with scratch_workspace(EXTRACT_PREFIX, verbose) as extract_dir:
                extract_archive(archive_path, extract_dir, settings)
                chart_tree = locate_chart(extract_dir, verbose)

                chart = self.engine.load_chart(chart_tree.root)
                log("Running helm template...", verbose)
                templates = self.engine.render(chart, settings.release_name, settings.namespace, dict(request.values))

        return RenderResult(
            templates=templates,
            values=chart_tree.values,
            values_exist=chart_tree.values_exist,
        )
