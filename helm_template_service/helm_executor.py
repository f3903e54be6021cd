"""Helm command execution: the render engine behind the pipeline."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import subprocess
import yaml

from .errors import RenderFailed
from .utils import log


@dataclass(frozen=True)
class LoadedChart:
    """Chart handle returned by load_chart. Only the engine looks inside."""
    path: Path
    name: str
    version: str = ""


class RenderEngine(Protocol):
    """Interface the pipeline uses to load and render a chart."""

    def load_chart(self, chart_dir: Path) -> LoadedChart:
        ...

    def render(self, chart: LoadedChart, release_name: str, namespace: str, values: dict[str, Any]) -> str:
        ...


class HelmEngine:
    """Render engine backed by the `helm template` command."""

    def __init__(self, helm_binary: str = "helm", verbose: bool = False):
        self.helm_binary = helm_binary
        self.verbose = verbose

    def load_chart(self, chart_dir: Path) -> LoadedChart:
        """
        Load chart metadata from Chart.yaml.

        Raises:
            RenderFailed: If Chart.yaml is missing, unreadable or has no name
        """
        chart_yaml = chart_dir / "Chart.yaml"
        try:
            with open(chart_yaml) as f:
                chart_metadata = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise RenderFailed(f"Error loading chart: {e}") from e

        if not isinstance(chart_metadata, dict) or not chart_metadata.get("name"):
            raise RenderFailed(f"Error loading chart: {chart_yaml.name} has no chart name")

        chart = LoadedChart(
            path=chart_dir,
            name=str(chart_metadata["name"]),
            version=str(chart_metadata.get("version", "")).lstrip("v"),
        )
        log(f"Loaded chart {chart.name}:{chart.version}", self.verbose)
        return chart

    def build_command(self, chart: LoadedChart, release_name: str, namespace: str, values: dict[str, Any]) -> list[str]:
        """
        Build the helm template command line.

        Syntax: helm template [NAME] [CHART] [flags]
        Override values are read from stdin when present.
        """
        cmd = [self.helm_binary, "template", release_name, str(chart.path), "--namespace", namespace]
        if values:
            cmd.extend(["--values", "-"])
        return cmd

    def render(self, chart: LoadedChart, release_name: str, namespace: str, values: dict[str, Any]) -> str:
        """
        Run helm template and return the rendered manifests.

        Raises:
            RenderFailed: If helm cannot be started or exits non-zero
        """
        cmd = self.build_command(chart, release_name, namespace, values)
        values_input = yaml.safe_dump(values, default_flow_style=False) if values else None

        log(f"Running: {' '.join(cmd)}", self.verbose)

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE if values_input is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True
            )
        except OSError as e:
            raise RenderFailed(f"Error templating chart: failed to run {self.helm_binary}: {e}") from e

        stdout_output, stderr_output = process.communicate(values_input)

        if process.returncode != 0:
            raise RenderFailed(
                f"Error templating chart: helm template failed with exit code {process.returncode}:\n{stderr_output}"
            )
        elif self.verbose and stderr_output:
            log(stderr_output, self.verbose)

        return stdout_output
