"""Tests for the download -> extract -> locate -> render pipeline."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path to import the main module
sys.path.insert(0, str(Path(__file__).parent.parent))

from helm_template_service.errors import ChartNotFound, ExtractionFailed, RenderFailed, RetrievalFailed
from helm_template_service.pipeline import RenderResult
from helm_template_service.request_parser import TemplateRequest

from charts import (
    CHART_URL,
    SAMPLE_CHART,
    SAMPLE_CHART_WITHOUT_VALUES,
    build_chart_archive,
    file_member,
    serve_archive,
)


def test_render_returns_templates_and_values(make_service, engine, scratch_root):
    service = make_service(serve_archive(build_chart_archive(SAMPLE_CHART)))

    result = service.render(TemplateRequest(chart_url=CHART_URL, values={"replicaCount": 2}))

    assert "# Source: mychart/templates/configmap.yaml" in result.templates
    assert result.values == SAMPLE_CHART["mychart/values.yaml"]
    assert result.values_exist is True
    assert engine.calls == [("mychart", "my-release", "default", {"replicaCount": 2})]
    assert list(scratch_root.iterdir()) == []


def test_render_without_values_file(make_service):
    service = make_service(serve_archive(build_chart_archive(SAMPLE_CHART_WITHOUT_VALUES)))

    result = service.render(TemplateRequest(chart_url=CHART_URL))

    assert result.values == ""
    assert result.values_exist is False


def test_same_input_renders_identically(make_service):
    service = make_service(serve_archive(build_chart_archive(SAMPLE_CHART)))
    request = TemplateRequest(chart_url=CHART_URL, values={"a": 1, "b": [1, 2]})

    assert service.render(request) == service.render(request)


@pytest.mark.parametrize("archive,status_code,error", [
    (b"", 404, RetrievalFailed),
    (b"garbage", 200, ExtractionFailed),
    (build_chart_archive({"Chart.yaml": "name: flat\n"}), 200, ChartNotFound),
    (build_chart_archive({"mychart/values.yaml": "a: 1\n"}), 200, RenderFailed),
    (build_chart_archive(SAMPLE_CHART, extra_members=[file_member("../evil", "x")]), 200, ExtractionFailed),
])
def test_scratch_workspaces_removed_on_failure(make_service, scratch_root, archive, status_code, error):
    service = make_service(serve_archive(archive, status_code))

    with pytest.raises(error):
        service.render(TemplateRequest(chart_url=CHART_URL))

    assert list(scratch_root.iterdir()) == []
    assert not (scratch_root.parent / "evil").exists()


def test_render_failure_removes_workspaces(make_service, engine, scratch_root, monkeypatch):
    def fail(*args):
        raise RenderFailed("Error templating chart: boom")

    monkeypatch.setattr(engine, "render", fail)
    service = make_service(serve_archive(build_chart_archive(SAMPLE_CHART)))

    with pytest.raises(RenderFailed, match="boom"):
        service.render(TemplateRequest(chart_url=CHART_URL))

    assert list(scratch_root.iterdir()) == []


def test_payload_omits_empty_values():
    assert RenderResult(templates="---\n").to_payload() == {"templates": "---\n", "valuesExist": False}
    assert RenderResult(templates="t", values="a: 1\n", values_exist=True).to_payload() == {
        "templates": "t",
        "values": "a: 1\n",
        "valuesExist": True,
    }


def test_malformed_url_fails_in_download_stage(make_service, scratch_root):
    service = make_service(serve_archive(build_chart_archive(SAMPLE_CHART)))

    with pytest.raises(RetrievalFailed, match="Error downloading chart: invalid chart URL"):
        service.render(TemplateRequest(chart_url="http://[::1/foo.tgz"))

    assert list(scratch_root.iterdir()) == []
