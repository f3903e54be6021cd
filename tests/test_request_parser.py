"""Tests for /template request parsing (JSON body and query parameters)."""

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

# Add parent directory to path to import the main module
sys.path.insert(0, str(Path(__file__).parent.parent))

from helm_template_service.errors import InvalidRequest, MethodNotAllowed
from helm_template_service.request_parser import (
    TemplateRequest,
    parse_body,
    parse_query,
    parse_template_request,
)

from charts import CHART_URL


def test_body_with_values():
    body = json.dumps({"chartUrl": CHART_URL, "values": {"replicaCount": 2}}).encode()

    request = parse_body(body)

    assert request.chart_url == CHART_URL
    assert request.values == {"replicaCount": 2}
    assert request.raw is False


def test_body_without_values():
    request = parse_body(json.dumps({"chartUrl": CHART_URL}).encode(), raw=True)

    assert request.values == {}
    assert request.raw is True


def test_body_null_values():
    request = parse_body(json.dumps({"chartUrl": CHART_URL, "values": None}).encode())

    assert request.values == {}


def test_body_unknown_fields_are_ignored():
    request = parse_body(json.dumps({"chartUrl": CHART_URL, "raw": True, "extra": 1}).encode())

    assert request.raw is False


@pytest.mark.parametrize("body", [
    b"",
    b"{not json",
    b"[1, 2]",
    b'"string"',
    json.dumps({"chartUrl": CHART_URL, "values": [1, 2]}).encode(),
    json.dumps({"chartUrl": 42}).encode(),
])
def test_malformed_body(body):
    with pytest.raises(InvalidRequest, match="Invalid JSON request body"):
        parse_body(body)


def test_body_without_chart_url():
    with pytest.raises(InvalidRequest, match="Invalid or missing 'chartUrl'. Must be a .tgz URL."):
        parse_body(b"{}")


def test_query_with_values():
    request = parse_query({"chartUrl": CHART_URL, "values": '{"image": {"tag": "1.2"}}'})

    assert request.chart_url == CHART_URL
    assert request.values == {"image": {"tag": "1.2"}}


def test_query_missing_chart_url():
    with pytest.raises(InvalidRequest, match="Missing 'chartUrl' query parameter"):
        parse_query({})


@pytest.mark.parametrize("values", ["{broken", "[1, 2]", "3"])
def test_query_invalid_values(values):
    with pytest.raises(InvalidRequest, match="Invalid 'values' query parameter"):
        parse_query({"chartUrl": CHART_URL, "values": values})


@pytest.mark.parametrize("chart_url", [
    "https://example.test/foo-1.0.0.tar.gz",
    "http://[::1/foo.tgz",
    "https://example.test/foo-1.0.0.zip",
    "https://example.test/foo.tgz?download=1",
])
def test_chart_url_must_end_with_tgz(chart_url):
    with pytest.raises(InvalidRequest, match="Must be a .tgz URL"):
        parse_query({"chartUrl": chart_url})


def test_dispatch_by_method():
    body = json.dumps({"chartUrl": CHART_URL}).encode()

    assert parse_template_request("POST", {"raw": "true"}, body).raw is True
    assert parse_template_request("get", {"chartUrl": CHART_URL}, b"").chart_url == CHART_URL
    assert parse_template_request("GET", {"chartUrl": CHART_URL, "raw": "yes"}, b"").raw is False


@pytest.mark.parametrize("method", ["PUT", "DELETE", "PATCH", "HEAD"])
def test_other_methods_not_allowed(method):
    with pytest.raises(MethodNotAllowed, match="Only POST and GET methods are supported"):
        parse_template_request(method, {"chartUrl": CHART_URL}, b"")


def test_request_is_immutable():
    request = TemplateRequest(chart_url=CHART_URL)

    with pytest.raises(ValidationError):
        request.chart_url = "https://example.test/other.tgz"
