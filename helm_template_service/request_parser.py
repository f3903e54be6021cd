"""Normalization of the two /template calling conventions into one request."""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidRequest, MethodNotAllowed
from .utils import is_chart_archive_url


class TemplateRequest(BaseModel):
    """A validated render request. Immutable once built."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chart_url: str = Field(default="", alias="chartUrl")
    values: Dict[str, Any] = Field(default_factory=dict)
    raw: bool = False


def is_raw(params: Mapping[str, str]) -> bool:
    """The output is raw text only when ?raw=true is given exactly."""
    return params.get("raw") == "true"


def validate_chart_url(request: TemplateRequest) -> TemplateRequest:
    if not is_chart_archive_url(request.chart_url):
        raise InvalidRequest("Invalid or missing 'chartUrl'. Must be a .tgz URL.")
    return request


def parse_body(body: bytes, raw: bool = False) -> TemplateRequest:
    """
    Build a request from a JSON body: {"chartUrl": ..., "values": {...}}.

    Raises:
        InvalidRequest: If the body is not a JSON object of that shape,
                        or chartUrl is not a .tgz URL
    """
    try:
        payload = json.loads(body or b"null")
        if not isinstance(payload, dict):
            raise ValueError("JSON body must be an object")
        if payload.get("values") is None:
            payload.pop("values", None)
        request = TemplateRequest.model_validate({**payload, "raw": raw})
    except (ValueError, TypeError, ValidationError) as e:
        raise InvalidRequest("Invalid JSON request body") from e
    return validate_chart_url(request)


def parse_query(params: Mapping[str, str], raw: bool = False) -> TemplateRequest:
    """
    Build a request from query parameters: chartUrl (required) and values
    (optional, a JSON-encoded object).

    Raises:
        InvalidRequest: If chartUrl is missing or not a .tgz URL,
                        or values is not a JSON object
    """
    chart_url = params.get("chartUrl", "")
    if not chart_url:
        raise InvalidRequest("Missing 'chartUrl' query parameter")

    values: Dict[str, Any] = {}
    values_param = params.get("values", "")
    if values_param:
        try:
            values = json.loads(values_param)
        except ValueError as e:
            raise InvalidRequest("Invalid 'values' query parameter. Must be a JSON string.") from e
        if values is None:
            values = {}
        elif not isinstance(values, dict):
            raise InvalidRequest("Invalid 'values' query parameter. Must be a JSON string.")

    return validate_chart_url(TemplateRequest(chart_url=chart_url, values=values, raw=raw))


def parse_template_request(method: str, params: Mapping[str, str], body: bytes) -> TemplateRequest:
    """
    Dispatch on the HTTP method: POST reads the JSON body, GET reads the query.

    Raises:
        MethodNotAllowed: For any other method
        InvalidRequest: See parse_body / parse_query
    """
    raw = is_raw(params)
    method = method.upper()
    if method == "POST":
        return parse_body(body, raw)
    if method == "GET":
        return parse_query(params, raw)
    raise MethodNotAllowed("Only POST and GET methods are supported")
