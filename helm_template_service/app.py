"""HTTP surface: explicit route bindings built once by create_app."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool

from .errors import TemplateServiceError
from .pipeline import TemplateService
from .request_parser import TemplateRequest, parse_query, parse_template_request
from .settings import Settings
from .utils import log

__version__ = "0.1.0"

# Every method is routed so unsupported ones get the service's own 405 message.
TEMPLATE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(settings: Optional[Settings] = None, service: Optional[TemplateService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings (read from the environment if omitted)
        service: Pipeline to run; defaults to one backed by the helm binary

    Routes:
        GET|POST /template  render a chart (JSON, or text with ?raw=true)
        GET /?c=<url>       shorthand for /template?chartUrl=<url>&raw=true
        GET /health         liveness probe
        GET /...            static assets
    """
    settings = settings or Settings()
    service = service or TemplateService(settings)
    verbose = settings.verbose

    app = FastAPI(title="Helm Template Service", version=__version__)
    app.state.settings = settings
    app.state.service = service

    async def handle_service_error(request: Request, exc: TemplateServiceError):
        log(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc}", verbose)
        return PlainTextResponse(f"{exc}\n", status_code=exc.status_code)

    async def render_response(template_request: TemplateRequest):
        result = await run_in_threadpool(service.render, template_request)
        if template_request.raw:
            return PlainTextResponse(result.templates)
        return JSONResponse(result.to_payload())

    async def template(request: Request):
        body = await request.body()
        template_request = parse_template_request(request.method, request.query_params, body)
        return await render_response(template_request)

    async def root(request: Request):
        chart_url = request.query_params.get("c", "")
        if chart_url:
            return await render_response(parse_query({"chartUrl": chart_url}, raw=True))

        index = settings.static_dir / "index.html"
        if index.is_file():
            return FileResponse(index)
        return PlainTextResponse("404 page not found\n", status_code=404)

    def health():
        return {"ok": True}

    app.add_exception_handler(TemplateServiceError, handle_service_error)
    app.add_api_route("/template", template, methods=TEMPLATE_METHODS)
    app.add_api_route("/", root, methods=["GET"])
    app.add_api_route("/health", health, methods=["GET"])

    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        log(f"Static directory {settings.static_dir} not found, not serving assets", verbose)

    return app
