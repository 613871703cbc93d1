"""Fallback render service.

Stateless HTTP front end of :class:`~svg2raster.renderer.PageRenderer`:

    GET  /health         - service status
    POST /render         - SVG to image (JSON or form body)
    POST /render/batch   - reserved, answers 501
    GET  /stats          - request counter, uptime and memory usage

Example::

    curl -X POST http://localhost:4000/render \\
        -F "outputType=png" -F "deviceScaleFactor=2" \\
        -F "svg=@./sample.svg" --output output.png
"""

import argparse
import logging
import sys
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from svg2raster.config import SERVICE_NAME, ServiceConfig
from svg2raster.errors import Svg2RasterError, ValidationError
from svg2raster.models import RenderRequest
from svg2raster.renderer import PageRenderer
from svg2raster.stats import ServiceStats
from svg2raster.version import __version__

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_fields(request: Request, config: ServiceConfig) -> dict[str, Any]:
    """Read the render fields of a JSON or form request body.

    A file part named ``svg`` is read and decoded as UTF-8. Form parts are
    bounded by the body size limit instead of the form parser's default.

    Raises:
        ValidationError: If the body is too large, malformed or of an
            unsupported content type.
    """
    content_length = request.headers.get("content-length")
    if config.is_body_size_limited() and content_length and content_length.isdigit():
        if int(content_length) > config.max_body_size:
            raise ValidationError(
                f"Request body exceeds the limit of {config.max_body_size} bytes"
            )

    content_type = request.headers.get("content-type", "").split(";")[0].strip()
    if content_type in FORM_CONTENT_TYPES:
        max_part_size = (
            config.max_body_size if config.is_body_size_limited() else sys.maxsize
        )
        try:
            form = await request.form(max_part_size=max_part_size)
        except HTTPException as e:
            raise ValidationError(f"Malformed form body: {e.detail}") from e
        except MultiPartException as e:
            raise ValidationError(f"Malformed form body: {e.message}") from e
        fields: dict[str, Any] = {}
        for key, value in form.items():
            if isinstance(value, UploadFile):
                data = await value.read()
                try:
                    value = data.decode("utf-8")
                except UnicodeDecodeError as e:
                    raise ValidationError(f"Field {key!r} is not UTF-8 text") from e
            fields[key] = value
        return fields

    if content_type == "application/json" or not content_type:
        try:
            body = await request.json()
        except ValueError as e:
            raise ValidationError(f"Malformed JSON body: {e}") from e
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        return body

    raise ValidationError(f"Unsupported content type {content_type!r}")


def create_app(
    config: ServiceConfig | None = None, renderer: PageRenderer | None = None
) -> FastAPI:
    """Create the service application.

    Args:
        config: Service settings. Defaults to :meth:`ServiceConfig.default`.
        renderer: Renderer to delegate to. Defaults to a
            :class:`PageRenderer` built from ``config``.
    """
    config = config or ServiceConfig.default()
    renderer = renderer or PageRenderer(
        browser_type=config.browser_type,  # type: ignore[arg-type]
        debug_dir=config.debug_dir,
    )

    app = FastAPI(title=SERVICE_NAME, version=__version__)
    app.state.config = config
    app.state.renderer = renderer
    app.state.stats = ServiceStats()

    @app.middleware("http")
    async def count_requests(request: Request, call_next: Any) -> Response:
        app.state.stats.requests.increment()
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)

    @app.exception_handler(Svg2RasterError)
    async def handle_render_error(request: Request, exc: Svg2RasterError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "service": SERVICE_NAME, "version": __version__}

    @app.get("/stats")
    async def stats() -> dict[str, Any]:
        return app.state.stats.snapshot()

    @app.post("/render")
    async def render(request: Request) -> Response:
        fields = await read_fields(request, config)
        render_request = RenderRequest.from_fields(fields)
        logger.info(
            f"Render request: {render_request.output_type} "
            f"(scale: {render_request.device_scale_factor}x, "
            f"quality: {render_request.quality})"
        )

        try:
            result = await renderer.render_request(render_request)
        except Svg2RasterError as e:
            logger.error(f"Render failed ({e.kind}): {e.message}")
            raise
        except Exception as e:
            logger.exception("Unexpected render failure")
            return JSONResponse(
                {"error": str(e), "type": type(e).__name__}, status_code=500
            )

        logger.info(f"Rendered {result.width}x{result.height} {result.format}")
        return Response(
            content=result.buffer,
            media_type=result.content_type,
            headers={
                "X-Image-Width": str(result.width),
                "X-Image-Height": str(result.height),
                "X-Image-Format": result.format,
            },
        )

    @app.post("/render/batch")
    async def render_batch() -> JSONResponse:
        return JSONResponse(
            {
                "error": "Not Implemented",
                "message": "Batch rendering is not supported yet",
            },
            status_code=501,
        )

    return app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    config = ServiceConfig.default()
    parser = argparse.ArgumentParser(description="Run the SVG fallback render service.")
    parser.add_argument(
        "--host", metavar="HOST", default=config.host, help=f"default {config.host}"
    )
    parser.add_argument(
        "--port",
        metavar="PORT",
        type=int,
        default=config.port,
        help=f"default {config.port}",
    )
    parser.add_argument(
        "--loglevel",
        metavar="LEVEL",
        default="INFO",
        help="Logging level, default INFO.",
    )
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.loglevel.upper(), "INFO"))

    config.host = args.host
    config.port = args.port
    logger.info(f"Starting {SERVICE_NAME} {__version__} on http://{config.host}:{config.port}")
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
