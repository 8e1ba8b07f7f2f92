import logging
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.datastructures import FormData, UploadFile

from .config import Settings, load_settings
from .errors import FormParseError, MissingImageError, SketchCalcError, UpstreamError
from .logging_utils import configure_logging
from .relay import AnalysisRelay

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyzeImage"
IMAGE_FIELD = "imageBlob"


async def read_image_part(form: FormData) -> Tuple[bytes, str]:
    upload = form.get(IMAGE_FIELD)
    if not isinstance(upload, UploadFile):
        raise MissingImageError(f"No {IMAGE_FIELD} part in upload")
    image_bytes = await upload.read()
    if not image_bytes:
        raise MissingImageError(f"{IMAGE_FIELD} part is empty")

    mime_type = upload.content_type or "image/jpeg"
    logger.debug("Received %s (%s, %d bytes)", upload.filename, mime_type, len(image_bytes))
    return image_bytes, mime_type


async def read_image_upload(request: Request) -> Tuple[bytes, str]:
    """Read the ``imageBlob`` part; the form and its spooled files are closed on exit."""
    try:
        async with request.form() as form:
            return await read_image_part(form)
    except SketchCalcError:
        raise
    except Exception as e:
        raise FormParseError(str(e)) from e


def get_relay(app: FastAPI) -> AnalysisRelay:
    if app.state.relay is None:
        try:
            app.state.relay = AnalysisRelay.from_settings(app.state.settings)
        except Exception as e:
            logger.exception("Could not create the Bedrock client")
            raise UpstreamError(str(e)) from e
    return app.state.relay


def create_app(settings: Optional[Settings] = None, relay: Optional[AnalysisRelay] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="SketchCalc Relay")
    app.state.settings = settings
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FormParseError)
    async def form_parse_error(request: Request, exc: FormParseError):
        logger.error("Form parsing error: %s", exc)
        return JSONResponse({"error": "Failed to parse form data"}, status_code=500)

    @app.exception_handler(MissingImageError)
    async def missing_image_error(request: Request, exc: MissingImageError):
        logger.warning("Rejected upload: %s", exc)
        return JSONResponse({"error": "No image file uploaded"}, status_code=400)

    @app.exception_handler(UpstreamError)
    async def upstream_error(request: Request, exc: UpstreamError):
        logger.error("Error analyzing image: %s", exc)
        return JSONResponse({"error": "Failed to analyze image"}, status_code=500)

    @app.get("/")
    def read_root():
        return {"message": "SketchCalc relay is running"}

    @app.post(ANALYZE_PATH)
    async def analyze_image(request: Request):
        image_bytes, mime_type = await read_image_upload(request)
        relay = get_relay(request.app)
        analysis = await run_in_threadpool(relay.analyze, image_bytes, mime_type)
        return JSONResponse({"analysis": analysis})

    @app.api_route(ANALYZE_PATH, methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"])
    async def analyze_image_not_allowed(request: Request):
        return PlainTextResponse(
            f"Method {request.method} Not Allowed",
            status_code=405,
            headers={"Allow": "POST"},
        )

    return app


app = create_app()


def main():
    import uvicorn
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
