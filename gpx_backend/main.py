import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

from gpx_backend import config
from gpx_backend.document import DATETIME_FORMAT, assemble, now_string
from gpx_backend.errors import GpxGenerationError
from gpx_backend.interpolation import interpolate
from gpx_backend.models import FailureResponse, GpxRequest, HealthResponse
from gpx_backend.post_processing import GpxFileStore, PostProcessor, build_post_processors

VERSION = "0.1.0"

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="GPX Backend", version=VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_POST_PROCESSORS = build_post_processors()


def get_post_processors() -> List[PostProcessor]:
    return _POST_PROCESSORS


def _failure(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=FailureResponse(detail=detail).model_dump(),
    )


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    if not request.url.path.startswith("/api"):
        return await call_next(request)
    logger.info("----------")
    logger.info(f"[REQUEST] path: {request.url.path}")
    logger.info(f"[REQUEST] started: {datetime.now().strftime(DATETIME_FORMAT)}")
    response = await call_next(request)
    logger.info(f"[REQUEST] finished: {datetime.now().strftime(DATETIME_FORMAT)}")
    return response


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"[INVALID] {request.url.path}: {exc.errors()}")
    return _failure(400, str(exc.errors()))


@app.exception_handler(GpxGenerationError)
async def handle_generation_error(request: Request, exc: GpxGenerationError) -> JSONResponse:
    if isinstance(exc, ValueError):
        logger.warning(f"[INVALID] {request.url.path}: {exc}")
        return _failure(400, str(exc))
    logger.exception(f"[FAILED] {request.url.path}", exc_info=exc)
    return _failure(500, str(exc))


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(version=VERSION)


def _build_document(payload: GpxRequest) -> str:
    points = interpolate(payload.markers, payload.speed)
    logger.info(
        f"[GENERATE] '{payload.title}' ({payload.speed.value}): "
        f"{len(payload.markers)} markers -> {len(points)} points"
    )
    return assemble(payload.title, now_string(), points)


@app.post(
    "/api/generateGpx",
    response_class=PlainTextResponse,
    responses={400: {"model": FailureResponse}, 500: {"model": FailureResponse}},
)
async def generate_gpx(
    payload: GpxRequest,
    post_processors: List[PostProcessor] = Depends(get_post_processors),
) -> PlainTextResponse:
    """
    Turn the markers placed on the map into a GPX route.

    Returns the GPX text, or "saved" when the server stores the file itself.
    Any failure along the way is reported as a single failed response.
    """
    try:
        # Large routes take a while to build; keep the event loop free
        gpx = await asyncio.to_thread(_build_document, payload)

        for processor in post_processors:
            await processor.run(payload.title, gpx)
    except GpxGenerationError:
        raise
    except Exception as e:
        raise GpxGenerationError(f"GPX generation failed: {e}") from e

    if any(isinstance(p, GpxFileStore) for p in post_processors):
        return PlainTextResponse("saved")
    return PlainTextResponse(gpx, media_type="application/gpx+xml")


def mount_frontend(target: FastAPI, env: str, build_dir: Path) -> bool:
    """Serve the built map UI at / in production. Returns True if mounted."""
    if env != "prod":
        return False
    if not build_dir.is_dir():
        logger.warning(f"[STATIC] frontend build not found at {build_dir}")
        return False
    target.mount("/", StaticFiles(directory=build_dir, html=True), name="frontend")
    return True


# Registered last so /api routes win
mount_frontend(app, config.ENV, config.FRONTEND_BUILD_DIR)


def run() -> None:
    logger.info(f"Listening on {config.APP_HOST}:{config.APP_PORT}")
    uvicorn.run(app, host=config.APP_HOST, port=config.APP_PORT)


if __name__ == "__main__":
    run()
