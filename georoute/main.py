import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from georoute.api.v1.router import api_router
from georoute.core.config import settings
from georoute.core.exceptions import GeoRouteError
from georoute.core.logging import configure_logging, ensure_request_id, reset_request_id, set_request_id

logger = logging.getLogger("georoute")


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging("georoute", settings.LOG_LEVEL)
    logger.info("Starting %s", settings.PROJECT_NAME)
    logger.info("Environment: %s", settings.ENVIRONMENT)
    logger.info("Storage backend: %s", settings.STORAGE_BACKEND)
    yield
    logger.info("Shutting down %s", settings.PROJECT_NAME)


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Location detection, geocoding and multi-modal route calculation",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    logger.info(
        "%s %s - status=%s duration=%.3fs",
        request.method,
        request.url.path,
        response.status_code,
        duration,
    )

    return response


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = ensure_request_id(headers=request.headers.items())
    token = set_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers.setdefault("X-Request-Id", request_id)
    return response


@app.exception_handler(GeoRouteError)
async def georoute_error_handler(request: Request, exc: GeoRouteError) -> ORJSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return ORJSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/")
async def root():
    return {
        "message": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
    }


def run() -> None:
    import uvicorn

    uvicorn.run("georoute.main:app", host="0.0.0.0", port=8000, reload=settings.ENVIRONMENT == "development")
