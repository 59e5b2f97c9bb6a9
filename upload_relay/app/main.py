import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .models.errors import UploadRelayError
from .routes.upload import router as upload_router
from .services.staging_service import staging_area
from .utils.logging import logger

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'self'; object-src 'none'",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.log_step("starting_upload_relay_service", {
        "host": settings.APP_HOST,
        "port": settings.APP_PORT,
        "debug": settings.DEBUG,
        "python_version": sys.version,
        "staging_root": str(staging_area.root),
        "max_file_size_mb": settings.MAX_FILE_SIZE_MB
    })

    staging_area.ensure_directory()
    logger.log_step("staging_directory_ready", {
        "staging_root": str(staging_area.root)
    })

    yield

    logger.log_step("upload_relay_service_shutdown")


app = FastAPI(
    title=settings.SERVICE_NAME,
    description="Relays PDF uploads to object storage through caller-supplied SAS URLs.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan
)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if settings.SECURITY_HEADERS_ENABLED:
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
    return response


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    logger.log_step("request_completed", {
        "method": request.method,
        "url": str(request.url),
        "status_code": response.status_code,
        "process_time": process_time
    })

    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UploadRelayError)
async def upload_relay_error_handler(request: Request, exc: UploadRelayError):
    logger.log_error("upload_request_failed", {
        "url": str(request.url),
        "error_class": type(exc).__name__,
        "status_code": exc.status_code,
        "message": exc.message
    })
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.log_error("http_exception", {
        "url": str(request.url),
        "status_code": exc.status_code,
        "detail": exc.detail
    })
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error("unhandled_exception", {
        "method": request.method,
        "url": str(request.url),
        "error": str(exc)
    })

    return JSONResponse(
        status_code=500,
        content={"message": "Erro interno no servidor.", "error": str(exc)}
    )


app.include_router(upload_router)
