import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from trashapp.core import responses
from trashapp.core.config import settings
from trashapp.core.errors import AppError, conflict_from_integrity
from trashapp.core.init_db import init_db
from trashapp.api.v1.api import api_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Настройка CORS
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return responses.error(exc.message, exc.code, exc.details, exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    field_errors = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[-1]) if loc else "body"
        field_errors.setdefault(field, err.get("msg", "Invalid value"))
    return responses.validation_error(field_errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return responses.error(f"Route {request.url.path} not found", "NOT_FOUND", status_code=404)
    return responses.error(str(exc.detail), "HTTP_ERROR", status_code=exc.status_code)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s: %s", request.url.path, exc.orig)
    err = conflict_from_integrity(exc.orig)
    return responses.error(err.message, err.code, err.details, err.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return responses.internal_error()


@app.get("/health")
async def health():
    return responses.success(
        {"status": "OK", "timestamp": datetime.utcnow().isoformat(), "version": settings.VERSION},
        "Server is healthy",
    )


# Фото заявок отдаются как статика
app.mount(settings.MEDIA_URL, StaticFiles(directory=str(settings.UPLOAD_DIR), check_dir=False), name="media")

# Подключаем роутеры API v1
app.include_router(api_router, prefix=settings.API_V1_STR)
