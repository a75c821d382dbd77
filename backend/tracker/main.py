"""Punto de entrada de la API usando FastAPI.

Este módulo crea la aplicación, configura CORS, traduce los errores del
dominio a respuestas JSON (`{"error": ...}`) y arranca/detiene la limpieza
periódica de jobs expirados en el `lifespan` de la aplicación.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from tracker.api.jobs import router as jobs_router
from tracker.api.pages import router as pages_router
from tracker.core.config import get_settings
from tracker.core.errors import MalformedRequestError, NotFoundError
from tracker.core.logging_config import setup_logging
from tracker.services.cleanup_scheduler import CleanupScheduler
from tracker.services.job_store import get_job_service

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Crea el handle de limpieza al arrancar y lo detiene al apagar."""
    scheduler = None
    if settings.cleanup_enabled:
        # Respeta los overrides de dependencias (tests)
        provider = app.dependency_overrides.get(get_job_service, get_job_service)
        service = provider()
        scheduler = CleanupScheduler(
            service.purge_expired_jobs,
            interval_seconds=settings.cleanup_interval_seconds,
        )
        scheduler.start()
    app.state.cleanup_scheduler = scheduler

    logger.info("Server running on port %s", settings.port)
    logger.info("Store: %s", settings.supabase_url)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.stop(timeout=5)


# Instancia principal de FastAPI; aquí es donde se montan rutas y middleware.
app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    lifespan=lifespan,
)


def _vary_on_origin(response: Response) -> None:
    # Se añade a un Vary existente (p. ej. Accept-Encoding), sin pisarlo
    existing = response.headers.get("Vary")
    if not existing:
        response.headers["Vary"] = "Origin"
    elif "origin" not in [part.strip().lower() for part in existing.split(",")]:
        response.headers["Vary"] = f"{existing}, Origin"


def apply_cors_headers(response: Response, origin: str | None) -> Response:
    """Pone las cabeceras CORS permisivas en cualquier respuesta.

    - If `ALLOWED_ORIGINS` contains `*`, respond `Access-Control-Allow-Origin: *`.
    - Otherwise, if Origin is present and in the whitelist, echo it back.
    """
    allowed = settings.origins
    if "*" in allowed:
        response.headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in allowed:
        response.headers["Access-Control-Allow-Origin"] = origin
        _vary_on_origin(response)
    response.headers["Access-Control-Allow-Methods"] = ", ".join(CORS_METHODS)
    response.headers["Access-Control-Allow-Headers"] = ", ".join(CORS_HEADERS)
    return response


@app.middleware("http")
async def ensure_cors_header(request: Request, call_next):
    """Answers every OPTIONS request as a preflight and tags all responses."""
    origin = request.headers.get("origin")
    if request.method == "OPTIONS":
        return apply_cors_headers(Response(status_code=200), origin)

    # `call_next` ejecuta la siguiente capa (rutas incluidas) y devuelve la respuesta.
    response = await call_next(request)
    return apply_cors_headers(response, origin)


def _error(status_code: int, message: str, request: Request) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content={"error": message})
    return apply_cors_headers(response, request.headers.get("origin"))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, exc.message, request)


@app.exception_handler(MalformedRequestError)
async def malformed_request_handler(request: Request, exc: MalformedRequestError):
    return _error(400, exc.message, request)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # JSON ilegible o con forma incorrecta: error del cliente, no 500
    logger.info("Rejected request body on %s %s", request.method, request.url.path)
    return _error(400, "Malformed request body", request)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Rutas desconocidas y métodos no soportados se ven igual: 404
    if exc.status_code in (404, 405):
        return _error(404, "Not found", request)
    return _error(exc.status_code, str(exc.detail), request)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Request error on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error", request)


app.include_router(jobs_router)
app.include_router(pages_router)
