# main.py
"""
Point d'entrée de l'API SOP Intelligence.
Enregistre les modules via leurs routers et convertit toutes les erreurs
en enveloppe {success: false, error, errorCode, timestamp}.

Architecture : modules verticaux quasi-autonomes + engine transversal.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.shared.errors import ServiceError
from app.shared.responses import error_response, ok

from app.modules.matching.router    import router as matching_router
from app.modules.predictions.router import router as predictions_router
from app.modules.patterns.router    import router as patterns_router

API_VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=API_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(matching_router)
app.include_router(predictions_router)
app.include_router(patterns_router)


# ── Erreurs ────────────────────────────────────────────────

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    logger.info("%s %s → %s %s", request.method, request.url.path, exc.code, exc.message)
    return error_response(exc.status_code, exc.message, exc.code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Requête invalide", "VALIDATION_ERROR", details=exc.errors())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Erreur base de données sur %s %s", request.method, request.url.path)
    return error_response(500, "Erreur d'accès à la base de données", "DATABASE_ERROR")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(
        exc.status_code, str(exc.detail), HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Erreur inattendue sur %s %s", request.method, request.url.path)
    return error_response(500, "Erreur interne du serveur", "INTERNAL_ERROR")


@app.get("/health")
async def health():
    return ok({"status": "ok", "version": API_VERSION})
