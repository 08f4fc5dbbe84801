import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gst_reporting.api.v1.envelope import error
from gst_reporting.domain.exceptions import (
    DocumentValidationError,
    InvalidNumberingTransitionError,
    PeriodMismatchError,
    PeriodParseError,
    PersistenceError,
)

logger = logging.getLogger("gst_reporting.errors")


def register_error_handlers(app: FastAPI) -> FastAPI:
    @app.exception_handler(DocumentValidationError)
    async def document_invalid(request: Request, exc: DocumentValidationError):
        return JSONResponse(
            status_code=400,
            content=error(str(exc), errors=[{"detail": e} for e in exc.errors]),
        )

    @app.exception_handler(PeriodParseError)
    async def period_invalid(request: Request, exc: PeriodParseError):
        return JSONResponse(status_code=400, content=error(str(exc)))

    @app.exception_handler(PeriodMismatchError)
    async def period_mismatch(request: Request, exc: PeriodMismatchError):
        return JSONResponse(status_code=422, content=error(str(exc), status="unavailable"))

    @app.exception_handler(InvalidNumberingTransitionError)
    async def numbering_conflict(request: Request, exc: InvalidNumberingTransitionError):
        return JSONResponse(status_code=409, content=error(str(exc)))

    @app.exception_handler(PersistenceError)
    async def persistence_failed(request: Request, exc: PersistenceError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content=error(str(exc)))

    return app
