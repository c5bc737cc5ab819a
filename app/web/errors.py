from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.auth.exceptions import AuthError, NotAuthenticatedError
from app.database.exceptions import RecordNotFoundError, StorageError, TableMissingError
from app.export.exceptions import NothingToExportError
from app.extraction.exceptions import EmptyQueueError, ExtractionApiError, ExtractionNetworkError
from app.logging.logger import Log
from app.scraper.exceptions import InvalidScraperConfigError, ScrapeError
from app.web.notices import Notice

# (exception, status code, notice title)
ERROR_RESPONSES: tuple[tuple[type[Exception], int, str], ...] = (
    (NotAuthenticatedError, 401, "Authentication required"),
    (AuthError, 400, "Sign-in failed"),
    (RecordNotFoundError, 404, "Not found"),
    (TableMissingError, 503, "Database Table Missing"),
    (StorageError, 502, "Database Error"),
    (EmptyQueueError, 400, "No files to process"),
    (ExtractionNetworkError, 502, "Network error"),
    (ExtractionApiError, 502, "Processing failed"),
    (NothingToExportError, 400, "No data to export"),
    (InvalidScraperConfigError, 400, "Invalid scrape request"),
    (ScrapeError, 502, "Scraping Failed"),
)


def error_response(status_code: int, notice: Notice) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": notice.description, "notices": [notice.to_dict()]},
    )


def _handler(status_code: int, title: str):
    def handle(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            Log.error(f"[err] {request.method} {request.url.path}: {type(exc).__name__}: {exc}")
        else:
            Log.warning(f"[err] {request.method} {request.url.path}: {exc}")
        return error_response(status_code, Notice(title, str(exc), "destructive"))

    return handle


def register_exception_handlers(app: FastAPI) -> None:
    """Turn service-layer exceptions into JSON errors with a notice."""
    for exc_type, status_code, title in ERROR_RESPONSES:
        app.add_exception_handler(exc_type, _handler(status_code, title))
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)


def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    response = error_response(
        exc.status_code, Notice("Request failed", str(exc.detail), "destructive")
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    Log.warning(f"[err] {request.method} {request.url.path}: invalid request")
    notice = Notice("Invalid request", "Some fields are missing or invalid", "destructive")
    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "notices": [notice.to_dict()]},
    )
