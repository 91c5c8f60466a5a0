# storefront/core/errors.py
import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Location prefixes FastAPI puts in front of the field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie", "form"}


def validation_error(errors: dict[str, list[str]]) -> HTTPException:
    """
    Build a 422 carrying a field-keyed error map, for checks that cannot be
    expressed in a pydantic schema (uploaded files, cross-row rules).
    """
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"message": "Validation failed", "errors": errors},
    )


def field_errors(exc: RequestValidationError) -> dict[str, list[str]]:
    """
    Turn pydantic error entries into {"items.0.quantity": ["..."]}.
    """
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "__root__"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return errors


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body: dict = {"success": False}
    if isinstance(exc.detail, dict):
        body["message"] = exc.detail.get("message", "Request failed")
        if "errors" in exc.detail:
            body["errors"] = exc.detail["errors"]
    else:
        body["message"] = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=body,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation failed",
            "errors": field_errors(exc),
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
