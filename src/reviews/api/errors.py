"""HTTP mapping for Reviews errors.

Protean's handlers cover ValidationError (400) and ObjectNotFoundError (404).
DuplicateError subclasses ValidationError and gets its own, more specific
handler.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from reviews.exceptions import AuthorizationError, DuplicateError


async def _duplicate_handler(request: Request, exc: DuplicateError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": exc.messages})


async def _authorization_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"error": exc.messages})


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(DuplicateError, _duplicate_handler)
    app.add_exception_handler(AuthorizationError, _authorization_handler)
