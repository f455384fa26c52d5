"""
Gestionnaires d'exceptions.
Toutes les erreurs de l'API partagent l'enveloppe JSON {"error": "<message>"}.
"""
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg") or "invalid value"
    return f"Invalid request: {loc} {msg}".strip() if loc else f"Invalid request: {msg}"

def register_exception_handlers(app: FastAPI) -> None:
    """
    - HTTPException (FastAPI et Starlette, ex: 404 route inconnue): code conservé, detail -> {"error": detail}
    - RequestValidationError (pydantic): 400 {"error": "Invalid request: ..."}
    """
    @app.exception_handler(HTTPException)
    async def http_error_envelope(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_envelope(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed path=%s errors=%s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})
