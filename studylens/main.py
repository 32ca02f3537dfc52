import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google.genai import errors as genai_errors
from starlette.applications import Starlette
from starlette.routing import Mount

from studylens.config import get_settings, validate_settings
from studylens.exceptions import (
    AuthenticationError,
    EmptyInputError,
    EmptyResponseError,
    IntegrationError,
    InvalidAttachmentError,
    RateLimitError,
    SessionBusyError,
    SessionNotFoundError,
)
from studylens.mcp_server import mcp
from studylens.models.common import ErrorResponse, GeminiStatus, StatusResponse
from studylens.observers import configure_logging
from studylens.routers.study import router as study_router
from studylens.services.sessions import get_session_store


# --- FastAPI app ---

api = FastAPI(title="Studylens", version="0.1.0")
api.include_router(study_router)


@api.get("/api/status")
def api_status() -> StatusResponse:
    settings = get_settings()
    return StatusResponse(
        gemini=GeminiStatus(configured=bool(settings.gemini_api_key), model=settings.gemini_model),
        active_sessions=len(get_session_store()),
    )


# --- Exception handlers ---

def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error_code=error_code, message=message).model_dump())


@api.exception_handler(AuthenticationError)
async def auth_error_handler(request: Request, exc: AuthenticationError):
    return _error(401, "auth_error", str(exc))


@api.exception_handler(EmptyInputError)
async def empty_input_handler(request: Request, exc: EmptyInputError):
    return _error(400, "empty_input", str(exc))


@api.exception_handler(InvalidAttachmentError)
async def invalid_attachment_handler(request: Request, exc: InvalidAttachmentError):
    return _error(400, "invalid_attachment", str(exc))


@api.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    return _error(404, "session_not_found", str(exc))


@api.exception_handler(SessionBusyError)
async def session_busy_handler(request: Request, exc: SessionBusyError):
    return _error(409, "session_busy", str(exc))


@api.exception_handler(EmptyResponseError)
async def empty_response_handler(request: Request, exc: EmptyResponseError):
    return JSONResponse(
        status_code=502,
        content={"error_code": "empty_response", "reason": exc.reason, "message": str(exc)},
    )


@api.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError):
    return _error(500, "integration_error", str(exc))


@api.exception_handler(RateLimitError)
async def rate_limit_error_handler(request: Request, exc: RateLimitError):
    return _error(429, "rate_limit", str(exc))


@api.exception_handler(genai_errors.APIError)
async def gemini_error_handler(request: Request, exc: genai_errors.APIError):
    if exc.code == 429:
        return _error(429, "rate_limit", str(exc))
    return _error(502, "gemini_error", str(exc))


@api.exception_handler(httpx.TransportError)
async def transport_error_handler(request: Request, exc: httpx.TransportError):
    if isinstance(exc, httpx.TimeoutException):
        return _error(504, "gemini_timeout", str(exc) or "Gemini request timed out")
    return _error(502, "gemini_unreachable", str(exc))


# --- Starlette root app ---

mcp_app = mcp.http_app(path="/", stateless_http=True)

app = Starlette(
    routes=[
        Mount("/mcp", app=mcp_app),
        Mount("/", app=api),
    ],
    lifespan=mcp_app.lifespan,
)


def run():
    settings = validate_settings(get_settings())
    configure_logging(settings.log_level)
    uvicorn.run(
        "studylens.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
