"""FastAPI application entrypoint. No business logic; only wiring, middleware and error mapping."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from warden.api.v1 import router as v1_router
from warden.core.config import settings
from warden.core.errors import ValidationFailedError, WardenError

logger = logging.getLogger(__name__)

# Failure kind -> HTTP status. Unknown kinds fall back to 400, never 500.
ERROR_STATUS: dict[str, int] = {
    "DuplicateEmail": status.HTTP_409_CONFLICT,
    "InvalidCredentials": status.HTTP_401_UNAUTHORIZED,
    "InvalidToken": status.HTTP_401_UNAUTHORIZED,
    "Unauthorized": status.HTTP_403_FORBIDDEN,
    "NotFound": status.HTTP_404_NOT_FOUND,
    "LastAdminProtected": status.HTTP_409_CONFLICT,
    "RoleSeedMissing": status.HTTP_503_SERVICE_UNAVAILABLE,
    "ValidationFailed": status.HTTP_422_UNPROCESSABLE_ENTITY,
}

app = FastAPI(
    title="Warden API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(WardenError)
async def handle_warden_error(request: Request, exc: WardenError) -> JSONResponse:
    """Map a typed core failure to its status; the body carries only the public message."""
    status_code = ERROR_STATUS.get(exc.kind, status.HTTP_400_BAD_REQUEST)
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == "InvalidToken" else None
    if status_code >= 500:
        logger.error("Request failed", extra={"error_kind": exc.kind, "path": request.url.path})
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error": exc.kind},
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as ValidationFailed with the first error message."""
    errors = exc.errors()
    message = "Invalid request."
    if errors:
        first = errors[0]
        message = str(first.get("msg", message)).removeprefix("Value error, ")
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        if field:
            message = f"{field}: {message}"
    return JSONResponse(
        status_code=ERROR_STATUS[ValidationFailedError.kind],
        content={"detail": message, "error": ValidationFailedError.kind},
    )


app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Warden API"}
