"""
Main FastAPI application entry point.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from deal_analysis import __version__
from deal_analysis.api import router as api_router
from deal_analysis.api.analysis import validation_http_error
from deal_analysis.calculations.errors import ValidationError
from deal_analysis.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Property deal return, scenario and risk analysis",
    version=__version__,
    debug=settings.debug,
)

# Include API routes
app.include_router(api_router, prefix="/api")


def _field_name(loc) -> str:
    """``("body", "holding_period_years")`` -> ``"holding_period_years"``."""
    parts = [str(part) for part in loc[1:]] or [str(part) for part in loc]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests in the same shape as rejected deal inputs."""
    problems = [(_field_name(error["loc"]), error["msg"]) for error in exc.errors()]
    if not problems:
        problems = [("body", "invalid request")]
    field, message = problems[0]
    logger.info(f"Rejected request to {request.url.path}: {field}: {message}")

    http_error = validation_http_error(ValidationError(field, message, problems))
    return JSONResponse(status_code=http_error.status_code, content={"detail": http_error.detail})


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy", "version": __version__}
