# pagespeed_api/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pagespeed_api.core.config import Settings, settings
from pagespeed_api.core.errors import AnalysisError, InternalError
from pagespeed_api.core.logging import configure_logging
from pagespeed_api.models import (
    AnalysisInput,
    AnalysisResponse,
    CompareInput,
    ComparisonResponse,
    ErrorResponse,
    HealthResponse,
)
from pagespeed_api.services.analysis_service import AnalysisService

SERVICE_NAME = "PageSpeed Checker API"

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    # Warn if PageSpeed key missing (warn but don't stop)
    if not settings.PAGESPEED_API_KEY:
        logger.warning("PAGESPEED_API_KEY is not configured. Using limited quota.")
    logger.info("%s started", SERVICE_NAME)
    yield


# --- FastAPI App Initialization ---
app = FastAPI(
    title=SERVICE_NAME,
    description="An API that runs Google PageSpeed Insights and returns a normalized performance report.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- CORS Middleware ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Dependencies ---
def get_settings() -> Settings:
    return settings


def get_analysis_service(app_settings: Settings = Depends(get_settings)) -> AnalysisService:
    return AnalysisService(app_settings)


# --- Exception Handlers ---
def error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body, exclude_none=True))


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.kind)
    return error_response(exc.status_code, exc.kind, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "InvalidInput", "The request body is not valid", jsonable_encoder(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response(404, "NotFound", "The requested endpoint does not exist")
    return error_response(exc.status_code, "HTTPError", str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return error_response(error.status_code, error.kind, error.message)


# --- API Endpoints ---
@app.post(
    "/api/pagespeed",
    response_model=AnalysisResponse,
    responses={400: {"model": ErrorResponse}, 403: {"model": ErrorResponse}, 408: {"model": ErrorResponse}},
)
async def analyze_website(
    request: Optional[AnalysisInput] = Body(None),
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Receives a URL, runs PageSpeed Insights for one strategy and returns
    the score, Core Web Vitals and top opportunities.
    """
    report = await service.analyze(request or AnalysisInput())
    return AnalysisResponse(data=report)


@app.post(
    "/api/pagespeed/compare",
    response_model=ComparisonResponse,
    responses={400: {"model": ErrorResponse}},
)
async def compare_strategies(
    request: Optional[CompareInput] = Body(None),
    service: AnalysisService = Depends(get_analysis_service),
):
    """
    Scores the URL on mobile and desktop at once. A failed strategy is
    reported in its own slot instead of failing the request.
    """
    result = await service.compare(request.url if request else None)
    return ComparisonResponse(url=result.url, timestamp=result.timestamp, data=result)


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(timestamp=datetime.now(timezone.utc), service=SERVICE_NAME)


# A simple root endpoint to confirm the API is running
@app.get("/")
def read_root():
    return {"message": f"Welcome to the {SERVICE_NAME}"}
