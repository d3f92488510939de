# pagespeed_api/services/error_service.py
import asyncio
import logging
from typing import Any, Optional, Tuple

import httpx

from pagespeed_api.core.errors import (
    AnalysisError,
    BadUpstreamRequest,
    CredentialError,
    InternalError,
    UpstreamError,
    UpstreamRateLimited,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)


def parse_error_envelope(body: Any) -> Tuple[Optional[str], Any]:
    """
    Reads Google's `{"error": {"message": ..., "errors": [...]}}` envelope.

    Returns:
        The upstream message and its itemized sub-errors, either of which may be None.
    """
    if not isinstance(body, dict) or not isinstance(body.get("error"), dict):
        return None, None
    error = body["error"]
    return error.get("message"), error.get("errors")


def classify_status(status: int, body: Any) -> AnalysisError:
    """Maps an upstream HTTP status and its decoded body onto the caller-facing taxonomy."""
    upstream_message, sub_errors = parse_error_envelope(body)
    message = upstream_message or "API request failed"

    if status == 400:
        return BadUpstreamRequest(f"Google API Error: {message}", details=sub_errors)
    if status == 403:
        # Never echo the upstream text; it can describe quota and key internals
        return CredentialError()
    if status == 429:
        return UpstreamRateLimited()
    return UpstreamError(f"Google API Error: {message}", status_code=status if status >= 400 else 502)


def classify_upstream_error(exc: BaseException) -> AnalysisError:
    """
    Converts whatever the upstream call raised into an AnalysisError.

    Args:
        exc: The exception raised while calling or decoding the upstream.

    Returns:
        The classified error, ready to be rendered or captured.
    """
    if isinstance(exc, AnalysisError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            body = response.json()
        except ValueError:
            body = None
        error = classify_status(response.status_code, body)
        logger.warning(
            "PageSpeed API returned %s for %s: %s",
            response.status_code, exc.request.url.params.get("url"), error.kind,
        )
        return error

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        logger.warning("PageSpeed API call timed out: %r", exc)
        return UpstreamTimeout()

    logger.error("Unexpected error while calling PageSpeed API", exc_info=exc)
    return InternalError()
