# pagespeed_api/core/errors.py
"""
Caller-facing error taxonomy.

Every failure the API reports is an ``AnalysisError``. Subclasses fix the
``kind`` label, the HTTP status and a default message; the FastAPI exception
handler in ``pagespeed_api.main`` renders them as ``ErrorResponse`` bodies.
"""
from typing import Any, Optional


class AnalysisError(Exception):
    kind: str = "InternalError"
    status_code: int = 500
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Any = None, status_code: Optional[int] = None):
        self.message = message or self.message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"error": self.kind, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# --- Local validation (never reaches upstream) ---

class MissingInput(AnalysisError):
    kind = "MissingInput"
    status_code = 400
    message = "Please provide a valid URL to analyze"


class InvalidUrl(AnalysisError):
    kind = "InvalidUrl"
    status_code = 400
    message = "Please provide a valid URL format (including http:// or https://)"


class InvalidStrategy(AnalysisError):
    kind = "InvalidStrategy"
    status_code = 400
    message = 'Strategy must be either "mobile" or "desktop"'


# --- Upstream failures ---

class MalformedUpstreamPayload(AnalysisError):
    kind = "MalformedUpstreamPayload"
    status_code = 500
    message = "Invalid response from PageSpeed API"


class BadUpstreamRequest(AnalysisError):
    kind = "BadUpstreamRequest"
    status_code = 400
    message = "PageSpeed API rejected the request"


class CredentialError(AnalysisError):
    kind = "CredentialError"
    status_code = 403
    message = "Invalid or missing Google API key. Please check your API key configuration."


class UpstreamRateLimited(AnalysisError):
    kind = "UpstreamRateLimited"
    status_code = 429
    message = "Too many requests to Google API. Please try again later."


class UpstreamError(AnalysisError):
    kind = "UpstreamError"
    status_code = 502
    message = "PageSpeed API request failed"


class UpstreamTimeout(AnalysisError):
    kind = "Timeout"
    status_code = 408
    message = "Request timed out. The website might be slow to respond."


class InternalError(AnalysisError):
    pass
