# pagespeed_api/services/validation_service.py
from typing import Any, List, Optional
from urllib.parse import urlparse

from pagespeed_api.core.errors import InvalidStrategy, InvalidUrl, MissingInput
from pagespeed_api.models import AnalysisInput, AnalysisRequest

STRATEGIES = ("mobile", "desktop")
DEFAULT_STRATEGY = "mobile"
DEFAULT_CATEGORY = "performance"


def validate_url(url: Any) -> str:
    """
    Checks that the caller supplied an absolute URL.

    Scheme-less input such as "example.com" is rejected; the frontend is
    expected to prefix "https://" before calling.

    Returns:
        The URL with surrounding whitespace removed.

    Raises:
        MissingInput: If the URL is absent or blank.
        InvalidUrl: If the URL is not a string, or has no scheme or no host.
    """
    if url is None:
        raise MissingInput()
    if not isinstance(url, str):
        raise InvalidUrl()

    url = url.strip()
    if not url:
        raise MissingInput()

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        raise InvalidUrl()

    if not parsed.scheme or not parsed.netloc or not hostname or any(c.isspace() for c in url):
        raise InvalidUrl()
    return url


def normalize_categories(categories: Optional[List[str]]) -> List[str]:
    normalized: List[str] = []
    for category in categories or []:
        category = (category or "").strip()
        if category and category not in normalized:
            normalized.append(category)

    # The report is anchored on the performance score
    if DEFAULT_CATEGORY not in normalized:
        normalized.insert(0, DEFAULT_CATEGORY)
    return normalized


def normalize_request(raw: AnalysisInput) -> AnalysisRequest:
    """
    Validates the raw Analyze body and fills in defaults.

    Args:
        raw: The request body as received.

    Returns:
        An AnalysisRequest with strategy and categories always set.
    """
    url = validate_url(raw.url)

    # Only an absent field takes the default; an explicit null is invalid
    strategy = raw.strategy if "strategy" in raw.model_fields_set else DEFAULT_STRATEGY
    if not isinstance(strategy, str) or strategy not in STRATEGIES:
        raise InvalidStrategy()

    return AnalysisRequest(url=url, strategy=strategy, categories=normalize_categories(raw.categories))
