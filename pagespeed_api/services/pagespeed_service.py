# pagespeed_api/services/pagespeed_service.py
import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from pagespeed_api.core.config import Settings
from pagespeed_api.models import AnalysisRequest

logger = logging.getLogger(__name__)

UpstreamQuery = List[Tuple[str, str]]


def build_query(request: AnalysisRequest, api_key: Optional[str] = None) -> UpstreamQuery:
    """
    Maps a validated request onto the PageSpeed Insights query parameters.

    The API reads `category` as a repeated parameter, so each requested
    category is emitted as its own pair rather than overwriting one key.

    Args:
        request: The normalized analysis request.
        api_key: The Google API key, if one is configured.

    Returns:
        An ordered list of (name, value) pairs.
    """
    params: UpstreamQuery = [("url", request.url), ("strategy", request.strategy)]

    # Google allows limited requests without a key
    if api_key:
        params.append(("key", api_key))

    params.extend(("category", category) for category in request.categories)
    return params


def mask_query(params: UpstreamQuery) -> UpstreamQuery:
    return [(name, "[HIDDEN]" if name == "key" else value) for name, value in params]


class PageSpeedClient:
    """Issues a single bounded GET against the PageSpeed Insights API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    def build_query(self, request: AnalysisRequest) -> UpstreamQuery:
        return build_query(request, self.settings.PAGESPEED_API_KEY)

    async def run_pagespeed(self, params: UpstreamQuery) -> Dict[str, Any]:
        """
        Asynchronously calls the Google PageSpeed Insights API.

        Args:
            params: The query built by `build_query`.

        Returns:
            The parsed JSON response.

        Raises:
            httpx.HTTPStatusError: If the API returns a non-2xx status.
            asyncio.TimeoutError: If the whole call exceeds the configured timeout.
            httpx.TimeoutException: If a single connect or read step times out.
            httpx.RequestError: On any other transport failure.
            ValueError: If the body is not valid JSON.
        """
        logger.debug("Making request to PageSpeed API with params: %s", mask_query(params))

        # httpx only bounds each connect/read/write step; wait_for caps the whole call
        return await asyncio.wait_for(self._fetch(params), timeout=self.settings.PAGESPEED_TIMEOUT)

    async def _fetch(self, params: UpstreamQuery) -> Dict[str, Any]:
        async with httpx.AsyncClient(transport=self.transport, timeout=self.settings.PAGESPEED_TIMEOUT) as client:
            response = await client.get(self.settings.PAGESPEED_API_ENDPOINT, params=params)
            response.raise_for_status()  # Raise an exception for bad status codes (4xx or 5xx)
            return response.json()

    async def get_pagespeed_insights(self, request: AnalysisRequest) -> Dict[str, Any]:
        return await self.run_pagespeed(self.build_query(request))
