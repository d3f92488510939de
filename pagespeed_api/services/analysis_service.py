# pagespeed_api/services/analysis_service.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from pagespeed_api.core.config import Settings
from pagespeed_api.core.errors import AnalysisError
from pagespeed_api.models import (
    AnalysisInput,
    AnalysisReport,
    AnalysisRequest,
    ComparisonResult,
    Strategy,
    StrategyFailure,
    StrategyOutcome,
    StrategySuccess,
)
from pagespeed_api.services import processing_service, validation_service
from pagespeed_api.services.error_service import classify_upstream_error
from pagespeed_api.services.pagespeed_service import PageSpeedClient

logger = logging.getLogger(__name__)


class AnalysisService:
    """
    Drives PageSpeed Insights runs for the Analyze and Compare operations.

    Built per request from explicit settings; holds no state between calls.
    """

    def __init__(self, settings: Settings, client: Optional[PageSpeedClient] = None):
        self.settings = settings
        self.client = client or PageSpeedClient(settings)

    async def analyze(self, raw: AnalysisInput) -> AnalysisReport:
        """
        Runs one audit and adapts it into an AnalysisReport.

        Validation errors are raised before any upstream call. Upstream
        failures are classified once and raised as AnalysisError; there are
        no retries.
        """
        request = validation_service.normalize_request(raw)
        logger.info("Analyzing %s (strategy=%s, categories=%s)", request.url, request.strategy, request.categories)

        try:
            data = await self.client.get_pagespeed_insights(request)
            return processing_service.extract_report(data, request.url, request.strategy)
        except AnalysisError:
            raise
        except Exception as e:
            raise classify_upstream_error(e) from e

    async def _score_strategy(self, url: str, strategy: Strategy) -> StrategyOutcome:
        request = AnalysisRequest(url=url, strategy=strategy, categories=["performance"])
        try:
            data = await self.client.get_pagespeed_insights(request)
            return StrategySuccess(score=processing_service.extract_performance_score(data))
        except Exception as e:
            error = classify_upstream_error(e)
            logger.warning("Compare: %s run for %s failed with %s", strategy, url, error.kind)
            return StrategyFailure(error=error.message)

    async def compare(self, url: Optional[str]) -> ComparisonResult:
        """
        Scores the URL under both strategies concurrently.

        Each strategy's outcome is captured on its own; one failing never
        cancels or invalidates the other. Only an invalid URL fails the
        whole call.
        """
        url = validation_service.validate_url(url)
        logger.info("Comparing mobile and desktop for %s", url)

        mobile, desktop = await asyncio.gather(
            self._score_strategy(url, "mobile"),
            self._score_strategy(url, "desktop"),
        )

        return ComparisonResult(
            url=url,
            timestamp=datetime.now(timezone.utc),
            mobile=mobile,
            desktop=desktop,
        )

